"""Storefront ordering database management CLI.

Creates and drops the relational schema behind the ordering domain when it
runs against SQLite or PostgreSQL (the memory provider needs neither).

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    """Create the ordering schema."""
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating ordering database schema...")
    created = setup_db(ordering)
    print(f"  schema ready on provider(s): {', '.join(created) or 'none (no relational provider configured)'}.")
    print("Done.")


def drop_database():
    """Drop the ordering schema."""
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping ordering database schema...")
    dropped = drop_db(ordering)
    print(f"  schema dropped on provider(s): {', '.join(dropped) or 'none'}.")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Storefront ordering database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
