"""Catalog cache port (abstract interface).

Product snapshots served by the read endpoint are cached behind this
contract. A snapshot is rewritten once each stock change commits, so
readers never see a count that was rolled back.
"""

from abc import ABC, abstractmethod


def product_key(product_id) -> str:
    """Cache key for a product snapshot."""
    return f"product:{product_id}"


class CatalogCache(ABC):
    """Abstract key/value cache for catalog snapshots."""

    @abstractmethod
    def get(self, key: str) -> dict | None:
        """Return the cached value, or None on a miss."""
        ...

    @abstractmethod
    def set(self, key: str, value: dict, ttl: int | None = None) -> None:
        """Store a value, expiring after ``ttl`` seconds when given."""
        ...

    @abstractmethod
    def invalidate(self, key: str) -> None:
        """Drop a key. Missing keys are ignored."""
        ...
