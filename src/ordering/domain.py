"""Ordering bounded context — Stock, Orders, Coupons and Hosted Checkout.

Handles stock reservation against the product ledger, the order lifecycle
(CQRS), coupon redemption, and reconciliation of payment-provider checkout
sessions into orders.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
ordering = Domain(name="ordering")
