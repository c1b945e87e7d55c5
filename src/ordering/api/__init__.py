"""Ordering domain API package."""

from ordering.api.errors import register_exception_handlers
from ordering.api.routes import checkout_router, coupon_router, order_router, product_router

__all__ = [
    "checkout_router",
    "coupon_router",
    "order_router",
    "product_router",
    "register_exception_handlers",
]
