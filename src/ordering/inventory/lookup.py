"""Cached product lookups for the read API."""

import structlog
from protean.utils.globals import current_domain

from ordering.cache import get_cache, product_key
from ordering.inventory.stock import ProductStock

logger = structlog.get_logger(__name__)


def product_snapshot(product_id):
    """Return a product snapshot, reading through the catalog cache.

    Raises ObjectNotFoundError when the product does not exist.
    """
    cache = get_cache()
    key = product_key(product_id)

    cached = cache.get(key)
    if cached is not None:
        return cached

    logger.debug("product_cache_miss", product_id=str(product_id))
    product = current_domain.repository_for(ProductStock).get(product_id)
    snapshot = product.to_snapshot()
    cache.set(key, snapshot)
    return snapshot
