"""Keeps the catalog cache in step with committed stock changes.

Stock events are dispatched synchronously after their unit of work commits,
so a snapshot is only ever written for a stock count that was persisted. A
rolled-back reservation (insufficient stock further down the order, or a
version conflict at commit) raises no event and leaves the cache alone.
"""

import structlog
from protean import handle
from protean.utils.globals import current_domain

from ordering.cache import get_cache, product_key
from ordering.domain import ordering
from ordering.inventory.events import (
    ProductRegistered,
    StockReleased,
    StockReplenished,
    StockReserved,
)
from ordering.inventory.stock import ProductStock

logger = structlog.get_logger(__name__)


@ordering.event_handler(part_of=ProductStock)
class CatalogCacheRefresher:
    def _refresh(self, product_id):
        # Re-read rather than trust the event payload; a later commit may
        # already have moved the count on.
        product = current_domain.repository_for(ProductStock).get(product_id)
        get_cache().set(product_key(product.id), product.to_snapshot())
        logger.debug("product_cache_refreshed", product_id=str(product.id), stock=product.stock)

    @handle(ProductRegistered)
    def on_product_registered(self, event: ProductRegistered) -> None:
        self._refresh(event.product_id)

    @handle(StockReserved)
    def on_stock_reserved(self, event: StockReserved) -> None:
        self._refresh(event.product_id)

    @handle(StockReleased)
    def on_stock_released(self, event: StockReleased) -> None:
        self._refresh(event.product_id)

    @handle(StockReplenished)
    def on_stock_replenished(self, event: StockReplenished) -> None:
        self._refresh(event.product_id)
