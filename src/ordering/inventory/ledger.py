"""Inventory ledger — atomic reserve/release against ProductStock.

A reservation is a conditional update: "decrement by N if at least N are
in stock". The check runs on the ProductStock aggregate and the write is a
version-guarded save. Protean refuses to commit an aggregate whose
``_version`` no longer matches the stored one, so two concurrent
reservations that read the same count cannot both commit. The loser's unit
of work fails with ``ExpectedVersionError`` and Protean re-runs the whole
command handler (``[tool.protean.server.version_retry]``), which re-reads
the product and re-checks against the fresh count.

``InsufficientStock`` is a business rejection and is never retried.

The ledger never touches the catalog cache. ``CatalogCacheRefresher``
rewrites the product snapshot once the stock event has been committed.
"""

import structlog
from protean.utils.globals import current_domain

from ordering.inventory.stock import ProductStock

logger = structlog.get_logger(__name__)


class StockLedger:
    """Sole writer of ``ProductStock.stock``."""

    def reserve(self, product_id, quantity, reference=None):
        """Check and decrement stock for one product."""
        return self._apply(
            product_id,
            "reserve",
            lambda product: product.reserve(quantity, reference=reference),
        )

    def release(self, product_id, quantity, reference=None):
        """Return stock for one product. Used on cancellation and compensation."""
        return self._apply(
            product_id,
            "release",
            lambda product: product.release(quantity, reference=reference),
        )

    def replenish(self, product_id, quantity):
        """Receive new units into stock."""
        return self._apply(
            product_id,
            "replenish",
            lambda product: product.replenish(quantity),
        )

    def _apply(self, product_id, operation, mutate):
        repo = current_domain.repository_for(ProductStock)
        product = repo.get(product_id)
        mutate(product)
        repo.add(product)

        logger.debug(
            "stock_updated",
            product_id=str(product.id),
            operation=operation,
            stock=product.stock,
            version=product._version,
        )
        return product
