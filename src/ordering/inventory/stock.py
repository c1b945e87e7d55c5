"""ProductStock aggregate (CQRS) — the inventory ledger's record of a product.

Only the fields the ordering core needs are kept here: the title and price
captured when an order or checkout is priced, and the sellable ``stock``
count. ``stock`` is changed exclusively through reserve/release/replenish,
and never drops below zero.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Integer, String

from ordering.domain import ordering
from ordering.errors import InsufficientStock
from ordering.inventory.events import (
    ProductRegistered,
    StockReleased,
    StockReplenished,
    StockReserved,
)


def _assert_positive(quantity):
    if quantity is None or quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})


@ordering.aggregate
class ProductStock:
    """Sellable stock for one product."""

    title = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, title, unit_price, stock=0, product_id=None):
        """Add a product to the ledger with an opening stock count."""
        if stock is None or stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

        now = datetime.now(UTC)
        kwargs = {"id": product_id} if product_id else {}
        product = cls(
            title=title,
            unit_price=unit_price,
            stock=stock,
            created_at=now,
            updated_at=now,
            **kwargs,
        )
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                title=title,
                unit_price=unit_price,
                initial_stock=stock,
                registered_at=now,
            )
        )
        return product

    def reserve(self, quantity, reference=None):
        """Decrement stock, refusing to go below zero."""
        _assert_positive(quantity)
        if self.stock < quantity:
            raise InsufficientStock(str(self.id), requested=quantity, available=self.stock)

        previous = self.stock
        now = datetime.now(UTC)
        self.stock = previous - quantity
        self.updated_at = now
        self.raise_(
            StockReserved(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                reference=reference,
                reserved_at=now,
            )
        )

    def release(self, quantity, reference=None):
        """Return previously reserved units."""
        _assert_positive(quantity)

        previous = self.stock
        now = datetime.now(UTC)
        self.stock = previous + quantity
        self.updated_at = now
        self.raise_(
            StockReleased(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                reference=reference,
                released_at=now,
            )
        )

    def replenish(self, quantity):
        """Receive new units into stock."""
        _assert_positive(quantity)

        previous = self.stock
        now = datetime.now(UTC)
        self.stock = previous + quantity
        self.updated_at = now
        self.raise_(
            StockReplenished(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                replenished_at=now,
            )
        )

    def to_snapshot(self):
        """Serializable view used by the catalog cache and the read API."""
        return {
            "product_id": str(self.id),
            "title": self.title,
            "unit_price": self.unit_price,
            "stock": self.stock,
        }
