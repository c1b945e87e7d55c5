"""Domain events for the ProductStock aggregate.

Every stock movement is recorded as an event, giving operators an audit
trail to reconcile against when a compensation or release fails.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="ProductStock")
class ProductRegistered:
    """A product was added to the stock ledger."""

    __version__ = 1

    product_id = Identifier(required=True)
    title = String(required=True)
    unit_price = Float(required=True)
    initial_stock = Integer(required=True)
    registered_at = DateTime(required=True)


@ordering.event(part_of="ProductStock")
class StockReserved:
    """Stock was decremented to back an order line."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    reference = String()
    reserved_at = DateTime(required=True)


@ordering.event(part_of="ProductStock")
class StockReleased:
    """Previously reserved stock was returned."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    reference = String()
    released_at = DateTime(required=True)


@ordering.event(part_of="ProductStock")
class StockReplenished:
    """New units were received into stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    replenished_at = DateTime(required=True)
