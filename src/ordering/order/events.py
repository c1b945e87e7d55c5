"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes.
Line items are carried as JSON so the event stays a flat record.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """An order was persisted, either directly or from a paid checkout session."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    line_items = Text(required=True)  # JSON: [{product_id, quantity, unit_price}]
    total_amount = Float(required=True)
    external_session_id = String()
    coupon_code = String()
    stock_reserved = Boolean(default=False)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An order moved to a new (non-cancelled) status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """An order was cancelled. Stock for released lines has been returned.

    ``unreleased_items`` lists lines whose stock could not be returned and
    must be reconciled by an operator.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    cancelled_by = String(required=True)
    unreleased_items = Text()  # JSON: [{product_id, quantity, error}]
    cancelled_at = DateTime(required=True)
