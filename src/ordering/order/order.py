"""Order aggregate (CQRS) — the core of the ordering domain.

Orders are created either by direct placement (stock reserved line by line)
or by reconciling a paid checkout session. Line items are fixed at creation: a
digest of the lines is taken when the order is placed, and any later add,
remove or edit that changes them is rejected. Afterwards only the status and
its bookkeeping fields change.

State Machine (7 states):
    PROCESSING → APPROVED → ON_SHIPPING → SHIPPED → COMPLETED → RETURNED
    PROCESSING/APPROVED → CANCELLED (terminal)

Who may move an order is decided here as well:
    Customers may only cancel their own PROCESSING orders.
    Admins may set any status, but nothing leaves CANCELLED.
"""

import hashlib
import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
)

from ordering.domain import ordering
from ordering.errors import InvalidTransition
from ordering.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PROCESSING = "PROCESSING"
    APPROVED = "APPROVED"
    ON_SHIPPING = "ON_SHIPPING"
    SHIPPED = "SHIPPED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"


class ActorRole(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


# Natural fulfilment flow
_FULFILMENT_FLOW = {
    OrderStatus.PROCESSING: {OrderStatus.APPROVED, OrderStatus.CANCELLED},
    OrderStatus.APPROVED: {OrderStatus.ON_SHIPPING, OrderStatus.CANCELLED},
    OrderStatus.ON_SHIPPING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: {OrderStatus.RETURNED},
    OrderStatus.RETURNED: set(),
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Transitions a customer may request on their own order
_CUSTOMER_TRANSITIONS = {
    OrderStatus.PROCESSING: {OrderStatus.CANCELLED},
}

# Statuses nobody may leave, admins included
_TERMINAL_STATES = {OrderStatus.CANCELLED}


def parse_status(value):
    """Coerce a status string into an OrderStatus, or raise ValidationError."""
    try:
        return value if isinstance(value, OrderStatus) else OrderStatus(str(value).upper())
    except ValueError:
        raise ValidationError(
            {"status": [f"Invalid status '{value}'. Expected one of: {', '.join(s.value for s in OrderStatus)}"]}
        ) from None


def next_statuses(status):
    """Statuses that normally follow ``status`` in fulfilment."""
    return _FULFILMENT_FLOW.get(status, set())


def _digest(lines):
    return hashlib.sha256(json.dumps(lines, sort_keys=True).encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class LineItem:
    """One product, quantity and price captured when the order was created."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    position = Integer(default=0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    line_items = HasMany(LineItem)
    total_amount = Float(required=True, min_value=0.0)
    external_session_id = String(max_length=255, unique=True)
    coupon_code = String(max_length=100)
    stock_reserved = Boolean(default=False)
    line_items_digest = String(max_length=64)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PROCESSING.value,
    )
    cancelled_by = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def line_items_are_fixed_once_placed(self):
        if self.line_items_digest and self.line_items_digest != _digest(self.line_items_data()):
            raise ValidationError({"line_items": ["Line items cannot change once the order is placed"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        line_items,
        total_amount=None,
        external_session_id=None,
        coupon_code=None,
        stock_reserved=False,
        order_id=None,
    ):
        """Create a new PROCESSING order.

        Args:
            customer_id: The customer who owns the order.
            line_items: List of dicts with product_id, quantity, unit_price.
            total_amount: Authoritative charged amount. Defaults to the sum
                of the lines when the caller has no provider total.
            external_session_id: Payment session this order reconciles.
            coupon_code: Coupon redeemed at checkout, if any.
            stock_reserved: Whether stock was reserved for every line.
            order_id: Identity to use instead of a generated one. Line items
                then get ``<order_id>-<position>`` so that writing the same
                order twice touches the same records.
        """
        if not line_items:
            raise ValidationError({"line_items": ["An order must contain at least one line item"]})

        items = []
        for position, line in enumerate(line_items):
            identity = {"id": f"{order_id}-{position}"} if order_id else {}
            items.append(
                LineItem(
                    product_id=str(line["product_id"]),
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    position=position,
                    **identity,
                )
            )
        if total_amount is None:
            total_amount = round(sum(item.unit_price * item.quantity for item in items), 2)

        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            total_amount=total_amount,
            external_session_id=external_session_id or None,
            coupon_code=coupon_code or None,
            stock_reserved=stock_reserved,
            status=OrderStatus.PROCESSING.value,
            created_at=now,
            updated_at=now,
            **({"id": order_id} if order_id else {}),
        )
        for item in items:
            order.add_line_items(item)
        order.line_items_digest = _digest(order.line_items_data())

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                line_items=json.dumps(order.line_items_data()),
                total_amount=total_amount,
                external_session_id=order.external_session_id,
                coupon_code=order.coupon_code,
                stock_reserved=stock_reserved,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    def ordered_line_items(self):
        """Line items in the order they were placed."""
        return sorted(self.line_items, key=lambda item: item.position or 0)

    def line_items_data(self):
        return [
            {
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
            for item in self.ordered_line_items()
        ]

    def is_owned_by(self, customer_id):
        return str(self.customer_id) == str(customer_id)

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def assert_can_transition(self, target_status, role):
        """Validate that ``role`` may move this order to ``target_status``."""
        current = OrderStatus(self.status)

        if current in _TERMINAL_STATES and target_status != current:
            raise InvalidTransition(current, target_status)

        if role == ActorRole.ADMIN:
            return

        if target_status not in _CUSTOMER_TRANSITIONS.get(current, set()):
            raise InvalidTransition(current, target_status)

    def change_status(self, target_status, changed_by):
        """Move to a non-cancelled status. Legality is checked by the caller."""
        if target_status == OrderStatus.CANCELLED:
            raise ValidationError({"status": ["Use cancel() to cancel an order"]})

        previous = self.status
        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target_status.value,
                changed_by=str(changed_by),
                changed_at=now,
            )
        )

    def cancel(self, cancelled_by, unreleased_items=None):
        """Cancel the order after its stock has been released."""
        current = OrderStatus(self.status)
        if current in _TERMINAL_STATES:
            raise InvalidTransition(current, OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_by = str(cancelled_by)
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=current.value,
                cancelled_by=str(cancelled_by),
                unreleased_items=json.dumps(unreleased_items) if unreleased_items else None,
                cancelled_at=now,
            )
        )
