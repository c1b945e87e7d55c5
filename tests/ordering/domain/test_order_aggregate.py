"""Tests for Order.place — line items, totals, fixed lines and the OrderPlaced event."""

import json

import pytest
from ordering.order.events import OrderPlaced
from ordering.order.order import LineItem, Order, OrderStatus
from protean import current_domain
from protean.exceptions import ValidationError


def _lines():
    return [
        {"product_id": "prod-001", "quantity": 2, "unit_price": 25.0},
        {"product_id": "prod-002", "quantity": 1, "unit_price": 10.0},
    ]


class TestPlaceOrder:
    def test_new_order_is_processing(self):
        order = Order.place(customer_id="cust-001", line_items=_lines())
        assert order.status == OrderStatus.PROCESSING.value
        assert order.id is not None
        assert order.created_at is not None

    def test_total_defaults_to_sum_of_lines(self):
        order = Order.place(customer_id="cust-001", line_items=_lines())
        assert order.total_amount == 60.0

    def test_explicit_total_is_kept(self):
        order = Order.place(customer_id="cust-001", line_items=_lines(), total_amount=54.0)
        assert order.total_amount == 54.0

    def test_line_items_keep_request_order(self):
        order = Order.place(customer_id="cust-001", line_items=_lines())
        assert [item.product_id for item in order.ordered_line_items()] == ["prod-001", "prod-002"]

    def test_optional_fields(self):
        order = Order.place(
            customer_id="cust-001",
            line_items=_lines(),
            external_session_id="cs_test_1",
            coupon_code="GIFT1",
            stock_reserved=True,
        )
        assert order.external_session_id == "cs_test_1"
        assert order.coupon_code == "GIFT1"
        assert order.stock_reserved is True

    def test_empty_session_id_is_stored_as_none(self):
        order = Order.place(customer_id="cust-001", line_items=_lines(), external_session_id="")
        assert order.external_session_id is None

    def test_empty_line_items_rejected(self):
        with pytest.raises(ValidationError) as exc:
            Order.place(customer_id="cust-001", line_items=[])
        assert "line_items" in exc.value.messages

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            Order.place(
                customer_id="cust-001",
                line_items=[{"product_id": "prod-001", "quantity": 0, "unit_price": 5.0}],
            )

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            Order.place(
                customer_id="cust-001",
                line_items=[{"product_id": "prod-001", "quantity": 1, "unit_price": -5.0}],
            )

    def test_ownership(self):
        order = Order.place(customer_id="cust-001", line_items=_lines())
        assert order.is_owned_by("cust-001")
        assert not order.is_owned_by("cust-002")


class TestOrderPlacedEvent:
    def test_event_raised(self):
        order = Order.place(customer_id="cust-001", line_items=_lines(), stock_reserved=True)
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.order_id == str(order.id)
        assert event.total_amount == 60.0
        assert event.stock_reserved is True

    def test_event_carries_line_items(self):
        order = Order.place(customer_id="cust-001", line_items=_lines())
        lines = json.loads(order._events[0].line_items)
        assert lines == [
            {"product_id": "prod-001", "quantity": 2, "unit_price": 25.0},
            {"product_id": "prod-002", "quantity": 1, "unit_price": 10.0},
        ]


class TestChosenIdentity:
    def test_order_and_lines_take_derived_ids(self):
        order = Order.place(customer_id="cust-001", line_items=_lines(), order_id="order-from-session")
        assert order.id == "order-from-session"
        assert [item.id for item in order.ordered_line_items()] == ["order-from-session-0", "order-from-session-1"]


class TestLineItemsAreFixed:
    def test_adding_a_line_after_placement_rejected(self):
        order = Order.place(customer_id="cust-001", line_items=_lines())
        with pytest.raises(ValidationError) as exc:
            order.add_line_items(LineItem(product_id="prod-003", quantity=1, unit_price=5.0, position=2))
        assert "line_items" in exc.value.messages

    def test_removing_a_line_after_placement_rejected(self):
        order = Order.place(customer_id="cust-001", line_items=_lines())
        with pytest.raises(ValidationError):
            order.remove_line_items(order.ordered_line_items()[0])

    def test_persisted_order_rejects_new_lines(self):
        order = Order.place(customer_id="cust-001", line_items=_lines())
        repo = current_domain.repository_for(Order)
        repo.add(order)

        reloaded = repo.get(order.id)
        with pytest.raises(ValidationError):
            reloaded.add_line_items(LineItem(product_id="prod-003", quantity=1, unit_price=5.0, position=2))

        assert len(repo.get(order.id).line_items) == 2

    def test_status_changes_still_allowed(self):
        order = Order.place(customer_id="cust-001", line_items=_lines())
        repo = current_domain.repository_for(Order)
        repo.add(order)

        reloaded = repo.get(order.id)
        reloaded.change_status(OrderStatus.APPROVED, changed_by="admin-001")
        repo.add(reloaded)
        assert repo.get(order.id).status == OrderStatus.APPROVED.value
