"""Shared BDD fixtures and step definitions for the Ordering domain."""

import json

import pytest
from ordering.errors import Forbidden, InsufficientStock, InvalidTransition, PaymentNotCompleted
from ordering.inventory.management import RegisterProduct
from ordering.inventory.stock import ProductStock
from ordering.order.lifecycle import TransitionOrder
from ordering.order.order import ActorRole, Order
from ordering.order.placement import PlaceOrder
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from pytest_bdd import given, parsers, then

# Map error names used in feature files to exception classes
_ERROR_CLASSES = {
    "InsufficientStock": InsufficientStock,
    "InvalidTransition": InvalidTransition,
    "Forbidden": Forbidden,
    "PaymentNotCompleted": PaymentNotCompleted,
    "ValidationError": ValidationError,
    "NotFound": ObjectNotFoundError,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def context():
    """Carries ids and captured errors between steps."""
    return {"order_id": None, "error": None, "result": None}


def _place_order(customer_id, lines):
    return current_domain.process(
        PlaceOrder(customer_id=customer_id, line_items=json.dumps(lines)),
        asynchronous=False,
    )


def _transition(order_id, status, actor_id, role):
    return current_domain.process(
        TransitionOrder(order_id=order_id, status=status, actor_id=actor_id, actor_role=role.value),
        asynchronous=False,
    )


@pytest.fixture()
def capture(context):
    """Run a step action, recording a domain error instead of raising it."""

    def _capture(fn, *args, **kwargs):
        try:
            result = fn(*args, **kwargs)
        except (ValidationError, ObjectNotFoundError, InsufficientStock, Forbidden, PaymentNotCompleted) as exc:
            context["error"] = exc
            return None
        context["result"] = result
        return result

    return _capture


@pytest.fixture()
def place_order():
    return _place_order


@pytest.fixture()
def transition():
    return _transition


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{product_id}" priced at {price:f} with {stock:d} units in stock'))
def _(product_id, price, stock):
    current_domain.process(
        RegisterProduct(title=f"Product {product_id}", unit_price=price, stock=stock, product_id=product_id),
        asynchronous=False,
    )


@given(parsers.cfparse('customer "{customer_id}" has placed an order for {quantity:d} of "{product_id}"'))
def _(context, customer_id, quantity, product_id):
    context["order_id"] = _place_order(customer_id, [{"product_id": product_id, "quantity": quantity}])


@given(parsers.cfparse('an admin has moved the order to "{status}"'))
def _(context, status):
    _transition(context["order_id"], status, "admin-001", ActorRole.ADMIN)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('product "{product_id}" has {stock:d} units in stock'))
def _(product_id, stock):
    assert current_domain.repository_for(ProductStock).get(product_id).stock == stock


@then(parsers.cfparse('the order status is "{status}"'))
def _(context, status):
    assert current_domain.repository_for(Order).get(context["order_id"]).status == status


@then(parsers.cfparse("the request fails with {error_name}"))
def _(context, error_name):
    assert isinstance(context["error"], _ERROR_CLASSES[error_name])


@then("the request succeeds")
def _(context):
    assert context["error"] is None


@then(parsers.cfparse("{count:d} orders exist"))
def _(count):
    assert len(current_domain.repository_for(Order).find_all()) == count
