"""BDD tests for order placement."""

from ordering.order.order import Order
from protean import current_domain
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/order_placement.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('customer "{customer_id}" orders {quantity:d} of "{product_id}"'))
def _(context, capture, place_order, customer_id, quantity, product_id):
    order_id = capture(place_order, customer_id, [{"product_id": product_id, "quantity": quantity}])
    if order_id:
        context["order_id"] = order_id


@when(
    parsers.cfparse(
        'customer "{customer_id}" orders a basket of {first_qty:d} "{first_id}" and {second_qty:d} "{second_id}"'
    )
)
def _(capture, place_order, customer_id, first_qty, first_id, second_qty, second_id):
    capture(
        place_order,
        customer_id,
        [
            {"product_id": first_id, "quantity": first_qty},
            {"product_id": second_id, "quantity": second_qty},
        ],
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the order total is {total:f}"))
def _(context, total):
    assert current_domain.repository_for(Order).get(context["order_id"]).total_amount == total
