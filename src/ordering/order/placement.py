"""Direct order placement — command and handler.

Each line item is reserved against the inventory ledger in request order.
Successful reservations are recorded; if a later line cannot be reserved,
the recorded ones are released in reverse order before the failure is
re-raised, so a rejected order leaves every product's stock as it was.
The order is persisted only after all reservations succeed.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.inventory.ledger import StockLedger
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    line_items = Text(required=True)  # JSON: list of {product_id, quantity}


def parse_line_items(raw):
    """Decode and validate requested lines: non-empty, quantity >= 1."""
    lines = json.loads(raw) if isinstance(raw, str) else raw
    if not lines:
        raise ValidationError({"line_items": ["An order must contain at least one line item"]})

    parsed = []
    for index, line in enumerate(lines):
        product_id = line.get("product_id")
        quantity = line.get("quantity")
        if not product_id:
            raise ValidationError({"line_items": [f"Line {index}: product_id is required"]})
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError({"line_items": [f"Line {index}: quantity must be a whole number of at least 1"]})
        parsed.append({"product_id": str(product_id), "quantity": quantity})
    return parsed


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines = parse_line_items(command.line_items)
        ledger = StockLedger()

        reserved = []
        priced = []
        try:
            for line in lines:
                product = ledger.reserve(
                    line["product_id"],
                    line["quantity"],
                    reference=f"customer:{command.customer_id}",
                )
                reserved.append(line)
                priced.append({**line, "unit_price": product.unit_price})
        except Exception:
            self._compensate(ledger, reserved)
            raise

        order = Order.place(
            customer_id=command.customer_id,
            line_items=priced,
            stock_reserved=True,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            customer_id=str(command.customer_id),
            line_count=len(priced),
            total_amount=order.total_amount,
        )
        return str(order.id)

    @staticmethod
    def _compensate(ledger, reserved):
        for line in reversed(reserved):
            try:
                ledger.release(line["product_id"], line["quantity"], reference="compensation")
            except Exception:
                logger.exception(
                    "compensation_release_failed",
                    product_id=line["product_id"],
                    quantity=line["quantity"],
                )
        if reserved:
            logger.warning("order_placement_compensated", released_lines=len(reserved))
