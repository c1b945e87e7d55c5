"""Hosted checkout sessions — command and handler.

Prices every requested line from the product ledger, applies the customer's
coupon if it is redeemable, and opens a provider session whose metadata is
all the reconciler later needs to rebuild the order. No stock is reserved
for hosted checkout.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.config import get_settings
from ordering.coupon.redemption import issue_gift_coupon, redeemable_coupon
from ordering.domain import ordering
from ordering.gateway import get_provider
from ordering.gateway.port import SessionLineItem
from ordering.inventory.stock import ProductStock
from ordering.order.order import Order
from ordering.order.placement import parse_line_items

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class StartCheckout:
    customer_id = Identifier(required=True)
    line_items = Text(required=True)  # JSON: list of {product_id, quantity}
    coupon_code = String(max_length=100)


def _to_cents(amount):
    return int(round(amount * 100))


@ordering.command_handler(part_of=Order)
class CheckoutSessionHandler:
    @handle(StartCheckout)
    def start_checkout(self, command):
        settings = get_settings()
        lines = parse_line_items(command.line_items)
        products = current_domain.repository_for(ProductStock)

        session_lines = []
        captured = []
        for line in lines:
            product = products.get(line["product_id"])
            session_lines.append(
                SessionLineItem(
                    product_id=str(product.id),
                    title=product.title,
                    quantity=line["quantity"],
                    unit_amount=_to_cents(product.unit_price),
                )
            )
            captured.append(
                {
                    "id": str(product.id),
                    "quantity": line["quantity"],
                    "price": product.unit_price,
                }
            )

        total_cents = sum(item.unit_amount * item.quantity for item in session_lines)
        coupon = redeemable_coupon(command.coupon_code, command.customer_id)
        if coupon is not None:
            total_cents -= round(total_cents * coupon.discount_percentage / 100)

        metadata = {
            "customer_id": str(command.customer_id),
            "coupon_code": coupon.code if coupon else "",
            "products": json.dumps(captured),
        }
        session = get_provider().create_session(
            line_items=session_lines,
            metadata=metadata,
            success_url=f"{settings.client_url}/purchase-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.client_url}/purchase-cancel",
            discount_percentage=coupon.discount_percentage if coupon else None,
        )

        total_amount = total_cents / 100
        logger.info(
            "checkout_session_created",
            session_id=session.session_id,
            customer_id=str(command.customer_id),
            total_amount=total_amount,
            coupon_code=metadata["coupon_code"] or None,
        )

        if total_amount >= settings.gift_coupon_threshold:
            issue_gift_coupon(command.customer_id)

        return {
            "session_id": session.session_id,
            "url": session.url,
            "total_amount": total_amount,
        }
