"""Checkout reconciliation — turns a paid provider session into one Order.

Both the client's confirm call and the provider webhook end up here, and
either may arrive more than once or at the same time. The order takes an
identity derived from the session id, so two first confirmations that race
write the same order record rather than two. The order store also rejects a
second order for the same session with ``DuplicateSession``, and the loser
simply returns the winner's order.

A confirm made on behalf of a customer only sees sessions that customer
opened; the webhook confirms without one.
"""

import json
from uuid import NAMESPACE_URL, uuid5

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.coupon.redemption import deactivate_coupon
from ordering.domain import ordering
from ordering.errors import DuplicateSession, Forbidden, PaymentNotCompleted
from ordering.gateway import get_provider
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ConfirmCheckout:
    session_id = String(required=True, max_length=255)
    customer_id = Identifier()  # Caller the session must belong to, if any


def order_id_for_session(session_id):
    """The identity of the order a checkout session reconciles into."""
    return str(uuid5(NAMESPACE_URL, f"checkout-session/{session_id}"))


def line_items_from_metadata(metadata):
    """Rebuild order lines from the products captured at session creation."""
    try:
        products = json.loads(metadata.get("products") or "[]")
        return [
            {
                "product_id": str(product["id"]),
                "quantity": int(product["quantity"]),
                "unit_price": float(product["price"]),
            }
            for product in products
        ]
    except (TypeError, ValueError, KeyError) as exc:
        raise ValidationError({"metadata": [f"Checkout session metadata is malformed: {exc}"]}) from exc


@ordering.command_handler(part_of=Order)
class CheckoutReconciliationHandler:
    @handle(ConfirmCheckout)
    def confirm_checkout(self, command):
        session = get_provider().retrieve_session(command.session_id)
        metadata = session.metadata or {}
        customer_id = metadata.get("customer_id")
        if command.customer_id and str(command.customer_id) != str(customer_id):
            logger.warning(
                "checkout_confirm_forbidden",
                session_id=session.session_id,
                customer_id=str(command.customer_id),
            )
            raise Forbidden(f"Checkout session {session.session_id} belongs to another customer")

        if not session.paid:
            raise PaymentNotCompleted(command.session_id, session.payment_status)

        repo = current_domain.repository_for(Order)
        existing = repo.find_by_session_id(session.session_id)
        if existing is not None:
            logger.debug("checkout_already_reconciled", session_id=session.session_id, order_id=str(existing.id))
            return existing.to_dict()

        if not customer_id:
            raise ValidationError({"metadata": ["Checkout session has no customer"]})

        coupon_code = metadata.get("coupon_code") or None
        order = Order.place(
            customer_id=customer_id,
            line_items=line_items_from_metadata(metadata),
            total_amount=session.amount_total / 100,
            external_session_id=session.session_id,
            coupon_code=coupon_code,
            stock_reserved=False,
            order_id=order_id_for_session(session.session_id),
        )
        try:
            repo.add(order)
        except DuplicateSession:
            winner = repo.find_by_session_id(session.session_id)
            logger.info("checkout_reconciled_concurrently", session_id=session.session_id, order_id=str(winner.id))
            return winner.to_dict()

        if coupon_code:
            deactivate_coupon(coupon_code, customer_id)

        logger.info(
            "checkout_reconciled",
            session_id=session.session_id,
            order_id=str(order.id),
            total_amount=order.total_amount,
        )
        return order.to_dict()
