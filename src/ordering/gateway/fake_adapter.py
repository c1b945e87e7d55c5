"""Configurable fake payment provider for development and testing.

This adapter simulates hosted checkout without any external calls.
Sessions start unpaid; tests (or the /checkout/provider/pay endpoint
outside production) mark them paid, mirroring a customer completing the
hosted payment page.
"""

import json
from uuid import uuid4

from protean.exceptions import ObjectNotFoundError

from ordering.gateway.port import CheckoutSession, PaymentProvider, SessionLineItem, WebhookEvent

TEST_SIGNATURE = "test-signature"


class FakePaymentProvider(PaymentProvider):
    """In-memory hosted checkout."""

    def __init__(self) -> None:
        self.sessions: dict[str, CheckoutSession] = {}
        self.calls: list[dict] = []

    def create_session(
        self,
        line_items: list[SessionLineItem],
        metadata: dict,
        success_url: str,
        cancel_url: str,
        discount_percentage: int | None = None,
    ) -> CheckoutSession:
        self.calls.append(
            {
                "method": "create_session",
                "line_items": line_items,
                "metadata": metadata,
                "success_url": success_url,
                "cancel_url": cancel_url,
                "discount_percentage": discount_percentage,
            }
        )

        subtotal = sum(item.unit_amount * item.quantity for item in line_items)
        discount = round(subtotal * discount_percentage / 100) if discount_percentage else 0
        session_id = f"cs_test_{uuid4().hex[:24]}"
        session = CheckoutSession(
            session_id=session_id,
            paid=False,
            amount_total=subtotal - discount,
            metadata={key: str(value) for key, value in metadata.items()},
            url=f"https://checkout.fake/pay/{session_id}",
            payment_status="unpaid",
        )
        self.sessions[session_id] = session
        return session

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        self.calls.append({"method": "retrieve_session", "session_id": session_id})
        try:
            return self.sessions[session_id]
        except KeyError:
            raise ObjectNotFoundError(f"Checkout session {session_id} does not exist") from None

    def mark_paid(self, session_id: str) -> CheckoutSession:
        """Simulate the customer completing payment."""
        session = self.retrieve_session(session_id)
        paid = CheckoutSession(
            session_id=session.session_id,
            paid=True,
            amount_total=session.amount_total,
            metadata=session.metadata,
            url=session.url,
            payment_status="paid",
        )
        self.sessions[session_id] = paid
        return paid

    def add_session(self, session: CheckoutSession) -> None:
        """Register a pre-built session (useful for tests)."""
        self.sessions[session.session_id] = session

    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent | None:
        if signature != TEST_SIGNATURE:
            return None

        event = json.loads(payload)
        session = event.get("data", {}).get("object", {})
        return WebhookEvent(event_type=event.get("type", ""), session_id=session.get("id"))
