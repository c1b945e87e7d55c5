"""Stripe payment provider adapter.

Uses the stripe-python SDK to open hosted Checkout Sessions, read them back
for reconciliation, and verify webhook signatures. SDK errors are translated
at this boundary so callers only ever see ordering or Protean errors:

- resource_missing        -> ObjectNotFoundError
- other invalid requests  -> ValidationError
- network / rate / server -> PaymentProviderUnavailable
"""

import stripe
import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.errors import PaymentProviderUnavailable
from ordering.gateway.port import CheckoutSession, PaymentProvider, SessionLineItem, WebhookEvent

logger = structlog.get_logger(__name__)


class StripePaymentProvider(PaymentProvider):
    """Production Stripe adapter."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        timeout: float = 10.0,
        max_network_retries: int = 2,
        currency: str = "usd",
    ) -> None:
        self.webhook_secret = webhook_secret
        self.currency = currency
        self._client = stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout),
            max_network_retries=max_network_retries,
        )

    def create_session(
        self,
        line_items: list[SessionLineItem],
        metadata: dict,
        success_url: str,
        cancel_url: str,
        discount_percentage: int | None = None,
    ) -> CheckoutSession:
        params = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {"name": item.title or "Product"},
                        "unit_amount": item.unit_amount,
                    },
                    "quantity": item.quantity,
                }
                for item in line_items
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": {key: str(value) for key, value in metadata.items()},
        }

        if discount_percentage:
            coupon = self._call(
                self._client.coupons.create,
                params={"percent_off": discount_percentage, "duration": "once"},
            )
            params["discounts"] = [{"coupon": coupon.id}]

        session = self._call(self._client.checkout.sessions.create, params=params)
        return self._to_checkout_session(session)

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        session = self._call(self._client.checkout.sessions.retrieve, session_id)
        return self._to_checkout_session(session)

    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent | None:
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError:
            logger.warning("stripe_webhook_signature_rejected")
            return None
        except ValueError as exc:
            raise ValidationError({"payload": ["Webhook payload is not valid JSON"]}) from exc

        session_id = None
        if event.type.startswith("checkout.session."):
            session_id = event.data.object.id
        return WebhookEvent(event_type=event.type, session_id=session_id)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def _to_checkout_session(session) -> CheckoutSession:
        return CheckoutSession(
            session_id=session.id,
            paid=session.payment_status == "paid",
            amount_total=session.amount_total or 0,
            metadata=dict(session.metadata or {}),
            url=session.url,
            payment_status=session.payment_status,
        )

    @staticmethod
    def _call(method, *args, **kwargs):
        try:
            return method(*args, **kwargs)
        except stripe.InvalidRequestError as exc:
            if exc.code == "resource_missing":
                raise ObjectNotFoundError(exc.user_message or str(exc)) from exc
            raise ValidationError({"payment": [exc.user_message or str(exc)]}) from exc
        except (stripe.APIConnectionError, stripe.RateLimitError) as exc:
            logger.warning("stripe_unavailable", error=str(exc))
            raise PaymentProviderUnavailable("Payment provider is temporarily unavailable") from exc
        except stripe.StripeError as exc:
            logger.error("stripe_request_failed", error=str(exc), http_status=exc.http_status)
            raise PaymentProviderUnavailable("Payment provider request failed") from exc
