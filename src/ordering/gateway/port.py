"""Payment provider port (abstract interface).

Defines the contract that hosted-checkout adapters must implement. This
enables swapping between FakePaymentProvider (dev/test) and
StripePaymentProvider (production) without changing any domain or
application code.

Amounts cross this boundary in minor units (cents), as the provider
reports them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class SessionLineItem:
    """One priced line of a hosted checkout session."""

    product_id: str
    title: str
    quantity: int
    unit_amount: int  # cents


@dataclass(frozen=True)
class CheckoutSession:
    """Provider view of a checkout session."""

    session_id: str
    paid: bool
    amount_total: int  # cents, after discounts
    metadata: dict = field(default_factory=dict)
    url: str | None = None
    payment_status: str | None = None


@dataclass(frozen=True)
class WebhookEvent:
    """A verified provider notification."""

    event_type: str
    session_id: str | None = None


class PaymentProvider(ABC):
    """Abstract hosted-checkout provider interface."""

    @abstractmethod
    def create_session(
        self,
        line_items: list[SessionLineItem],
        metadata: dict,
        success_url: str,
        cancel_url: str,
        discount_percentage: int | None = None,
    ) -> CheckoutSession:
        """Open a hosted checkout session."""
        ...

    @abstractmethod
    def retrieve_session(self, session_id: str) -> CheckoutSession:
        """Fetch the current state of a checkout session."""
        ...

    @abstractmethod
    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent | None:
        """Verify a webhook payload and parse it.

        Returns None when the signature does not verify.
        """
        ...
