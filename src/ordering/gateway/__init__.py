"""Payment provider factory.

Provides get_provider() / set_provider() to swap implementations:
- FakePaymentProvider for development and testing
- StripePaymentProvider when PAYMENT_PROVIDER=stripe
"""

from ordering.config import get_settings
from ordering.gateway.fake_adapter import FakePaymentProvider
from ordering.gateway.port import PaymentProvider

_current_provider: PaymentProvider | None = None


def _build_provider() -> PaymentProvider:
    settings = get_settings()
    if settings.payment_provider == "stripe":
        from ordering.gateway.stripe_adapter import StripePaymentProvider

        return StripePaymentProvider(
            api_key=settings.stripe_api_key,
            webhook_secret=settings.stripe_webhook_secret,
            timeout=settings.payment_provider_timeout,
            max_network_retries=settings.payment_provider_max_retries,
            currency=settings.currency,
        )
    return FakePaymentProvider()


def get_provider() -> PaymentProvider:
    """Return the current payment provider. Defaults to the configured adapter."""
    global _current_provider
    if _current_provider is None:
        _current_provider = _build_provider()
    return _current_provider


def set_provider(provider: PaymentProvider) -> None:
    """Override the active payment provider (useful for tests)."""
    global _current_provider
    _current_provider = provider


def reset_provider() -> None:
    """Reset to the configured provider."""
    global _current_provider
    _current_provider = None
