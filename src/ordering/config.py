"""Application settings for the Ordering domain.

Protean's own configuration (providers, event processing) lives under
``[tool.protean]`` in pyproject.toml, including the version-conflict retry
budget for stock writes. Everything the ordering code needs beyond that
(payment provider credentials, cache location, gift coupon policy) is read
from environment variables here.
"""

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


@dataclass(frozen=True)
class Settings:
    """Environment-driven settings, resolved once per process."""

    environment: str = "development"

    # Payment provider
    payment_provider: str = "fake"  # "fake" or "stripe"
    stripe_api_key: str = ""
    stripe_webhook_secret: str = ""
    payment_provider_timeout: float = 10.0
    payment_provider_max_retries: int = 2
    client_url: str = "http://localhost:5173"
    currency: str = "usd"

    # Catalog cache
    cache_url: str = "memory://"
    cache_ttl_seconds: int = 300
    cache_timeout: float = 2.0

    # Gift coupons issued after large checkouts
    gift_coupon_threshold: float = 200.0
    gift_coupon_percentage: int = 10
    gift_coupon_validity_days: int = 30

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_settings() -> Settings:
    """Build a Settings instance from the current environment."""
    return Settings(
        environment=(os.getenv("PROTEAN_ENV") or "development").lower(),
        payment_provider=os.getenv("PAYMENT_PROVIDER", "fake").lower(),
        stripe_api_key=os.getenv("STRIPE_API_KEY", ""),
        stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET", ""),
        payment_provider_timeout=_env_float("PAYMENT_PROVIDER_TIMEOUT", 10.0),
        payment_provider_max_retries=_env_int("PAYMENT_PROVIDER_MAX_RETRIES", 2),
        client_url=os.getenv("CLIENT_URL", "http://localhost:5173").rstrip("/"),
        currency=os.getenv("CURRENCY", "usd").lower(),
        cache_url=os.getenv("CACHE_URL", "memory://"),
        cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", 300),
        cache_timeout=_env_float("CACHE_TIMEOUT", 2.0),
        gift_coupon_threshold=_env_float("GIFT_COUPON_THRESHOLD", 200.0),
        gift_coupon_percentage=_env_int("GIFT_COUPON_PERCENTAGE", 10),
        gift_coupon_validity_days=_env_int("GIFT_COUPON_VALIDITY_DAYS", 30),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings."""
    return load_settings()
