"""Coupon aggregate — per-customer percentage discounts.

A coupon is redeemable while it is active and unexpired. Deactivation is
idempotent: deactivating an inactive coupon changes nothing and raises no
event, so checkout reconciliation can safely repeat it.
"""

import secrets
import string
from datetime import UTC, datetime, timedelta

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from ordering.coupon.events import CouponDeactivated, CouponIssued
from ordering.domain import ordering

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_code(prefix="GIFT", length=6):
    return prefix + "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=100, unique=True)
    customer_id = Identifier(required=True)
    discount_percentage = Integer(required=True, min_value=1, max_value=100)
    expires_at = DateTime(required=True)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def issue(cls, customer_id, discount_percentage, validity_days, code=None, now=None):
        if validity_days is None or validity_days < 1:
            raise ValidationError({"expires_at": ["A coupon must be valid for at least one day"]})

        now = now or datetime.now(UTC)
        coupon = cls(
            code=code or generate_code(),
            customer_id=customer_id,
            discount_percentage=discount_percentage,
            expires_at=now + timedelta(days=validity_days),
            is_active=True,
            created_at=now,
        )
        coupon.raise_(
            CouponIssued(
                coupon_id=str(coupon.id),
                code=coupon.code,
                customer_id=str(customer_id),
                discount_percentage=discount_percentage,
                expires_at=coupon.expires_at,
                issued_at=now,
            )
        )
        return coupon

    def is_expired(self, now=None):
        now = now or datetime.now(UTC)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at <= now

    def is_redeemable(self, now=None):
        return bool(self.is_active) and not self.is_expired(now)

    def deactivate(self, reason="redeemed"):
        """Mark the coupon inactive. A no-op when it already is."""
        if not self.is_active:
            return False

        self.is_active = False
        self.raise_(
            CouponDeactivated(
                coupon_id=str(self.id),
                code=self.code,
                customer_id=str(self.customer_id),
                reason=reason,
                deactivated_at=datetime.now(UTC),
            )
        )
        return True
