"""Coupon validation, redemption and gift issuance.

These run as plain functions rather than command handlers: validating an
expired coupon must persist its deactivation *and* reject the request, which
a handler's unit of work would roll back along with the error.
"""

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.config import get_settings
from ordering.coupon.coupon import Coupon

logger = structlog.get_logger(__name__)


def current_coupon(customer_id):
    """The customer's active coupon, or None."""
    return current_domain.repository_for(Coupon).find_active_for_customer(customer_id)


def redeemable_coupon(code, customer_id):
    """Coupon usable at checkout, or None when unknown, inactive or expired."""
    if not code:
        return None
    coupon = current_domain.repository_for(Coupon).find_by_code(code)
    if coupon is None or str(coupon.customer_id) != str(customer_id):
        return None
    return coupon if coupon.is_redeemable() else None


def validate_coupon(code, customer_id):
    """Check a coupon for the customer. Expired coupons are deactivated."""
    repo = current_domain.repository_for(Coupon)
    coupon = repo.find_by_code(code)
    if coupon is None or not coupon.is_active or str(coupon.customer_id) != str(customer_id):
        raise ValidationError({"code": ["Invalid or inactive coupon"]})

    if coupon.is_expired():
        coupon.deactivate(reason="expired")
        repo.add(coupon)
        logger.info("expired_coupon_deactivated", code=code, customer_id=str(customer_id))
        raise ValidationError({"code": ["Coupon has expired"]})

    return {"code": coupon.code, "discount_percentage": coupon.discount_percentage}


def deactivate_coupon(code, customer_id, reason="redeemed"):
    """Deactivate a customer's coupon. Missing or inactive coupons are a no-op."""
    repo = current_domain.repository_for(Coupon)
    coupon = repo.find_by_code(code)
    if coupon is None or str(coupon.customer_id) != str(customer_id):
        logger.info("coupon_deactivation_skipped", code=code, customer_id=str(customer_id))
        return False

    if coupon.deactivate(reason=reason):
        repo.add(coupon)
        return True
    return False


def issue_gift_coupon(customer_id):
    """Replace the customer's coupons with a fresh gift coupon."""
    settings = get_settings()
    repo = current_domain.repository_for(Coupon)

    for existing in repo.find_for_customer(customer_id):
        if existing.deactivate(reason="replaced"):
            repo.add(existing)

    coupon = Coupon.issue(
        customer_id=customer_id,
        discount_percentage=settings.gift_coupon_percentage,
        validity_days=settings.gift_coupon_validity_days,
    )
    repo.add(coupon)
    logger.info("gift_coupon_issued", customer_id=str(customer_id), code=coupon.code)
    return coupon
