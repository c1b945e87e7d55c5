"""Domain events for the Coupon aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Coupon")
class CouponIssued:
    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    customer_id = Identifier(required=True)
    discount_percentage = Integer(required=True)
    expires_at = DateTime(required=True)
    issued_at = DateTime(required=True)


@ordering.event(part_of="Coupon")
class CouponDeactivated:
    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    customer_id = Identifier(required=True)
    reason = String(required=True)
    deactivated_at = DateTime(required=True)
