"""Coupon lookups."""

from ordering.coupon.coupon import Coupon
from ordering.domain import ordering


@ordering.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code: str) -> Coupon | None:
        return self._dao.query.filter(code=code).all().first

    def find_for_customer(self, customer_id: str) -> list[Coupon]:
        return self._dao.query.filter(customer_id=str(customer_id)).order_by("-created_at").all().items

    def find_active_for_customer(self, customer_id: str) -> Coupon | None:
        return (
            self._dao.query.filter(customer_id=str(customer_id), is_active=True)
            .order_by("-created_at")
            .all()
            .first
        )
