"""Order store — custom repository for the Order aggregate."""

import structlog
from protean.exceptions import ValidationError

from ordering.domain import ordering
from ordering.errors import DuplicateSession
from ordering.order.order import Order

logger = structlog.get_logger(__name__)

# Fields whose uniqueness violation means "this session already has an order"
_SESSION_KEYS = {"id", "external_session_id"}


@ordering.repository(part_of=Order)
class OrderRepository:
    """Persists orders and answers the lookups the ordering flows need.

    The store does not judge status transitions; it only guarantees that
    one payment session maps to at most one order. ``external_session_id``
    is a unique field, so a relational deployment carries a unique index on
    it, and reconciled orders take an identity derived from their session.
    A uniqueness failure for a session-backed order is reported as
    ``DuplicateSession``.
    """

    def add(self, order: Order) -> Order:
        try:
            return super().add(order)
        except ValidationError as exc:
            fields = set(exc.messages) if isinstance(exc.messages, dict) else set()
            if not order.external_session_id or not _SESSION_KEYS & fields:
                raise
            logger.info(
                "duplicate_session_rejected",
                session_id=order.external_session_id,
                order_id=str(order.id),
            )
            raise DuplicateSession(order.external_session_id) from exc

    def find_by_session_id(self, session_id: str) -> Order | None:
        """Exact lookup by payment session id."""
        return self._dao.query.filter(external_session_id=session_id).all().first

    def find_by_customer(self, customer_id: str) -> list[Order]:
        """A customer's orders, newest first."""
        return (
            self._dao.query.filter(customer_id=str(customer_id))
            .order_by("-created_at")
            .all()
            .items
        )

    def find_all(self, limit: int = 50, offset: int = 0) -> list[Order]:
        """All orders, newest first, one page at a time."""
        return self._dao.query.order_by("-created_at").offset(offset).limit(limit).all().items
