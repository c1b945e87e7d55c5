"""Error kinds raised by the ordering core.

Input-shape problems use Protean's ``ValidationError`` and missing records
use Protean's ``ObjectNotFoundError``. The types below cover the business
rejections and infrastructure failures that need their own HTTP status.
"""

from protean.exceptions import ValidationError


class OrderingError(Exception):
    """Base class for ordering errors that are not plain validation failures."""

    code = "ordering_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class InsufficientStock(OrderingError):
    """A product does not have enough stock to back the requested quantity."""

    code = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}: {available} available, {requested} requested"
        )
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


class DuplicateSession(OrderingError):
    """Another order already carries this payment session id."""

    code = "duplicate_session"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"An order for checkout session {session_id} already exists")
        self.session_id = session_id


class PaymentNotCompleted(OrderingError):
    """The provider reports the checkout session as unpaid."""

    code = "payment_not_completed"

    def __init__(self, session_id: str, payment_status: str | None = None) -> None:
        super().__init__(f"Payment for checkout session {session_id} is not completed")
        self.session_id = session_id
        self.payment_status = payment_status


class Forbidden(OrderingError):
    """The acting user may not perform this operation on the order."""

    code = "forbidden"


class StorageUnavailable(OrderingError):
    """A store or external service could not complete the request. Retry with backoff."""

    code = "storage_unavailable"


class PaymentProviderUnavailable(StorageUnavailable):
    """The payment provider timed out, rate limited us, or failed."""

    code = "payment_provider_unavailable"


class InvalidTransition(ValidationError):
    """The order cannot move from its current status to the requested one."""

    def __init__(self, current, target) -> None:
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot transition from {current.value} to {target.value}"]})
