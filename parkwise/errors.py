"""
Domain errors raised by the booking and lot services.

Each error carries the HTTP status it maps to and a stable string code that
ends up in the ``status_code`` field of the failure payload.
"""


class ParkwiseError(Exception):
    http_status = 400
    code = "OPERATION_FAILED"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return cls.__name__


class NotFound(ParkwiseError):
    http_status = 404
    code = "NOT_FOUND"


class Unauthorized(ParkwiseError):
    http_status = 401
    code = "AUTHENTICATION_REQUIRED"

    @classmethod
    def default_message(cls) -> str:
        return "Invalid or expired token"


class Forbidden(ParkwiseError):
    http_status = 403
    code = "FORBIDDEN"

    @classmethod
    def default_message(cls) -> str:
        return "You do not have permission to perform this action"


class CapacityError(ParkwiseError):
    http_status = 409
    code = "CAPACITY_ERROR"


class CapacityExceeded(CapacityError):
    """A slot was requested from a lot with no available slots."""
    code = "CAPACITY_EXCEEDED"

    @classmethod
    def default_message(cls) -> str:
        return "No available slots in this parking lot"


class CapacityUnderflow(CapacityError):
    """The counter would drop below zero. Never expected to surface."""
    http_status = 500
    code = "CAPACITY_UNDERFLOW"


class CapacityOverflow(CapacityError):
    """The counter would exceed the lot's total slots."""
    code = "CAPACITY_OVERFLOW"


class InvalidTransition(ParkwiseError):
    http_status = 409
    code = "INVALID_TRANSITION"


class LotInUse(ParkwiseError):
    http_status = 409
    code = "LOT_IN_USE"


class PaymentDeclined(ParkwiseError):
    http_status = 402
    code = "PAYMENT_DECLINED"

    @classmethod
    def default_message(cls) -> str:
        return "Payment authorization was declined"


class PartialWriteFailure(ParkwiseError):
    """A storage write failed after an earlier write of the same operation.

    The session is rolled back before this is raised, so the operation can
    be retried as a whole.
    """
    http_status = 503
    code = "PARTIAL_WRITE_FAILURE"
