"""
Booking domain errors.

Each error carries a machine-readable ``code`` that clients can switch on,
and the HTTP status the API layer answers with. Services raise them; the
handlers registered in ``spa_booking.main`` turn them into JSON responses.
"""
from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base class for every error the booking API reports to callers."""

    code = "Internal"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidInputError(BookingError):
    code = "InvalidInput"
    status_code = 400
    default_message = "Invalid input"


class ServiceNotFoundError(BookingError):
    code = "ServiceNotFound"
    status_code = 404
    default_message = "Service not found"


class ServiceInactiveError(BookingError):
    code = "ServiceInactive"
    status_code = 404
    default_message = "Service is not currently available"


class PastDateError(BookingError):
    code = "PastDate"
    status_code = 400
    default_message = "Reservations must start in the future"


class OutsideBusinessHoursError(BookingError):
    code = "OutsideBusinessHours"
    status_code = 409
    default_message = "The selected time is outside business hours"


class SlotUnavailableError(BookingError):
    code = "SlotUnavailable"
    status_code = 409
    default_message = "This time slot was just taken. Please choose another one."


class InvalidRangeError(BookingError):
    code = "InvalidRange"
    status_code = 400
    default_message = "The end of the period must be after its start"


class OverlappingBlockError(BookingError):
    code = "OverlappingBlock"
    status_code = 409
    default_message = "An active block already exists in the selected period"


class InvalidTransitionError(BookingError):
    code = "InvalidTransition"
    status_code = 409
    default_message = "This status change is not allowed"


class NotFoundError(BookingError):
    code = "NotFound"
    status_code = 404
    default_message = "Not found"


class InternalError(BookingError):
    pass
