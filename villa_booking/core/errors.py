from __future__ import annotations

from typing import Any


class BookingError(Exception):
    """Base class for business-rule failures surfaced to API callers.

    Each subclass carries a stable ``code`` (the error kind reported to the
    client) and the HTTP status the API layer answers with.
    """

    code = "Error"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, **context: Any) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.code, "detail": self.message}
        if self.context:
            body["context"] = self.context
        return body


class NotFoundError(BookingError):
    code = "NotFound"
    status_code = 404
    default_message = "Not found"


class ValidationError(BookingError):
    code = "ValidationError"
    status_code = 400
    default_message = "Invalid request"


class InvalidDateRangeError(ValidationError):
    code = "InvalidDateRange"
    default_message = "Check-out date must be after check-in date"


class InvalidStatusTransitionError(ValidationError):
    code = "InvalidStatusTransition"
    default_message = "Booking status change is not allowed"


class CapacityExceededError(BookingError):
    code = "CapacityExceeded"
    status_code = 400
    default_message = "Number of guests exceeds the villa capacity"


class BlackedOutError(BookingError):
    code = "BlackedOut"
    status_code = 409
    default_message = "Villa is closed on one of the selected dates"


class ConflictError(BookingError):
    code = "Conflict"
    status_code = 409
    default_message = "Villa not available for selected dates"


class AlreadyCancelledError(BookingError):
    code = "AlreadyCancelled"
    status_code = 400
    default_message = "Booking has already been cancelled"


class TooLateToCancelError(BookingError):
    code = "TooLateToCancel"
    status_code = 400
    default_message = "Bookings cannot be cancelled on or after the check-in date"


class PriceMismatchError(BookingError):
    code = "PriceMismatch"
    status_code = 409
    default_message = "Price has changed, please review the new quote"


class ServiceUnavailableError(BookingError):
    code = "ServiceUnavailable"
    status_code = 503
    default_message = "Service temporarily unavailable, please retry"


class ActiveBookingsError(BookingError):
    code = "ActiveBookings"
    status_code = 409
    default_message = "Villa has active bookings and cannot be deleted"


class SlugTakenError(BookingError):
    code = "SlugTaken"
    status_code = 409
    default_message = "Villa slug is already in use"


class ImageRejectedError(ValidationError):
    code = "ImageRejected"
    default_message = "Unsupported image"
