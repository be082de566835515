"""Errors reported by the booking core, each carrying its HTTP status."""

from rest_framework import status


class BookingError(Exception):
    """Base class for every failure reported by the booking core."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "booking request failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BookingError):
    """Malformed or missing input."""

    default_message = "invalid booking request"


class InvalidRangeError(ValidationError):
    """Check-in date or night count does not describe a stay."""

    default_message = "invalid date range"


class ConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "hotel unavailable for requested dates"


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "booking not found"


class ForbiddenError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "booking belongs to another user"


class StorageError(BookingError):
    """The database failed while reading or writing bookings."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "storage unavailable, try again later"
