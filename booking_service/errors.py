"""
Booking service errors.

Every failure the service reports to a caller is a ``BookingError``. Each
subclass carries the HTTP status it maps to, so the Flask layer renders
them without a lookup table. Weather and notification failures are absorbed
by their clients and never show up here.
"""


class BookingError(Exception):
    status_code = 500
    error = "Booking service error"

    def __init__(self, message=None, **extra):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.extra = extra

    def to_dict(self):
        body = {"success": False, "error": self.message}
        body.update(self.extra)
        return body


class ValidationFailed(BookingError):
    status_code = 400
    error = "Validation failed"


class InvalidDate(BookingError):
    status_code = 400
    error = "Booking date must be a valid YYYY-MM-DD date in the future"


class Unauthenticated(BookingError):
    status_code = 401
    error = "Invalid or expired token"


class IdentityUnavailable(BookingError):
    status_code = 503
    error = "Auth service unavailable"


class RoomNotFound(BookingError):
    status_code = 404
    error = "Room not found"


class RoomInactive(BookingError):
    status_code = 400
    error = "Room is not available for booking"


class CatalogUnavailable(BookingError):
    status_code = 503
    error = "Room service unavailable"


class SlotAlreadyBooked(BookingError):
    status_code = 409
    error = "Room is already booked for this date"

    def __init__(self, booking_id=None, booking_date=None, status=None):
        super().__init__(
            existing_booking={"id": booking_id, "date": booking_date, "status": status}
        )
        self.booking_id = booking_id
        self.booking_date = booking_date
        self.status = status


class Forbidden(BookingError):
    status_code = 403
    error = "Access denied"


class NotFound(BookingError):
    status_code = 404
    error = "Booking not found"


class AlreadyCancelled(BookingError):
    status_code = 400
    error = "Booking is already cancelled"


class CannotCancelCompleted(BookingError):
    status_code = 400
    error = "Cannot cancel completed bookings"


class StoreUnavailable(BookingError):
    status_code = 503
    error = "Booking store unavailable"


class DuplicateSlot(Exception):
    """Raised by the store when the active-slot unique index rejects a write."""
