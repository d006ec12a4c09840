"""
Failure kinds raised by the booking engine.

Every error carries a stable ``kind`` identifier and the HTTP status the API
layer maps it to. Registries never raise these; they return ``None`` and the
engine decides which kind applies.
"""
from typing import Optional


class BookingError(Exception):
    kind = "booking_error"
    status_code = 400
    default_message = "Booking request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class SeatAlreadyBooked(BookingError):
    """A live booking already exists for the (showtime, seat) pair."""
    kind = "seat_already_booked"
    status_code = 409
    default_message = "Seat already booked for this showtime"


class SeatUnavailable(BookingError):
    """The seat's availability flag is false although no booking matches."""
    kind = "seat_unavailable"
    status_code = 409
    default_message = "Seat is marked unavailable"


class BookingConflict(BookingError):
    """A concurrent transaction kept winning; retries were exhausted."""
    kind = "booking_conflict"
    status_code = 409
    default_message = "Booking conflicted with a concurrent request, please retry"


class NotFoundError(BookingError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class SeatNotFound(NotFoundError):
    kind = "seat_not_found"
    default_message = "Seat not found"


class ShowtimeNotFound(NotFoundError):
    kind = "showtime_not_found"
    default_message = "Showtime not found"


class UserNotFound(NotFoundError):
    kind = "user_not_found"
    default_message = "User not found"


class BookingNotFound(NotFoundError):
    kind = "booking_not_found"
    default_message = "Booking not found"


class HallNotFound(NotFoundError):
    kind = "hall_not_found"
    default_message = "Hall not found"
