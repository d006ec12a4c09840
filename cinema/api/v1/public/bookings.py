from typing import List

from fastapi import APIRouter, Depends

from cinema.api.deps import ensure_owner_or_admin, get_booking_engine, get_current_user
from cinema.models.user import User
from cinema.schemas.booking import BookingCreate, Booking as BookingSchema
from cinema.schemas.common import DeletedResponse
from cinema.services.booking_engine import BookingEngine

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ---------------------------------------------------------------------------
# POST /bookings: reserve a seat for a showtime
# ---------------------------------------------------------------------------


@router.post("", response_model=BookingSchema)
def create_booking(
    data: BookingCreate,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_user),
):
    """
    Reserve one seat for one showtime.

    - 404 when the user, showtime or seat label does not resolve.
    - 409 `seat_already_booked` when a live booking holds the seat for this showtime.
    - 409 `seat_unavailable` when the seat is flagged unavailable without a booking.
    """
    ensure_owner_or_admin(current_user, data.user_id)
    return engine.reserve(data.user_id, data.showtime_id, data.seat_label, data.price)


# ---------------------------------------------------------------------------
# GET /bookings/user/{user_id}
# ---------------------------------------------------------------------------


@router.get("/user/{user_id}", response_model=List[BookingSchema])
def list_user_bookings(
    user_id: int,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_user),
):
    """Return a user's live bookings in the order they were made."""
    ensure_owner_or_admin(current_user, user_id)
    return engine.list_by_user(user_id)


# ---------------------------------------------------------------------------
# GET /bookings/{id}
# ---------------------------------------------------------------------------


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(
    booking_id: int,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_user),
):
    booking = engine.get_by_id(booking_id)
    ensure_owner_or_admin(current_user, booking.user_id)
    return booking


# ---------------------------------------------------------------------------
# DELETE /bookings/{id}: cancel
# ---------------------------------------------------------------------------


@router.delete("/{booking_id}", response_model=DeletedResponse)
def cancel_booking(
    booking_id: int,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_user),
):
    """Cancel a booking; the seat becomes bookable again for that showtime."""
    booking = engine.get_by_id(booking_id)
    ensure_owner_or_admin(current_user, booking.user_id)
    engine.cancel(booking_id)
    return DeletedResponse(id=booking_id)
