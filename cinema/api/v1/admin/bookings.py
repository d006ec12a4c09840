from typing import List

from fastapi import APIRouter, Depends

from cinema.api.deps import get_booking_engine, get_current_admin_user
from cinema.models.user import User
from cinema.schemas.booking import Booking as BookingSchema, BookingUpdate
from cinema.services.booking_engine import BookingEngine

router = APIRouter(prefix="/admin/bookings", tags=["Admin - Bookings"])


@router.get("", response_model=List[BookingSchema])
def list_all_bookings(
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_admin_user),
):
    """Return every live booking across all showtimes."""
    return engine.list_all()


@router.patch("/{booking_id}", response_model=BookingSchema)
def update_booking(
    booking_id: int,
    data: BookingUpdate,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Correct a booking's price and/or seat.
    Moving to another seat is rejected with 409 if that seat is taken for the showtime.
    """
    return engine.amend(booking_id, price=data.price, seat_label=data.seat_label)
