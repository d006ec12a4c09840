from fastapi import APIRouter, Depends

from cinema.api.deps import get_booking_engine, get_current_admin_user
from cinema.models.user import User
from cinema.schemas.seat import Seat as SeatSchema, SeatAvailabilityUpdate
from cinema.services.booking_engine import BookingEngine

router = APIRouter(prefix="/admin/seats", tags=["Admin - Seats"])


@router.put("/{seat_id}/availability", response_model=SeatSchema)
def update_seat_availability(
    seat_id: int,
    data: SeatAvailabilityUpdate,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_admin_user),
):
    """Take a seat out of service, or put it back."""
    return engine.set_seat_availability(seat_id, data.available)
