from fastapi import APIRouter, Depends

from cinema.api.deps import get_booking_engine, get_current_admin_user
from cinema.models.user import User
from cinema.schemas.seat import ReconcileResponse
from cinema.services.booking_engine import BookingEngine

router = APIRouter(prefix="/admin/showtimes", tags=["Admin - Seat Availability"])


@router.post("/{showtime_id}/availability/reconcile", response_model=ReconcileResponse)
def reconcile_showtime_availability(
    showtime_id: int,
    engine: BookingEngine = Depends(get_booking_engine),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Recompute the seat availability flags of a showtime from its bookings.

    The bookings table is the source of truth; flags are a cache of it. Any flag
    that disagrees (e.g. left behind by a crashed writer or an out-of-band edit)
    is rewritten.
    """
    fixed = engine.reconcile(showtime_id)
    return ReconcileResponse(showtime_id=showtime_id, fixed=fixed)
