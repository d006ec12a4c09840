from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cinema.api.deps import get_db
from cinema.core.errors import HallNotFound, ShowtimeNotFound
from cinema.registries.halls import HallRegistry
from cinema.registries.seats import SeatRegistry
from cinema.registries.showtimes import ShowtimeRegistry
from cinema.schemas.seat import Seat as SeatSchema

seats_router = APIRouter(prefix="/seats", tags=["Seats"])
hall_seats_router = APIRouter(prefix="/halls", tags=["Seats"])
showtime_seats_router = APIRouter(prefix="/showtimes", tags=["Seats"])


@hall_seats_router.get("/{hall_id}/seats", response_model=List[SeatSchema])
def list_hall_seats(hall_id: int, db: Session = Depends(get_db)):
    if HallRegistry(db).get(hall_id) is None:
        raise HallNotFound(f"Hall {hall_id} not found")
    return SeatRegistry(db).list_by_hall(hall_id)


@seats_router.get("/available/{hall_id}", response_model=List[SeatSchema])
def list_available_seats(hall_id: int, db: Session = Depends(get_db)):
    """Seats whose own flag is set. Use the showtime endpoint for per-showtime availability."""
    if HallRegistry(db).get(hall_id) is None:
        raise HallNotFound(f"Hall {hall_id} not found")
    return SeatRegistry(db).list_available_by_hall(hall_id)


@showtime_seats_router.get("/{showtime_id}/seats/available", response_model=List[SeatSchema])
def list_showtime_available_seats(showtime_id: int, db: Session = Depends(get_db)):
    showtime = ShowtimeRegistry(db).get(showtime_id)
    if showtime is None:
        raise ShowtimeNotFound(f"Showtime {showtime_id} not found")
    return SeatRegistry(db).list_available_for_showtime(showtime)
