from typing import Optional
from pydantic import BaseModel, Field


class Seat(BaseModel):
    id: int
    hall_id: int
    label: str
    is_available: bool

    class Config:
        from_attributes = True


# PUT /admin/seats/{id}/availability
class SeatAvailabilityUpdate(BaseModel):
    available: bool


# --- Halls ---

class HallCreate(BaseModel):
    name: str
    total_seats: int = Field(ge=0)


class HallUpdate(BaseModel):
    name: Optional[str] = None
    total_seats: Optional[int] = Field(default=None, ge=0)


class Hall(BaseModel):
    id: int
    name: str
    total_seats: int

    class Config:
        from_attributes = True


# POST /admin/showtimes/{id}/availability/reconcile
class ReconcileResponse(BaseModel):
    showtime_id: int
    fixed: int
