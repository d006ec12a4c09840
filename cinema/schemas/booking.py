from typing import Optional
from pydantic import BaseModel
from decimal import Decimal
from datetime import datetime


# Booking: Create (POST /bookings)
# Price is taken as-is; no business validation happens here.
class BookingCreate(BaseModel):
    user_id: int
    showtime_id: int
    seat_label: str
    price: Decimal


# Booking: Admin correction (PATCH /admin/bookings/{id})
class BookingUpdate(BaseModel):
    price: Optional[Decimal] = None
    seat_label: Optional[str] = None


# Booking: Full response (POST /bookings, GET /bookings/{id})
class Booking(BaseModel):
    id: int
    user_id: int
    showtime_id: int
    seat_label: str
    price: Decimal
    booking_time: datetime

    class Config:
        from_attributes = True
