from cinema.schemas.common import ErrorResponse, DeletedResponse
from cinema.schemas.user import User, UserCreate, AdminCreate, Token, TokenPayload
from cinema.schemas.booking import Booking, BookingCreate, BookingUpdate
from cinema.schemas.seat import (
    Seat, SeatAvailabilityUpdate, Hall, HallCreate, HallUpdate, ReconcileResponse,
)
