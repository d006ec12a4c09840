from fastapi import APIRouter

# Auth
from cinema.api.v1.public.auth import router as auth_router

# Public: bookings
from cinema.api.v1.public.bookings import router as bookings_router

# Public: seats
from cinema.api.v1.public.seats import (
    seats_router,
    hall_seats_router,
    showtime_seats_router,
)

# Admin
from cinema.api.v1.admin.bookings import router as admin_bookings_router
from cinema.api.v1.admin.halls import router as admin_halls_router
from cinema.api.v1.admin.seats import router as admin_seats_router
from cinema.api.v1.admin.seat_availability import router as admin_availability_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public: bookings ---
api_router.include_router(bookings_router)

# --- Public: seats ---
api_router.include_router(seats_router)
api_router.include_router(hall_seats_router)
api_router.include_router(showtime_seats_router)

# --- Admin ---
api_router.include_router(admin_bookings_router)
api_router.include_router(admin_halls_router)
api_router.include_router(admin_seats_router)
api_router.include_router(admin_availability_router)
