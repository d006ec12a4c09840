from cinema.registries.users import UserRegistry
from cinema.registries.halls import HallRegistry
from cinema.registries.seats import SeatRegistry, seat_label
from cinema.registries.showtimes import ShowtimeRegistry
from cinema.registries.bookings import BookingLedger
