from cinema.db.session import Base
from cinema.models.user import User
from cinema.models.movie import Movie
from cinema.models.hall import Hall
from cinema.models.seat import Seat, SeatAvailability
from cinema.models.showtime import Showtime
from cinema.models.booking import Booking
