"""
Booking Ledger: source of truth for who holds which seat for which showtime.

The ledger does not serialize anything itself; the existence check and the
insert are only safe when called from inside the engine's critical section.
The unique constraint on (showtime_id, seat_label) backs that up across
processes.
"""
from typing import List, Optional, Set

from sqlalchemy.orm import Session

from cinema.models.booking import Booking
from cinema.models.showtime import Showtime


class BookingLedger:
    def __init__(self, db: Session):
        self.db = db

    def exists_for_showtime_and_seat(self, showtime_id: int, seat_label: str) -> bool:
        return (
            self.db.query(Booking.id)
            .filter(Booking.showtime_id == showtime_id, Booking.seat_label == seat_label)
            .first()
            is not None
        )

    def insert(self, booking: Booking) -> Booking:
        self.db.add(booking)
        self.db.flush()
        return booking

    def delete_by_id(self, booking_id: int) -> bool:
        deleted = (
            self.db.query(Booking)
            .filter(Booking.id == booking_id)
            .delete(synchronize_session="fetch")
        )
        return deleted == 1

    def find_by_id(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def find_by_user(self, user_id: int) -> List[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.user_id == user_id)
            .order_by(Booking.id)
            .all()
        )

    def find_all(self) -> List[Booking]:
        return self.db.query(Booking).order_by(Booking.id).all()

    def booked_labels(self, showtime_id: int) -> Set[str]:
        rows = self.db.query(Booking.seat_label).filter(Booking.showtime_id == showtime_id).all()
        return {label for (label,) in rows}

    def booked_labels_in_hall(self, hall_id: int) -> Set[str]:
        """Labels with a live booking in any showtime of the hall."""
        rows = (
            self.db.query(Booking.seat_label)
            .join(Showtime, Showtime.id == Booking.showtime_id)
            .filter(Showtime.hall_id == hall_id)
            .all()
        )
        return {label for (label,) in rows}
