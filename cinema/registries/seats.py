"""
Seat Registry.

Plain data access over ``seats`` and ``seat_availability``. No locking happens
here; the booking engine decides when a flag may change, and every flag write
is a single UPDATE/INSERT so the row change itself is atomic.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from cinema.models.seat import Seat, SeatAvailability
from cinema.models.showtime import Showtime

SEATS_PER_ROW = 10


def row_letters(row: int) -> str:
    """0 -> 'A', 25 -> 'Z', 26 -> 'AA'."""
    letters = ""
    row += 1
    while row:
        row, rem = divmod(row - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def seat_label(index: int) -> str:
    """Label for a 1-based seat index: 1 -> 'A1', 10 -> 'A10', 11 -> 'B1'."""
    if index < 1:
        raise ValueError("seat index is 1-based")
    row, col = divmod(index - 1, SEATS_PER_ROW)
    return f"{row_letters(row)}{col + 1}"


class SeatRegistry:
    def __init__(self, db: Session):
        self.db = db

    # -----------------------------------------------------------------------
    # Hall-scoped reads and writes
    # -----------------------------------------------------------------------

    def get(self, seat_id: int) -> Optional[Seat]:
        return self.db.query(Seat).filter(Seat.id == seat_id).first()

    def list_by_hall(self, hall_id: int) -> List[Seat]:
        return self.db.query(Seat).filter(Seat.hall_id == hall_id).order_by(Seat.id).all()

    def list_available_by_hall(self, hall_id: int) -> List[Seat]:
        return (
            self.db.query(Seat)
            .filter(Seat.hall_id == hall_id, Seat.is_available == True)  # noqa: E712
            .order_by(Seat.id)
            .all()
        )

    def find_by_label_in_hall(self, hall_id: int, label: str) -> Optional[Seat]:
        # Exact, case-sensitive match
        return (
            self.db.query(Seat)
            .filter(Seat.hall_id == hall_id, Seat.label == label)
            .first()
        )

    def set_availability(self, seat_id: int, available: bool) -> Optional[Seat]:
        updated = (
            self.db.query(Seat)
            .filter(Seat.id == seat_id)
            .update({"is_available": available}, synchronize_session="fetch")
        )
        if not updated:
            return None
        return self.get(seat_id)

    def claim(self, seat_id: int) -> bool:
        """Flip the seat's own flag true -> false. False if it was already false."""
        updated = (
            self.db.query(Seat)
            .filter(Seat.id == seat_id, Seat.is_available == True)  # noqa: E712
            .update({"is_available": False}, synchronize_session="fetch")
        )
        return updated == 1

    def create_seats_for_hall(self, hall_id: int, count: int, start: int = 1) -> List[Seat]:
        """Create ``count`` seats numbered from ``start`` (1-based)."""
        seats = [
            Seat(hall_id=hall_id, label=seat_label(i), is_available=True)
            for i in range(start, start + count)
        ]
        self.db.add_all(seats)
        self.db.flush()
        return seats

    # -----------------------------------------------------------------------
    # Showtime-scoped flag (a missing row means available)
    # -----------------------------------------------------------------------

    def _availability_row(self, showtime_id: int, seat_id: int) -> Optional[SeatAvailability]:
        return (
            self.db.query(SeatAvailability)
            .filter(
                SeatAvailability.showtime_id == showtime_id,
                SeatAvailability.seat_id == seat_id,
            )
            .first()
        )

    def is_available_for_showtime(self, seat: Seat, showtime_id: int) -> bool:
        if not seat.is_available:
            return False
        row = self._availability_row(showtime_id, seat.id)
        return row is None or row.is_available

    def claim_for_showtime(self, showtime_id: int, seat_id: int) -> bool:
        """Flip the (showtime, seat) flag true -> false. False if it was already false."""
        row = self._availability_row(showtime_id, seat_id)
        if row is None:
            self.db.add(SeatAvailability(showtime_id=showtime_id, seat_id=seat_id, is_available=False))
            self.db.flush()
            return True
        updated = (
            self.db.query(SeatAvailability)
            .filter(
                SeatAvailability.id == row.id,
                SeatAvailability.is_available == True,  # noqa: E712
            )
            .update({"is_available": False}, synchronize_session="fetch")
        )
        return updated == 1

    def set_showtime_availability(self, showtime_id: int, seat_id: int, available: bool) -> None:
        row = self._availability_row(showtime_id, seat_id)
        if row is None:
            if available:
                return
            self.db.add(SeatAvailability(showtime_id=showtime_id, seat_id=seat_id, is_available=False))
            self.db.flush()
            return
        self.db.query(SeatAvailability).filter(SeatAvailability.id == row.id).update(
            {"is_available": available}, synchronize_session="fetch"
        )

    def showtime_flags(self, showtime_id: int) -> dict:
        """seat_id -> stored flag for every explicit row of the showtime."""
        return {
            a.seat_id: a.is_available
            for a in self.db.query(SeatAvailability)
            .filter(SeatAvailability.showtime_id == showtime_id)
            .all()
        }

    def list_available_for_showtime(self, showtime: Showtime) -> List[Seat]:
        flags = self.showtime_flags(showtime.id)
        return [
            seat for seat in self.list_available_by_hall(showtime.hall_id)
            if flags.get(seat.id, True)
        ]
