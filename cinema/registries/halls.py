import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from cinema.models.hall import Hall
from cinema.registries.seats import SeatRegistry

logger = logging.getLogger(__name__)


class HallRegistry:
    def __init__(self, db: Session):
        self.db = db

    def get(self, hall_id: int) -> Optional[Hall]:
        return self.db.query(Hall).filter(Hall.id == hall_id).first()

    def list(self) -> List[Hall]:
        return self.db.query(Hall).order_by(Hall.id).all()

    def create(self, name: str, total_seats: int) -> Hall:
        """Create a hall and one seat per slot. Caller commits."""
        hall = Hall(name=name, total_seats=total_seats)
        self.db.add(hall)
        self.db.flush()

        SeatRegistry(self.db).create_seats_for_hall(hall.id, total_seats)
        logger.info("Created hall %s (%s) with %d seats.", hall.id, name, total_seats)
        return hall

    def enlarge(self, hall: Hall, total_seats: Optional[int] = None, name: Optional[str] = None) -> Hall:
        """
        Rename and/or resize a hall. Growing creates the missing seats; shrinking
        only lowers the recorded total and keeps existing seats. Caller commits.
        """
        if name:
            hall.name = name

        if total_seats is not None and total_seats > 0:
            old_total = hall.total_seats
            hall.total_seats = total_seats
            if total_seats > old_total:
                SeatRegistry(self.db).create_seats_for_hall(
                    hall.id, total_seats - old_total, start=old_total + 1
                )
                logger.info("Added %d seats to hall %s.", total_seats - old_total, hall.id)

        self.db.flush()
        return hall
