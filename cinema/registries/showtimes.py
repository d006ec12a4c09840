from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from cinema.models.showtime import Showtime


class ShowtimeRegistry:
    def __init__(self, db: Session):
        self.db = db

    def get(self, showtime_id: int) -> Optional[Showtime]:
        return self.db.query(Showtime).filter(Showtime.id == showtime_id).first()

    def create(self, movie_id: int, hall_id: int, start_time: datetime) -> Showtime:
        showtime = Showtime(movie_id=movie_id, hall_id=hall_id, start_time=start_time)
        self.db.add(showtime)
        self.db.flush()
        return showtime

    def list_upcoming(self, now: Optional[datetime] = None) -> List[Showtime]:
        now = now or datetime.now(timezone.utc)
        return (
            self.db.query(Showtime)
            .filter(Showtime.start_time >= now)
            .order_by(Showtime.start_time)
            .all()
        )

    def list_by_hall(self, hall_id: int) -> List[Showtime]:
        return self.db.query(Showtime).filter(Showtime.hall_id == hall_id).all()
