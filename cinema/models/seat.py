from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from cinema.db.session import Base

class Seat(Base):
    __tablename__ = "seats"
    __table_args__ = (UniqueConstraint("hall_id", "label", name="uq_seats_hall_label"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    hall_id = Column(Integer, ForeignKey("halls.id"), nullable=False, index=True)
    label = Column(String(10), nullable=False) # e.g. "A1", "B4"
    is_available = Column(Boolean, nullable=False, default=True)

    hall = relationship("Hall", back_populates="seats")
    availabilities = relationship("SeatAvailability", back_populates="seat", cascade="all, delete-orphan")

class SeatAvailability(Base):
    """Per-showtime availability flag. A missing row means available."""
    __tablename__ = "seat_availability"
    __table_args__ = (UniqueConstraint("showtime_id", "seat_id", name="uq_seat_availability_showtime_seat"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    showtime_id = Column(Integer, ForeignKey("showtimes.id"), nullable=False, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id"), nullable=False, index=True)
    is_available = Column(Boolean, nullable=False, default=True)

    showtime = relationship("Showtime", back_populates="seat_availability")
    seat = relationship("Seat", back_populates="availabilities")
