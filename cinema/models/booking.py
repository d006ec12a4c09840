from sqlalchemy import Column, Integer, String, DateTime, DECIMAL, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from cinema.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"
    # At most one live booking per (showtime, seat); concurrent writers lose on insert
    __table_args__ = (UniqueConstraint("showtime_id", "seat_label", name="uq_bookings_showtime_seat"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    showtime_id = Column(Integer, ForeignKey("showtimes.id"), nullable=False, index=True)
    seat_label = Column(String(10), nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False)
    booking_time = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    user = relationship("User")
    showtime = relationship("Showtime", back_populates="bookings")
