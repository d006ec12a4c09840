from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from cinema.db.session import Base

class Showtime(Base):
    __tablename__ = "showtimes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False, index=True)
    hall_id = Column(Integer, ForeignKey("halls.id"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    movie = relationship("Movie", back_populates="showtimes")
    hall = relationship("Hall", back_populates="showtimes")
    seat_availability = relationship("SeatAvailability", back_populates="showtime", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="showtime", cascade="all, delete-orphan")
