from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from cinema.db.session import Base

class Hall(Base):
    __tablename__ = "halls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False) # e.g. "Hall 1", "IMAX"
    total_seats = Column(Integer, nullable=False, default=0)

    # Relationships
    seats = relationship("Seat", back_populates="hall", cascade="all, delete-orphan")
    showtimes = relationship("Showtime", back_populates="hall", cascade="all, delete-orphan")
