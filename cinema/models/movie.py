from sqlalchemy import Column, Integer, String, Date
from sqlalchemy.orm import relationship
from cinema.db.session import Base

class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    genre = Column(String(100), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    release_date = Column(Date, nullable=True)

    showtimes = relationship("Showtime", back_populates="movie", cascade="all, delete-orphan")
