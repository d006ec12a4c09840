from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from cinema.core.config import Settings
from cinema.core.security import create_access_token, get_password_hash
from cinema.db.base import Base
from cinema.db.session import build_engine, build_session_factory
from cinema.main import create_app
from cinema.models.movie import Movie
from cinema.models.showtime import Showtime
from cinema.registries import HallRegistry, ShowtimeRegistry, UserRegistry
from cinema.services.booking_engine import BookingEngine


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt is slow on purpose; hash once for the whole run
    return get_password_hash("secret")


@pytest.fixture
def db_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'cinema.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def catalog(session_factory, password_hash):
    """
    Users alice (1), bob (2) and an admin (3); hall "IMAX" with 12 seats;
    showtime 7 and a later showtime 8 of the same movie in that hall.
    """
    db = session_factory()
    try:
        users = UserRegistry(db)
        alice = users.create("alice@example.com", password_hash, "Alice")
        bob = users.create("bob@example.com", password_hash, "Bob")
        admin = users.create("admin@example.com", password_hash, "Admin", role="admin")

        hall = HallRegistry(db).create("IMAX", 12)
        movie = Movie(title="Dune: Part Two", genre="Sci-Fi", duration_minutes=166)
        db.add(movie)
        db.flush()

        start = datetime.now(timezone.utc) + timedelta(days=1)
        db.add(Showtime(id=7, movie_id=movie.id, hall_id=hall.id, start_time=start))
        db.add(Showtime(id=8, movie_id=movie.id, hall_id=hall.id, start_time=start + timedelta(hours=3)))
        db.commit()

        return SimpleNamespace(
            alice=alice.id,
            bob=bob.id,
            admin=admin.id,
            hall=hall.id,
            movie=movie.id,
            showtime=7,
            other_showtime=8,
        )
    finally:
        db.close()


@pytest.fixture
def make_users(session_factory, password_hash):
    def _make(count):
        db = session_factory()
        try:
            users = UserRegistry(db)
            created = [
                users.create(f"fan{i}@example.com", password_hash, f"Fan {i}")
                for i in range(count)
            ]
            db.commit()
            return [u.id for u in created]
        finally:
            db.close()
    return _make


@pytest.fixture
def engine(session_factory):
    return BookingEngine(session_factory, lock_timeout=5.0, retry_backoff=0.0)


@pytest.fixture
def hall_engine(session_factory):
    return BookingEngine(session_factory, flag_scope="hall", lock_timeout=5.0, retry_backoff=0.0)


@pytest.fixture
def past_showtime(session_factory, catalog):
    db = session_factory()
    try:
        showtime = ShowtimeRegistry(db).create(
            catalog.movie, catalog.hall, datetime.now(timezone.utc) - timedelta(days=1)
        )
        db.commit()
        return showtime.id
    finally:
        db.close()


@pytest.fixture
def client(db_engine):
    app = create_app(db_engine, Settings(AVAILABILITY_RECONCILE_SECONDS=0))
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_header():
    def _header(user_id, role="user"):
        token = create_access_token(subject=str(user_id), role=role)
        return {"Authorization": f"Bearer {token}"}
    return _header
