"""
Booking engine: reserves and releases seats for showtimes.

Every mutation of a (showtime, seat label) pair happens inside one critical
section: an in-process lock for that key, held across the ledger check, the
availability flip, the ledger write and the commit. Keys that differ never
wait on each other. The ledger's unique constraint on (showtime_id,
seat_label) rejects writers from other processes that slip past the lock.
"""
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Hashable, Iterator, List, Optional, Tuple, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from cinema.core.config import Settings
from cinema.core.errors import (
    BookingConflict,
    BookingNotFound,
    SeatAlreadyBooked,
    SeatNotFound,
    SeatUnavailable,
    ShowtimeNotFound,
    UserNotFound,
)
from cinema.core.locks import KeyedLock, LockTimeout
from cinema.models.booking import Booking
from cinema.models.seat import Seat
from cinema.models.showtime import Showtime
from cinema.registries.bookings import BookingLedger
from cinema.registries.seats import SeatRegistry
from cinema.registries.showtimes import ShowtimeRegistry
from cinema.registries.users import UserRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

FLAG_SCOPES = ("showtime", "hall")


class BookingEngine:
    def __init__(
        self,
        session_factory: sessionmaker,
        flag_scope: str = "showtime",
        max_retries: int = 3,
        retry_backoff: float = 0.05,
        lock_timeout: Optional[float] = 10.0,
        locks: Optional[KeyedLock] = None,
    ):
        if flag_scope not in FLAG_SCOPES:
            raise ValueError(f"flag_scope must be one of {FLAG_SCOPES}, got {flag_scope!r}")
        self.session_factory = session_factory
        self.flag_scope = flag_scope
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.locks = locks if locks is not None else KeyedLock(timeout=lock_timeout)

    @classmethod
    def from_settings(cls, session_factory: sessionmaker, settings: Settings) -> "BookingEngine":
        return cls(
            session_factory,
            flag_scope=settings.SEAT_FLAG_SCOPE,
            max_retries=settings.BOOKING_MAX_RETRIES,
            retry_backoff=settings.BOOKING_RETRY_BACKOFF_SECONDS,
            lock_timeout=settings.SEAT_LOCK_TIMEOUT_SECONDS,
        )

    # -----------------------------------------------------------------------
    # Plumbing
    # -----------------------------------------------------------------------

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    @contextmanager
    def _critical_section(self, *keys: Hashable) -> Iterator[None]:
        try:
            with self.locks.hold(*keys):
                yield
        except LockTimeout as exc:
            logger.warning("Lock wait timed out for %s.", keys)
            raise BookingConflict() from exc

    def _with_retries(self, action: str, fn: Callable[[], T]) -> T:
        """Retry ``fn`` on transient database errors, then surface a conflict."""
        attempt = 0
        while True:
            try:
                return fn()
            except OperationalError as exc:
                attempt += 1
                if attempt > self.max_retries:
                    logger.warning("%s gave up after %d attempts: %s", action, attempt, exc)
                    raise BookingConflict() from exc
                logger.info("%s hit a transient database error (attempt %d), retrying.", action, attempt)
                time.sleep(self.retry_backoff * attempt)

    @staticmethod
    @contextmanager
    def _transaction(db: Session, key: Optional[Tuple[int, str]] = None) -> Iterator[None]:
        """Commit on success, roll back on any error. A unique violation on ``key`` means it is taken."""
        try:
            yield
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if key is None:
                raise
            raise SeatAlreadyBooked(
                f"Seat {key[1]} is already booked for showtime {key[0]}"
            ) from exc
        except Exception:
            db.rollback()
            raise

    # -----------------------------------------------------------------------
    # Seat flag handling (runs inside the critical section)
    # -----------------------------------------------------------------------

    def _claim(self, db: Session, showtime: Showtime, seat_label: str) -> None:
        """Ledger check, seat lookup, flag check and flag flip."""
        ledger = BookingLedger(db)
        if ledger.exists_for_showtime_and_seat(showtime.id, seat_label):
            raise SeatAlreadyBooked(
                f"Seat {seat_label} is already booked for showtime {showtime.id}"
            )

        seats = SeatRegistry(db)
        seat = seats.find_by_label_in_hall(showtime.hall_id, seat_label)
        if seat is None:
            raise SeatNotFound(f"Seat {seat_label} not found in hall {showtime.hall_id}")

        if self.flag_scope == "hall":
            claimed = seat.is_available and seats.claim(seat.id)
        else:
            claimed = (
                seats.is_available_for_showtime(seat, showtime.id)
                and seats.claim_for_showtime(showtime.id, seat.id)
            )
        if not claimed:
            # A writer outside this process may have committed after the first check
            if ledger.exists_for_showtime_and_seat(showtime.id, seat_label):
                raise SeatAlreadyBooked(
                    f"Seat {seat_label} is already booked for showtime {showtime.id}"
                )
            logger.warning(
                "Seat %s (hall %s) is flagged unavailable without a booking for showtime %s.",
                seat_label, showtime.hall_id, showtime.id,
            )
            raise SeatUnavailable(f"Seat {seat_label} is marked unavailable")

    def _release(self, db: Session, showtime: Showtime, seat_label: str) -> bool:
        seats = SeatRegistry(db)
        seat = seats.find_by_label_in_hall(showtime.hall_id, seat_label)
        if seat is None:
            logger.warning(
                "Seat %s no longer exists in hall %s; releasing booking anyway.",
                seat_label, showtime.hall_id,
            )
            return False
        if self.flag_scope == "hall":
            seats.set_availability(seat.id, True)
        else:
            seats.set_showtime_availability(showtime.id, seat.id, True)
        return True

    # -----------------------------------------------------------------------
    # Reserve
    # -----------------------------------------------------------------------

    def reserve(self, user_id: int, showtime_id: int, seat_label: str, price: Decimal) -> Booking:
        """
        Book ``seat_label`` for ``showtime_id`` on behalf of ``user_id``.

        Either the flag flip and the ledger row are both committed, or neither is.
        Of concurrent calls for the same (showtime, seat), exactly one succeeds;
        the rest raise SeatAlreadyBooked.
        """
        booking = self._with_retries(
            "reserve", lambda: self._reserve_once(user_id, showtime_id, seat_label, price)
        )
        logger.info(
            "Booking %s: user %s reserved seat %s for showtime %s.",
            booking.id, user_id, seat_label, showtime_id,
        )
        return booking

    def _reserve_once(self, user_id: int, showtime_id: int, seat_label: str, price: Decimal) -> Booking:
        with self._session() as db:
            if UserRegistry(db).get(user_id) is None:
                raise UserNotFound(f"User {user_id} not found")
            showtime = ShowtimeRegistry(db).get(showtime_id)
            if showtime is None:
                raise ShowtimeNotFound(f"Showtime {showtime_id} not found")

            key = (showtime_id, seat_label)
            with self._critical_section(key):
                with self._transaction(db, key):
                    self._claim(db, showtime, seat_label)
                    booking = BookingLedger(db).insert(Booking(
                        user_id=user_id,
                        showtime_id=showtime_id,
                        seat_label=seat_label,
                        price=price,
                        booking_time=datetime.now(timezone.utc),
                    ))
                db.refresh(booking)
            return booking

    # -----------------------------------------------------------------------
    # Cancel
    # -----------------------------------------------------------------------

    def cancel(self, booking_id: int) -> None:
        """Delete the booking and make its seat bookable again for that showtime."""
        self._with_retries("cancel", lambda: self._cancel_once(booking_id))

    def _cancel_once(self, booking_id: int) -> None:
        with self._session() as db:
            ledger = BookingLedger(db)
            booking = ledger.find_by_id(booking_id)
            if booking is None:
                raise BookingNotFound(f"Booking {booking_id} not found")

            key = (booking.showtime_id, booking.seat_label)
            with self._critical_section(key):
                # A concurrent cancel may have won while we waited
                db.expire_all()
                booking = ledger.find_by_id(booking_id)
                if booking is None:
                    raise BookingNotFound(f"Booking {booking_id} not found")
                with self._transaction(db):
                    showtime = ShowtimeRegistry(db).get(booking.showtime_id)
                    if showtime is not None:
                        self._release(db, showtime, booking.seat_label)
                    ledger.delete_by_id(booking_id)
            logger.info("Booking %s cancelled; seat %s for showtime %s released.", booking_id, key[1], key[0])

    # -----------------------------------------------------------------------
    # Administrative correction
    # -----------------------------------------------------------------------

    def amend(
        self,
        booking_id: int,
        price: Optional[Decimal] = None,
        seat_label: Optional[str] = None,
    ) -> Booking:
        """
        Correct a booking's price and/or seat. Moving to another seat goes through
        the same checks as a reservation, with both seats' keys held.
        """
        return self._with_retries(
            "amend", lambda: self._amend_once(booking_id, price, seat_label)
        )

    def _amend_once(self, booking_id: int, price: Optional[Decimal], seat_label: Optional[str]) -> Booking:
        with self._session() as db:
            ledger = BookingLedger(db)
            booking = ledger.find_by_id(booking_id)
            if booking is None:
                raise BookingNotFound(f"Booking {booking_id} not found")

            old_key = (booking.showtime_id, booking.seat_label)
            moving = bool(seat_label) and seat_label != booking.seat_label
            keys = [old_key]
            if moving:
                keys.append((booking.showtime_id, seat_label))

            with self._critical_section(*keys):
                db.expire_all()
                booking = ledger.find_by_id(booking_id)
                if booking is None or booking.seat_label != old_key[1]:
                    # Cancelled or moved by someone else while we waited
                    raise BookingConflict()
                with self._transaction(db, keys[-1]):
                    if moving:
                        showtime = ShowtimeRegistry(db).get(booking.showtime_id)
                        self._claim(db, showtime, seat_label)
                        self._release(db, showtime, old_key[1])
                        booking.seat_label = seat_label
                    if price is not None:
                        booking.price = price
                db.refresh(booking)

            if moving:
                logger.info("Booking %s moved from seat %s to %s.", booking_id, old_key[1], seat_label)
            return booking

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    def get_by_id(self, booking_id: int) -> Booking:
        with self._session() as db:
            booking = BookingLedger(db).find_by_id(booking_id)
            if booking is None:
                raise BookingNotFound(f"Booking {booking_id} not found")
            return booking

    def list_by_user(self, user_id: int) -> List[Booking]:
        with self._session() as db:
            if UserRegistry(db).get(user_id) is None:
                raise UserNotFound(f"User {user_id} not found")
            return BookingLedger(db).find_by_user(user_id)

    def list_all(self) -> List[Booking]:
        with self._session() as db:
            return BookingLedger(db).find_all()

    # -----------------------------------------------------------------------
    # Reconciliation of the availability flags against the ledger
    # -----------------------------------------------------------------------

    def _desired_flag(self, db: Session, showtime: Showtime, seat_label: str) -> bool:
        ledger = BookingLedger(db)
        if self.flag_scope == "hall":
            return seat_label not in ledger.booked_labels_in_hall(showtime.hall_id)
        return not ledger.exists_for_showtime_and_seat(showtime.id, seat_label)

    def _current_flag(self, db: Session, showtime: Showtime, seat_id: int) -> Optional[bool]:
        seats = SeatRegistry(db)
        if self.flag_scope == "hall":
            seat = seats.get(seat_id)
            return None if seat is None else seat.is_available
        return seats.showtime_flags(showtime.id).get(seat_id, True)

    def reconcile(self, showtime_id: int) -> int:
        """
        Recompute the availability flags of a showtime's hall from the ledger.
        Returns the number of flags changed.
        """
        with self._session() as db:
            showtime = ShowtimeRegistry(db).get(showtime_id)
            if showtime is None:
                raise ShowtimeNotFound(f"Showtime {showtime_id} not found")

            seats = SeatRegistry(db)
            ledger = BookingLedger(db)
            hall_seats = seats.list_by_hall(showtime.hall_id)
            if self.flag_scope == "hall":
                booked = ledger.booked_labels_in_hall(showtime.hall_id)
                current = {s.id: s.is_available for s in hall_seats}
                sibling_ids = [s.id for s in ShowtimeRegistry(db).list_by_hall(showtime.hall_id)]
            else:
                booked = ledger.booked_labels(showtime.id)
                flags = seats.showtime_flags(showtime.id)
                current = {s.id: flags.get(s.id, True) for s in hall_seats}
                sibling_ids = [showtime.id]

            # First pass is lock-free; each suspect is re-checked under its lock
            suspects = [
                (seat.id, seat.label)
                for seat in hall_seats
                if current[seat.id] != (seat.label not in booked)
            ]

            fixed = 0
            for seat_id, label in suspects:
                # The hall flag is shared, so every showtime of the hall writes it
                with self._critical_section(*[(sid, label) for sid in sibling_ids]):
                    db.expire_all()
                    desired = self._desired_flag(db, showtime, label)
                    current_flag = self._current_flag(db, showtime, seat_id)
                    if current_flag is None or current_flag == desired:
                        continue
                    with self._transaction(db):
                        if self.flag_scope == "hall":
                            seats.set_availability(seat_id, desired)
                        else:
                            seats.set_showtime_availability(showtime.id, seat_id, desired)
                    fixed += 1

        if fixed:
            logger.info("Reconciled %d seat flag(s) for showtime %s.", fixed, showtime_id)
        return fixed

    def reconcile_upcoming(self, now: Optional[datetime] = None) -> int:
        with self._session() as db:
            showtime_ids = [s.id for s in ShowtimeRegistry(db).list_upcoming(now)]
        return sum(self.reconcile(showtime_id) for showtime_id in showtime_ids)

    # -----------------------------------------------------------------------
    # Administrative seat flag
    # -----------------------------------------------------------------------

    def set_seat_availability(self, seat_id: int, available: bool) -> Seat:
        """
        Set a seat's own flag while no reservation of that label is in flight.

        In "showtime" scope this flag is the seat's out-of-service switch and
        reconcile leaves it alone. In "hall" scope the same flag caches the
        ledger, so the next reconcile sets an unbooked seat back to available.
        """
        with self._session() as db:
            seats = SeatRegistry(db)
            seat = seats.get(seat_id)
            if seat is None:
                raise SeatNotFound(f"Seat {seat_id} not found")

            keys = [(s.id, seat.label) for s in ShowtimeRegistry(db).list_by_hall(seat.hall_id)]
            with self._critical_section(*keys):
                with self._transaction(db):
                    seats.set_availability(seat_id, available)
                seat = seats.get(seat_id)
            logger.info("Seat %s marked %s.", seat_id, "available" if available else "unavailable")
            return seat
