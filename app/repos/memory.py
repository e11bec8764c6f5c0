"""In-memory repositories for bookings, booking history and notifications."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from threading import Lock

from app.domain.errors import InvalidTransitionError, SlotTakenError
from app.domain.models import (
    ALLOWED_TRANSITIONS,
    Booking,
    BookingHistoryEntry,
    BookingStatus,
    Notification,
)


class BookingRepository:
    """Dict-backed store for Booking instances, keyed by id.

    Holds at most one active booking per ``(amenity_id, booking_date, start_time)``.
    """

    def __init__(self) -> None:
        self._store: dict[str, Booking] = {}
        self._lock = Lock()

    def _check_slot_free(self, booking: Booking) -> None:
        for existing in self._store.values():
            if (
                existing.id != booking.id
                and existing.is_active
                and existing.amenity_id == booking.amenity_id
                and existing.booking_date == booking.booking_date
                and existing.start_time == booking.start_time
            ):
                raise SlotTakenError(
                    booking.amenity_id, booking.booking_date, booking.start_time
                )

    def add(self, booking: Booking) -> None:
        with self._lock:
            if booking.is_active:
                self._check_slot_free(booking)
            self._store[booking.id] = booking

    def get(self, booking_id: str) -> Booking | None:
        return self._store.get(booking_id)

    def list_all(
        self,
        resident_id: str | None = None,
        amenity_id: str | None = None,
        status: BookingStatus | None = None,
    ) -> list[Booking]:
        bookings = [
            b
            for b in self._store.values()
            if (resident_id is None or b.resident_id == resident_id)
            and (amenity_id is None or b.amenity_id == amenity_id)
            and (status is None or b.status == status)
        ]
        return sorted(bookings, key=lambda b: b.starts_at)

    def find_prior_for_resident(
        self, resident_id: str, amenity_id: str, before: date, limit: int = 2
    ) -> list[Booking]:
        """Active bookings of *amenity_id* by *resident_id* dated before *before*, newest first."""
        prior = [
            b
            for b in self._store.values()
            if b.is_active
            and b.resident_id == resident_id
            and b.amenity_id == amenity_id
            and b.booking_date < before
        ]
        prior.sort(key=lambda b: b.booking_date, reverse=True)
        return prior[:limit]

    def find_active_on(
        self, amenity_id: str, booking_date: date, exclude_id: str | None = None
    ) -> list[Booking]:
        """Active bookings of *amenity_id* on *booking_date*, ordered by start."""
        found = [
            b
            for b in self._store.values()
            if b.is_active
            and b.amenity_id == amenity_id
            and b.booking_date == booking_date
            and b.id != exclude_id
        ]
        return sorted(found, key=lambda b: b.starts_at)

    def update_status(self, booking_id: str, status: BookingStatus) -> Booking | None:
        """Move a booking to *status*. Raises ``InvalidTransitionError`` on illegal moves."""
        with self._lock:
            booking = self._store.get(booking_id)
            if booking is None:
                return None
            if booking.status == status:
                return booking
            if status not in ALLOWED_TRANSITIONS[booking.status]:
                raise InvalidTransitionError(booking.status, status)
            booking.status = status
            booking.updated_at = datetime.now(timezone.utc)
            return booking

    def reschedule(
        self, booking_id: str, starts_at: datetime, ends_at: datetime, label: str
    ) -> Booking | None:
        with self._lock:
            booking = self._store.get(booking_id)
            if booking is None:
                return None
            updated = booking.model_copy(
                update={
                    "start_time": f"{starts_at:%H:%M}",
                    "end_time": f"{ends_at:%H:%M}",
                    "booking_time": label,
                    "starts_at": starts_at,
                    "ends_at": ends_at,
                    "updated_at": datetime.now(timezone.utc),
                }
            )
            if updated.is_active:
                self._check_slot_free(updated)
            self._store[booking_id] = updated
            return updated

    def update_contact(
        self,
        booking_id: str,
        resident_name: str | None = None,
        resident_email: str | None = None,
    ) -> Booking | None:
        booking = self._store.get(booking_id)
        if booking is None:
            return None
        if resident_name is not None:
            booking.resident_name = resident_name
        if resident_email is not None:
            booking.resident_email = resident_email
        booking.updated_at = datetime.now(timezone.utc)
        return booking

    def delete(self, booking_id: str) -> None:
        with self._lock:
            self._store.pop(booking_id, None)


class BookingHistoryRepository:
    """List-backed store for BookingHistoryEntry instances."""

    def __init__(self) -> None:
        self._entries: list[BookingHistoryEntry] = []

    def add(self, entry: BookingHistoryEntry) -> None:
        self._entries.append(entry)

    def list_for_booking(self, booking_id: str) -> list[BookingHistoryEntry]:
        return sorted(
            [e for e in self._entries if e.booking_id == booking_id],
            key=lambda e: e.timestamp,
        )


class NotificationRepository:
    """List-backed outbox of notifications queued for residents."""

    def __init__(self) -> None:
        self._items: list[Notification] = []

    def add(self, notification: Notification) -> None:
        self._items.append(notification)

    def list_all(self) -> list[Notification]:
        return list(self._items)

    def list_for_booking(self, booking_id: str) -> list[Notification]:
        return [n for n in self._items if n.booking_id == booking_id]


# ---------------------------------------------------------------------------
# Seed data – a short streak and a busy day useful for trying the rules
# ---------------------------------------------------------------------------


def _seed_booking(
    resident_id: str,
    amenity_id: str,
    booking_date: date,
    start: time,
    end: time,
    status: BookingStatus,
) -> Booking:
    starts_at = datetime.combine(booking_date, start)
    ends_at = datetime.combine(booking_date, end)
    return Booking(
        resident_id=resident_id,
        resident_name=resident_id.title(),
        resident_email=f"{resident_id}@example.com",
        amenity_id=amenity_id,
        booking_date=booking_date,
        start_time=f"{start:%H:%M}",
        end_time=f"{end:%H:%M}",
        booking_time=f"{start:%H:%M}-{end:%H:%M}",
        starts_at=starts_at,
        ends_at=ends_at,
        status=status,
    )


def _seed_bookings(repo: BookingRepository) -> None:
    today = datetime.now(timezone.utc).date()

    # Two-day streak on the pool: a booking today would be the third day
    for offset in (2, 1):
        repo.add(
            _seed_booking(
                "alice",
                "pool",
                today - timedelta(days=offset),
                time(7, 0),
                time(8, 0),
                BookingStatus.CONFIRMED,
            )
        )

    repo.add(
        _seed_booking(
            "bob", "gym", today, time(18, 0), time(19, 0), BookingStatus.CONFIRMED
        )
    )
    repo.add(
        _seed_booking(
            "carol", "gym", today, time(19, 0), time(20, 30), BookingStatus.PENDING
        )
    )


def create_booking_repository() -> BookingRepository:
    """Return a BookingRepository pre-loaded with sample data."""
    repo = BookingRepository()
    _seed_bookings(repo)
    return repo
