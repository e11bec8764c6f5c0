"""Service for detecting overlapping bookings on an amenity."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from app.domain.models import Booking


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open overlap test: ``[start_a, end_a)`` meets ``[start_b, end_b)``."""
    return start_a < end_b and start_b < end_a


def find_conflicts(
    new_start: datetime,
    new_end: datetime,
    existing_bookings: Iterable[Booking],
) -> list[Booking]:
    """Return existing bookings that overlap with the given time range.

    Overlap rule: conflict if existing.starts_at < new_end AND existing.ends_at > new_start.
    Exact boundary touches (end == start) are NOT considered conflicts.
    """
    return [
        booking
        for booking in existing_bookings
        if intervals_overlap(new_start, new_end, booking.starts_at, booking.ends_at)
    ]
