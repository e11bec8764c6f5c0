"""Booking admission checker.

Decides whether a proposed amenity booking may be stored as ``Pending``.
The decision is a pure function of the request and of the existing bookings
the caller pulled from the store:

1. The requested times must be valid ``HH:MM`` values with end after start.
2. A resident may not extend a two-day streak on the same amenity to a third
   consecutive day. Only the two most recent prior bookings are inspected.
3. The requested range may not overlap (half-open) any active booking for the
   same amenity on the same day.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Sequence

from app.domain.models import (
    Accepted,
    Booking,
    BookingRequest,
    Decision,
    Rejected,
    RejectionReason,
)
from app.services.conflicts import find_conflicts
from app.services.normalize import normalize_time_range, range_label

CONSECUTIVE_DAY_MESSAGE = (
    "You cannot book the same amenity for more than 2 consecutive days."
)
SLOT_OVERLAP_MESSAGE = (
    "A booking for this time slot already exists and cannot be double-booked."
)


def days_between(earlier: date, later: date) -> int:
    """Signed number of whole days from *earlier* to *later*."""
    return (later - earlier).days


def extends_consecutive_streak(
    booking_date: date, prior_bookings: Sequence[Booking]
) -> bool:
    """True if *booking_date* would be the third day of a consecutive run.

    *prior_bookings* must be newest first; only the first two are used.
    """
    if len(prior_bookings) < 2:
        return False
    last, second_last = prior_bookings[0], prior_bookings[1]
    gap_days = abs(days_between(second_last.booking_date, last.booking_date))
    new_gap_days = days_between(last.booking_date, booking_date)
    return gap_days == 1 and new_gap_days == 1


def evaluate(
    request: BookingRequest,
    prior_bookings: Sequence[Booking],
    overlapping_candidates: Sequence[Booking],
) -> Decision:
    """Admit or reject *request*.

    ``prior_bookings`` are the resident's active bookings of the same amenity
    dated before the request, newest first. ``overlapping_candidates`` are the
    amenity's active bookings on the request date. Never raises for business
    conditions; the outcome is returned as ``Accepted`` or ``Rejected``.
    """
    try:
        start, end = normalize_time_range(
            request.start_time, request.end_time, request.booking_time
        )
    except ValueError as exc:
        return Rejected(reason=RejectionReason.INVALID_INPUT, detail=str(exc))

    if extends_consecutive_streak(request.booking_date, prior_bookings):
        return Rejected(
            reason=RejectionReason.CONSECUTIVE_DAY_LIMIT_EXCEEDED,
            detail=CONSECUTIVE_DAY_MESSAGE,
        )

    canonical_start = datetime.combine(request.booking_date, start)
    canonical_end = datetime.combine(request.booking_date, end)

    conflicts = find_conflicts(canonical_start, canonical_end, overlapping_candidates)
    if conflicts:
        return Rejected(
            reason=RejectionReason.SLOT_OVERLAP,
            detail=SLOT_OVERLAP_MESSAGE,
            conflicting_booking_ids=[c.id for c in conflicts],
        )

    return Accepted(
        canonical_start=canonical_start,
        canonical_end=canonical_end,
        canonical_range_label=range_label(start, end),
    )
