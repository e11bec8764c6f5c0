"""Booking workflows: admission, updates and cancellation.

Each workflow reads the store, decides, and writes while holding the
``(amenity_id, booking_date)`` lock so that two requests for the same day
cannot both pass the overlap check.
"""

from __future__ import annotations

import logging

from app.domain.bus import EventBus
from app.domain.errors import (
    BookingNotFoundError,
    InvalidTransitionError,
    SlotTakenError,
)
from app.domain.events import BookingAdmitted, BookingRescheduled, BookingStatusChanged
from app.domain.models import (
    ALLOWED_TRANSITIONS,
    Booking,
    BookingRequest,
    BookingStatus,
    CreateBookingRequest,
    Decision,
    Rejected,
    RejectionReason,
    UpdateBookingRequest,
)
from app.repos.memory import BookingRepository
from app.services.admission import SLOT_OVERLAP_MESSAGE, evaluate
from app.services.locks import KeyedLocks
from app.services.normalize import parse_booking_date

logger = logging.getLogger(__name__)


def admit_booking(
    payload: CreateBookingRequest,
    booking_repo: BookingRepository,
    locks: KeyedLocks,
    bus: EventBus,
) -> tuple[Decision, Booking | None]:
    """Run the admission checker and store the booking as Pending if accepted.

    Returns the decision and, on acceptance, the stored booking.
    """
    booking_date = parse_booking_date(payload.booking_date)
    if booking_date is None:
        return (
            Rejected(
                reason=RejectionReason.INVALID_INPUT,
                detail=f"Invalid booking_date {payload.booking_date!r}",
            ),
            None,
        )

    request = BookingRequest(
        resident_id=payload.resident_id,
        amenity_id=payload.amenity_id,
        booking_date=booking_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        booking_time=payload.booking_time,
    )

    with locks.hold(request.amenity_id, booking_date):
        prior = booking_repo.find_prior_for_resident(
            request.resident_id, request.amenity_id, before=booking_date
        )
        candidates = booking_repo.find_active_on(request.amenity_id, booking_date)
        decision = evaluate(request, prior, candidates)

        if isinstance(decision, Rejected):
            logger.info(
                "Rejected booking of %s on %s for %s: %s",
                request.amenity_id,
                booking_date,
                request.resident_id,
                decision.reason,
            )
            return decision, None

        booking = Booking(
            resident_id=payload.resident_id,
            resident_name=payload.resident_name,
            resident_email=payload.resident_email,
            amenity_id=payload.amenity_id,
            booking_date=booking_date,
            start_time=decision.start_time,
            end_time=decision.end_time,
            booking_time=decision.canonical_range_label,
            starts_at=decision.canonical_start,
            ends_at=decision.canonical_end,
            status=BookingStatus.PENDING,
        )
        try:
            booking_repo.add(booking)
        except SlotTakenError as exc:
            logger.info("Store rejected booking: %s", exc)
            return (
                Rejected(
                    reason=RejectionReason.SLOT_OVERLAP, detail=SLOT_OVERLAP_MESSAGE
                ),
                None,
            )

    logger.info(
        "Admitted booking %s: %s %s %s",
        booking.id,
        booking.amenity_id,
        booking.booking_date,
        booking.booking_time,
    )
    bus.publish(BookingAdmitted(booking_id=booking.id))
    return decision, booking


def change_status(
    booking: Booking,
    status: BookingStatus,
    booking_repo: BookingRepository,
    bus: EventBus,
) -> Booking:
    """Apply a status transition. Raises ``InvalidTransitionError`` on illegal moves."""
    previous = booking.status
    updated = booking_repo.update_status(booking.id, status)
    if previous != status:
        logger.info("Booking %s moved from %s to %s", booking.id, previous, status)
        bus.publish(
            BookingStatusChanged(
                booking_id=booking.id, previous_status=previous, status=status
            )
        )
    return updated


def _stored(booking: Booking, booking_repo: BookingRepository) -> Booking:
    stored = booking_repo.get(booking.id)
    if stored is None:
        raise BookingNotFoundError(booking.id)
    return stored


def cancel_booking(
    booking: Booking,
    booking_repo: BookingRepository,
    locks: KeyedLocks,
    bus: EventBus,
) -> Booking:
    with locks.hold(booking.amenity_id, booking.booking_date):
        current = _stored(booking, booking_repo)
        if current.status == BookingStatus.CANCELLED:
            raise InvalidTransitionError(current.status, BookingStatus.CANCELLED)
        return change_status(current, BookingStatus.CANCELLED, booking_repo, bus)


def _reschedule(
    booking: Booking,
    payload: UpdateBookingRequest,
    booking_repo: BookingRepository,
    bus: EventBus,
) -> Booking | Rejected:
    if payload.start_time is None and payload.end_time is None:
        start_time, end_time = None, None
    else:
        start_time = payload.start_time or booking.start_time
        end_time = payload.end_time or booking.end_time

    request = BookingRequest(
        resident_id=booking.resident_id,
        amenity_id=booking.amenity_id,
        booking_date=booking.booking_date,
        start_time=start_time,
        end_time=end_time,
        booking_time=payload.booking_time,
    )
    # The date does not change, so only the time checks apply
    candidates = booking_repo.find_active_on(
        booking.amenity_id, booking.booking_date, exclude_id=booking.id
    )
    decision = evaluate(request, [], candidates)
    if isinstance(decision, Rejected):
        return decision

    previous_label = booking.booking_time
    if decision.canonical_range_label == previous_label:
        return booking

    try:
        updated = booking_repo.reschedule(
            booking.id,
            decision.canonical_start,
            decision.canonical_end,
            decision.canonical_range_label,
        )
    except SlotTakenError:
        return Rejected(reason=RejectionReason.SLOT_OVERLAP, detail=SLOT_OVERLAP_MESSAGE)

    bus.publish(
        BookingRescheduled(
            booking_id=booking.id,
            previous_booking_time=previous_label,
            booking_time=updated.booking_time,
        )
    )
    return updated


def update_booking(
    booking: Booking,
    payload: UpdateBookingRequest,
    booking_repo: BookingRepository,
    locks: KeyedLocks,
    bus: EventBus,
) -> Booking | Rejected:
    """Apply a partial update: contact details, time range and/or status.

    The stored booking is re-read and everything is validated under the
    ``(amenity_id, booking_date)`` lock before anything is written, so a
    concurrent cancel cannot leave the update half applied. Returns the
    updated booking, or a ``Rejected`` decision when the new time range is
    invalid or overlaps another booking. Raises ``InvalidTransitionError``
    for an illegal status change.
    """
    with locks.hold(booking.amenity_id, booking.booking_date):
        current = _stored(booking, booking_repo)

        if payload.status is not None and payload.status != current.status:
            if payload.status not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidTransitionError(current.status, payload.status)

        if payload.changes_time:
            if not current.is_active:
                return Rejected(
                    reason=RejectionReason.INVALID_INPUT,
                    detail="Cancelled bookings cannot be rescheduled",
                )
            result = _reschedule(current, payload, booking_repo, bus)
            if isinstance(result, Rejected):
                return result
            current = result

        if payload.resident_name is not None or payload.resident_email is not None:
            current = booking_repo.update_contact(
                current.id,
                resident_name=payload.resident_name,
                resident_email=payload.resident_email,
            )

        if payload.status is not None:
            current = change_status(current, payload.status, booking_repo, bus)

    return current
