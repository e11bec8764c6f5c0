"""Service for listing an amenity's booked ranges and free hourly slots."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from dateutil.rrule import HOURLY, rrule

from app.domain.models import AvailabilityResponse, BookedRange
from app.repos.memory import BookingRepository
from app.services.conflicts import find_conflicts


def hourly_slots(booking_date: date, opening_hour: int, closing_hour: int) -> list[datetime]:
    """Start times of every whole-hour slot between opening and closing."""
    if closing_hour <= opening_hour:
        return []
    dtstart = datetime.combine(booking_date, time(opening_hour))
    return list(rrule(HOURLY, dtstart=dtstart, count=closing_hour - opening_hour))


def get_availability(
    amenity_id: str,
    booking_date: date,
    booking_repo: BookingRepository,
    opening_hour: int,
    closing_hour: int,
) -> AvailabilityResponse:
    """Return the active bookings and the hourly slots no booking touches."""
    active = booking_repo.find_active_on(amenity_id, booking_date)

    free_slots: list[str] = []
    for slot_start in hourly_slots(booking_date, opening_hour, closing_hour):
        slot_end = slot_start + timedelta(hours=1)
        if not find_conflicts(slot_start, slot_end, active):
            # A slot ending at midnight is labelled 24:00
            end_label = "24:00" if slot_end.date() != booking_date else f"{slot_end:%H:%M}"
            free_slots.append(f"{slot_start:%H:%M}-{end_label}")

    return AvailabilityResponse(
        amenity_id=amenity_id,
        booking_date=booking_date,
        booked=[
            BookedRange(booking_id=b.id, booking_time=b.booking_time, status=b.status)
            for b in active
        ],
        free_slots=free_slots,
    )
