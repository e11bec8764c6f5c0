"""Domain events emitted during the booking lifecycle."""

from __future__ import annotations

from pydantic import BaseModel

from app.domain.models import BookingStatus


class BookingAdmitted(BaseModel):
    """Fired when an admitted booking is stored as Pending."""

    booking_id: str


class BookingStatusChanged(BaseModel):
    """Fired when a booking moves to a new status (approval or cancellation)."""

    booking_id: str
    previous_status: BookingStatus
    status: BookingStatus


class BookingRescheduled(BaseModel):
    """Fired when a booking's time range changes."""

    booking_id: str
    previous_booking_time: str
    booking_time: str
