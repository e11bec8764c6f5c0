"""Domain models for the amenity booking system."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.services.normalize import is_valid_email, sanitize_text


class BookingStatus(StrEnum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


# Statuses that hold a slot on the amenity calendar
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}


class RejectionReason(StrEnum):
    INVALID_INPUT = "invalid_input"
    SLOT_OVERLAP = "slot_overlap"
    CONSECUTIVE_DAY_LIMIT_EXCEEDED = "consecutive_day_limit_exceeded"


class HistoryEntryType(StrEnum):
    ADMITTED = "admitted"
    STATUS_CHANGED = "status_changed"
    RESCHEDULED = "rescheduled"
    NOTIFIED = "notified"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Booking(BaseModel):
    id: str = Field(default_factory=_new_id)
    resident_id: str
    resident_name: str
    resident_email: str
    amenity_id: str
    booking_date: date
    start_time: str
    end_time: str
    booking_time: str
    starts_at: datetime
    ends_at: datetime
    status: BookingStatus = BookingStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_after_start(self) -> Booking:
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class BookingHistoryEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    booking_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    type: HistoryEntryType
    payload: dict = Field(default_factory=dict)


class Notification(BaseModel):
    id: str = Field(default_factory=_new_id)
    booking_id: str
    recipient: str
    subject: str
    body: str
    channel: str = "log"
    created_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Admission checker input / output
# ---------------------------------------------------------------------------


class BookingRequest(BaseModel):
    """A proposed booking as seen by the admission checker.

    Times may be given either as ``start_time``/``end_time`` or as a legacy
    combined ``booking_time`` such as ``"09:00 to 10:00"``.
    """

    resident_id: str
    amenity_id: str
    booking_date: date
    start_time: str | None = None
    end_time: str | None = None
    booking_time: str | None = None


class Accepted(BaseModel):
    outcome: Literal["accepted"] = "accepted"
    canonical_start: datetime
    canonical_end: datetime
    canonical_range_label: str

    @property
    def start_time(self) -> str:
        return self.canonical_start.strftime("%H:%M")

    @property
    def end_time(self) -> str:
        return self.canonical_end.strftime("%H:%M")


class Rejected(BaseModel):
    outcome: Literal["rejected"] = "rejected"
    reason: RejectionReason
    detail: str
    conflicting_booking_ids: list[str] = Field(default_factory=list)


Decision = Union[Accepted, Rejected]


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class CreateBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    resident_id: str = Field(min_length=1)
    resident_name: str = Field(min_length=1)
    resident_email: str
    amenity_id: str = Field(min_length=1)
    booking_date: str
    start_time: str | None = None
    end_time: str | None = None
    booking_time: str | None = None

    @field_validator(
        "resident_id",
        "resident_name",
        "resident_email",
        "amenity_id",
        "booking_time",
        mode="before",
    )
    @classmethod
    def _sanitize(cls, value):
        return sanitize_text(value)

    @field_validator("resident_email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not is_valid_email(value):
            raise ValueError("Invalid email")
        return value


class UpdateBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: BookingStatus | None = None
    start_time: str | None = None
    end_time: str | None = None
    booking_time: str | None = None
    resident_name: str | None = Field(default=None, min_length=1)
    resident_email: str | None = None

    @field_validator("resident_name", "resident_email", "booking_time", mode="before")
    @classmethod
    def _sanitize(cls, value):
        return sanitize_text(value)

    @field_validator("resident_email")
    @classmethod
    def _check_email(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_email(value):
            raise ValueError("Invalid email")
        return value

    @property
    def changes_time(self) -> bool:
        return any(
            v is not None for v in (self.start_time, self.end_time, self.booking_time)
        )


class BookedRange(BaseModel):
    booking_id: str
    booking_time: str
    status: BookingStatus


class AvailabilityResponse(BaseModel):
    amenity_id: str
    booking_date: date
    booked: list[BookedRange] = Field(default_factory=list)
    free_slots: list[str] = Field(default_factory=list)
