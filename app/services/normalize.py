"""Normalization helpers for booking dates, times of day and free text."""

from __future__ import annotations

import re
from datetime import date, datetime, time

import dateparser

TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")  # HH:MM 24h
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# "09:00 to 10:00" (legacy) or "09:00-10:00" (canonical)
_RANGE_SEPARATOR_RE = re.compile(r"\s+to\s+|\s*-\s*")
_UNSAFE_RE = re.compile(r"[<>]|javascript:", re.IGNORECASE)
_ISO_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")

_DATEPARSER_SETTINGS = {
    "RETURN_AS_TIMEZONE_AWARE": False,
    "REQUIRE_PARTS": ["day", "month"],
}


def sanitize_text(value):
    """Strip angle brackets and ``javascript:`` from strings; pass anything else through."""
    if not isinstance(value, str):
        return value
    return _UNSAFE_RE.sub("", value).strip()


def is_valid_email(value: str) -> bool:
    return isinstance(value, str) and EMAIL_RE.match(value) is not None


def parse_booking_date(raw: str | date | datetime | None) -> date | None:
    """Parse a booking date, dropping any time-of-day component.

    ISO dates are taken as-is and an invalid ISO date is never reinterpreted.
    Anything else goes through ``dateparser``, which must find at least a day
    and a month.
    Returns ``None`` when no date can be recognised.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    raw = raw.strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        pass
    if _ISO_DATE_PREFIX_RE.match(raw):
        # ISO-shaped but out of range, e.g. 2024-13-01
        return None
    result = dateparser.parse(raw, settings=_DATEPARSER_SETTINGS)
    if result is None:
        return None
    return result.date()


def parse_clock(raw: str | None, field: str = "time") -> time:
    """Parse a 24-hour ``HH:MM`` string. Raises ``ValueError`` naming *field*."""
    if not isinstance(raw, str) or not TIME_RE.fullmatch(raw):
        raise ValueError(f"Invalid {field} {raw!r} (HH:MM expected)")
    hours, minutes = raw.split(":")
    return time(int(hours), int(minutes))


def split_range(booking_time: str) -> tuple[str, str]:
    """Split a combined range string into its start and end parts."""
    parts = _RANGE_SEPARATOR_RE.split(booking_time.strip())
    if len(parts) != 2:
        raise ValueError(
            f"Invalid booking_time {booking_time!r} (HH:MM-HH:MM expected)"
        )
    return parts[0], parts[1]


def normalize_time_range(
    start_time: str | None,
    end_time: str | None,
    booking_time: str | None = None,
) -> tuple[time, time]:
    """Resolve the requested start and end times of day.

    Explicit ``start_time``/``end_time`` take precedence; otherwise the legacy
    combined ``booking_time`` is split. Raises ``ValueError`` with the violated
    constraint when the range is malformed or not strictly increasing.
    """
    if start_time is None and end_time is None and booking_time:
        start_time, end_time = split_range(booking_time)

    start = parse_clock(start_time, "start_time")
    end = parse_clock(end_time, "end_time")
    if end <= start:
        raise ValueError(
            f"end_time {end_time} must be after start_time {start_time}"
        )
    return start, end


def range_label(start: time, end: time) -> str:
    return f"{start:%H:%M}-{end:%H:%M}"
