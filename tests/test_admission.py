"""Tests for the booking admission checker."""

from __future__ import annotations

from datetime import date, datetime, time

import pytest

from app.domain.models import (
    Accepted,
    Booking,
    BookingRequest,
    BookingStatus,
    Rejected,
    RejectionReason,
)
from app.services.admission import (
    days_between,
    evaluate,
    extends_consecutive_streak,
)


def _request(
    booking_date: date = date(2024, 3, 10),
    start_time: str | None = "14:00",
    end_time: str | None = "15:00",
    booking_time: str | None = None,
) -> BookingRequest:
    return BookingRequest(
        resident_id="R1",
        amenity_id="A1",
        booking_date=booking_date,
        start_time=start_time,
        end_time=end_time,
        booking_time=booking_time,
    )


def _booking(
    booking_date: date,
    start: str = "09:00",
    end: str = "10:00",
    status: BookingStatus = BookingStatus.CONFIRMED,
    resident_id: str = "R1",
) -> Booking:
    start_t = time.fromisoformat(start)
    end_t = time.fromisoformat(end)
    return Booking(
        resident_id=resident_id,
        resident_name="Resident One",
        resident_email="r1@example.com",
        amenity_id="A1",
        booking_date=booking_date,
        start_time=start,
        end_time=end,
        booking_time=f"{start}-{end}",
        starts_at=datetime.combine(booking_date, start_t),
        ends_at=datetime.combine(booking_date, end_t),
        status=status,
    )


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def test_accepts_with_no_history():
    """A request with no prior bookings and no candidates is accepted."""
    decision = evaluate(_request(), [], [])

    assert isinstance(decision, Accepted)
    assert decision.canonical_range_label == "14:00-15:00"
    assert decision.canonical_start == datetime(2024, 3, 10, 14, 0)
    assert decision.canonical_end == datetime(2024, 3, 10, 15, 0)
    assert decision.start_time == "14:00"
    assert decision.end_time == "15:00"


def test_rejects_overlap_with_confirmed_booking():
    existing = _booking(date(2024, 3, 10), "14:30", "15:30")

    decision = evaluate(_request(), [], [existing])

    assert isinstance(decision, Rejected)
    assert decision.reason == RejectionReason.SLOT_OVERLAP
    assert decision.conflicting_booking_ids == [existing.id]


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "start_time, end_time",
    [
        ("9:00", "10:00"),
        ("09:00", "24:00"),
        ("09:60", "10:00"),
        ("0900", "1000"),
        ("09:00 ", "10:00"),
        ("", "10:00"),
        (None, "10:00"),
        ("09:00", None),
        ("ab:cd", "10:00"),
    ],
)
def test_malformed_times_are_invalid_input(start_time, end_time):
    decision = evaluate(_request(start_time=start_time, end_time=end_time), [], [])

    assert isinstance(decision, Rejected)
    assert decision.reason == RejectionReason.INVALID_INPUT


@pytest.mark.parametrize(
    "start_time, end_time", [("10:00", "10:00"), ("11:00", "10:00"), ("23:59", "00:00")]
)
def test_end_not_after_start_is_invalid_input(start_time, end_time):
    decision = evaluate(_request(start_time=start_time, end_time=end_time), [], [])

    assert isinstance(decision, Rejected)
    assert decision.reason == RejectionReason.INVALID_INPUT
    assert "must be after" in decision.detail


def test_invalid_input_detail_names_the_field():
    decision = evaluate(_request(start_time="09:00", end_time="25:00"), [], [])

    assert isinstance(decision, Rejected)
    assert "end_time" in decision.detail


def test_invalid_input_is_checked_before_business_rules():
    """Malformed times win even when the request would also overlap."""
    existing = _booking(date(2024, 3, 10), "14:00", "15:00")

    decision = evaluate(_request(end_time="1500"), [], [existing])

    assert decision.reason == RejectionReason.INVALID_INPUT


# ---------------------------------------------------------------------------
# Canonicalization
# ---------------------------------------------------------------------------


def test_label_is_identical_for_separate_and_legacy_times():
    separate = evaluate(_request(start_time="09:00", end_time="10:00"), [], [])
    legacy = evaluate(
        _request(start_time=None, end_time=None, booking_time="09:00 to 10:00"), [], []
    )
    dashed = evaluate(
        _request(start_time=None, end_time=None, booking_time="09:00-10:00"), [], []
    )

    assert separate.canonical_range_label == "09:00-10:00"
    assert legacy.canonical_range_label == "09:00-10:00"
    assert dashed.canonical_range_label == "09:00-10:00"


def test_repeated_evaluation_gives_same_label():
    first = evaluate(_request(), [], [])
    second = evaluate(_request(), [], [])

    assert first == second


def test_explicit_times_win_over_legacy_string():
    decision = evaluate(_request(booking_time="06:00 to 07:00"), [], [])

    assert decision.canonical_range_label == "14:00-15:00"


def test_malformed_legacy_string_is_invalid_input():
    decision = evaluate(
        _request(start_time=None, end_time=None, booking_time="from nine to ten"), [], []
    )

    assert decision.reason == RejectionReason.INVALID_INPUT


# ---------------------------------------------------------------------------
# Overlap
# ---------------------------------------------------------------------------


def test_touching_endpoints_do_not_overlap():
    existing = _booking(date(2024, 3, 10), "10:00", "11:00")

    decision = evaluate(_request(start_time="09:00", end_time="10:00"), [], [existing])

    assert isinstance(decision, Accepted)


def test_booking_right_after_existing_is_accepted():
    existing = _booking(date(2024, 3, 10), "10:00", "11:00")

    decision = evaluate(_request(start_time="11:00", end_time="12:00"), [], [existing])

    assert isinstance(decision, Accepted)


def test_partial_overlap_is_rejected():
    existing = _booking(date(2024, 3, 10), "10:00", "11:00")

    decision = evaluate(_request(start_time="09:30", end_time="10:30"), [], [existing])

    assert isinstance(decision, Rejected)
    assert decision.reason == RejectionReason.SLOT_OVERLAP


def test_containing_range_is_rejected():
    existing = _booking(date(2024, 3, 10), "10:00", "10:30")

    decision = evaluate(_request(start_time="09:00", end_time="12:00"), [], [existing])

    assert decision.reason == RejectionReason.SLOT_OVERLAP


def test_reports_every_conflicting_booking():
    first = _booking(date(2024, 3, 10), "09:00", "10:00")
    second = _booking(date(2024, 3, 10), "11:00", "12:00")
    clear = _booking(date(2024, 3, 10), "13:00", "14:00")

    decision = evaluate(
        _request(start_time="09:30", end_time="11:30"), [], [first, second, clear]
    )

    assert decision.conflicting_booking_ids == [first.id, second.id]


# ---------------------------------------------------------------------------
# Consecutive-day limit
# ---------------------------------------------------------------------------


def test_third_consecutive_day_is_rejected():
    prior = [_booking(date(2024, 1, 2)), _booking(date(2024, 1, 1))]

    decision = evaluate(_request(booking_date=date(2024, 1, 3)), prior, [])

    assert isinstance(decision, Rejected)
    assert decision.reason == RejectionReason.CONSECUTIVE_DAY_LIMIT_EXCEEDED
    assert "2 consecutive days" in decision.detail


def test_gap_between_prior_bookings_allows_booking():
    prior = [_booking(date(2024, 1, 5)), _booking(date(2024, 1, 1))]

    decision = evaluate(_request(booking_date=date(2024, 1, 6)), prior, [])

    assert isinstance(decision, Accepted)


def test_gap_before_new_booking_allows_booking():
    prior = [_booking(date(2024, 1, 2)), _booking(date(2024, 1, 1))]

    decision = evaluate(_request(booking_date=date(2024, 1, 4)), prior, [])

    assert isinstance(decision, Accepted)


def test_second_consecutive_day_is_allowed():
    prior = [_booking(date(2024, 1, 1))]

    decision = evaluate(_request(booking_date=date(2024, 1, 2)), prior, [])

    assert isinstance(decision, Accepted)


def test_only_two_most_recent_prior_bookings_are_considered():
    """Older entries beyond the first two never trigger the limit."""
    prior = [
        _booking(date(2024, 1, 5)),
        _booking(date(2024, 1, 3)),
        _booking(date(2024, 1, 2)),
    ]

    decision = evaluate(_request(booking_date=date(2024, 1, 6)), prior, [])

    assert isinstance(decision, Accepted)


def _day(n: int) -> date:
    return date(2024, 1, n)


def test_streak_after_reset_is_not_capped():
    """Days 1-2, skip 3, then 4-5-6: the 6th is blocked but a fresh pair is not.

    Only the two most recent prior bookings are inspected, so booking day 5
    after days 1, 2 and 4 is allowed even though the resident then holds
    bookings on four of five days. Whether the limit should apply to any
    rolling window is an open question; this pins the current behaviour.
    """
    day_4 = evaluate(_request(booking_date=_day(4)), [_booking(_day(2)), _booking(_day(1))], [])
    day_5 = evaluate(_request(booking_date=_day(5)), [_booking(_day(4)), _booking(_day(2))], [])
    day_6 = evaluate(_request(booking_date=_day(6)), [_booking(_day(5)), _booking(_day(4))], [])

    assert isinstance(day_4, Accepted)
    assert isinstance(day_5, Accepted)
    assert day_6.reason == RejectionReason.CONSECUTIVE_DAY_LIMIT_EXCEEDED


def test_consecutive_check_runs_before_overlap_check():
    prior = [_booking(date(2024, 1, 2)), _booking(date(2024, 1, 1))]
    existing = _booking(date(2024, 1, 3), "14:00", "15:00", resident_id="R2")

    decision = evaluate(_request(booking_date=date(2024, 1, 3)), prior, [existing])

    assert decision.reason == RejectionReason.CONSECUTIVE_DAY_LIMIT_EXCEEDED


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_days_between_is_signed():
    assert days_between(date(2024, 1, 1), date(2024, 1, 3)) == 2
    assert days_between(date(2024, 1, 3), date(2024, 1, 1)) == -2


def test_days_between_crosses_month_and_leap_day():
    assert days_between(date(2024, 2, 28), date(2024, 3, 1)) == 2
    assert days_between(date(2023, 12, 31), date(2024, 1, 1)) == 1


def test_streak_needs_two_prior_bookings():
    assert extends_consecutive_streak(date(2024, 1, 3), []) is False
    assert extends_consecutive_streak(date(2024, 1, 3), [_booking(date(2024, 1, 2))]) is False


def test_streak_across_month_boundary():
    prior = [_booking(date(2024, 3, 1)), _booking(date(2024, 2, 29))]

    assert extends_consecutive_streak(date(2024, 3, 2), prior) is True
