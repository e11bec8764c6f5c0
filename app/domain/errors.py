"""Domain exceptions raised by repositories and workflows."""

from __future__ import annotations


class BookingError(Exception):
    """Base class for booking domain errors."""


class SlotTakenError(BookingError):
    """An active booking already holds this amenity/date/start slot."""

    def __init__(self, amenity_id: str, booking_date, start_time: str) -> None:
        self.amenity_id = amenity_id
        self.booking_date = booking_date
        self.start_time = start_time
        super().__init__(
            f"Slot {start_time} on {booking_date} for {amenity_id} is already taken"
        )


class InvalidTransitionError(BookingError):
    """A status change that the booking lifecycle does not allow."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change booking status from {current} to {requested}")


class BookingNotFoundError(BookingError):
    """The booking was removed while a workflow was acting on it."""

    def __init__(self, booking_id: str) -> None:
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found")


class EventDispatchError(BookingError):
    """One or more handlers failed while an event was being published."""

    def __init__(self, event, failures: list[Exception]) -> None:
        self.event = event
        self.failures = failures
        super().__init__(
            f"{len(failures)} handler(s) failed for {type(event).__name__}"
        )
