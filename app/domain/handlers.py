"""Domain event handlers, wired up at application startup."""

from __future__ import annotations

from app.domain.bus import EventBus
from app.domain.events import BookingAdmitted, BookingRescheduled, BookingStatusChanged
from app.domain.models import (
    Booking,
    BookingHistoryEntry,
    BookingStatus,
    HistoryEntryType,
)
from app.repos.memory import (
    BookingHistoryRepository,
    BookingRepository,
    NotificationRepository,
)
from app.services.notifications import (
    CONFIRMED_SUBJECT,
    RECEIVED_SUBJECT,
    queue_booking_notification,
)


class HandlerRegistry:
    """Wires booking-event handlers to the bus with access to all repositories."""

    def __init__(
        self,
        bus: EventBus,
        booking_repo: BookingRepository,
        history_repo: BookingHistoryRepository,
        notification_repo: NotificationRepository,
    ) -> None:
        self.bus = bus
        self.booking_repo = booking_repo
        self.history_repo = history_repo
        self.notification_repo = notification_repo
        self._register()

    def _subscriptions(self):
        return (
            (BookingAdmitted, self.on_booking_admitted),
            (BookingStatusChanged, self.on_status_changed),
            (BookingRescheduled, self.on_rescheduled),
        )

    def _register(self) -> None:
        for event_type, handler in self._subscriptions():
            self.bus.subscribe(event_type, handler)

    def close(self) -> None:
        """Detach every handler this registry put on the bus."""
        for event_type, handler in self._subscriptions():
            self.bus.unsubscribe(event_type, handler)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_admitted(self, event: BookingAdmitted) -> None:
        stored = self.booking_repo.get(event.booking_id)
        if stored is None:
            return

        self.history_repo.add(
            BookingHistoryEntry(
                booking_id=stored.id,
                type=HistoryEntryType.ADMITTED,
                payload={"booking_time": stored.booking_time, "status": stored.status},
            )
        )
        self._notify(stored, RECEIVED_SUBJECT)

    def on_status_changed(self, event: BookingStatusChanged) -> None:
        stored = self.booking_repo.get(event.booking_id)
        if stored is None:
            return

        self.history_repo.add(
            BookingHistoryEntry(
                booking_id=stored.id,
                type=HistoryEntryType.STATUS_CHANGED,
                payload={"from": event.previous_status, "to": event.status},
            )
        )
        if event.status == BookingStatus.CONFIRMED:
            self._notify(stored, CONFIRMED_SUBJECT)

    def on_rescheduled(self, event: BookingRescheduled) -> None:
        if self.booking_repo.get(event.booking_id) is None:
            return

        self.history_repo.add(
            BookingHistoryEntry(
                booking_id=event.booking_id,
                type=HistoryEntryType.RESCHEDULED,
                payload={
                    "from": event.previous_booking_time,
                    "to": event.booking_time,
                },
            )
        )

    def _notify(self, booking: Booking, subject: str) -> None:
        notification = queue_booking_notification(
            booking, subject, self.notification_repo
        )
        self.history_repo.add(
            BookingHistoryEntry(
                booking_id=booking.id,
                type=HistoryEntryType.NOTIFIED,
                payload={"notification_id": notification.id, "subject": subject},
            )
        )
