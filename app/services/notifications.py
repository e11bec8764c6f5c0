"""Service for composing and queuing resident notifications."""

from __future__ import annotations

import logging

from app.domain.models import Booking, Notification
from app.repos.memory import NotificationRepository

logger = logging.getLogger(__name__)

RECEIVED_SUBJECT = "Amenity Booking Received"
CONFIRMED_SUBJECT = "Amenity Booking Confirmation"


def render_booking_message(booking: Booking) -> str:
    return (
        f"Dear {booking.resident_name},\n\n"
        f"Your booking of {booking.amenity_id} on {booking.booking_date:%Y-%m-%d} "
        f"from {booking.start_time} to {booking.end_time} is {booking.status}.\n"
        f"Booking reference: {booking.id}\n"
    )


def queue_booking_notification(
    booking: Booking,
    subject: str,
    notification_repo: NotificationRepository,
) -> Notification:
    """Queue a notification about *booking* to its resident and return it."""
    notification = Notification(
        booking_id=booking.id,
        recipient=booking.resident_email,
        subject=subject,
        body=render_booking_message(booking),
    )
    notification_repo.add(notification)
    logger.info(
        "Queued %r for booking %s to %s",
        subject,
        booking.id,
        booking.resident_email,
    )
    return notification
