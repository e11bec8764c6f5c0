"""FastAPI application: entry point for the amenity booking service."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app import config
from app.domain.bus import EventBus
from app.domain.errors import BookingNotFoundError, InvalidTransitionError
from app.domain.handlers import HandlerRegistry
from app.domain.models import (
    AvailabilityResponse,
    Booking,
    BookingHistoryEntry,
    BookingStatus,
    CreateBookingRequest,
    Notification,
    Rejected,
    RejectionReason,
    UpdateBookingRequest,
)
from app.repos.memory import (
    BookingHistoryRepository,
    BookingRepository,
    NotificationRepository,
    create_booking_repository,
)
from app.services.availability import get_availability
from app.services.booking import admit_booking, cancel_booking, update_booking
from app.services.locks import KeyedLocks

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=config.APP_TITLE)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
booking_repo = (
    create_booking_repository() if config.SEED_DEMO_DATA else BookingRepository()
)
history_repo = BookingHistoryRepository()
notification_repo = NotificationRepository()
slot_locks = KeyedLocks()

handler_registry = HandlerRegistry(
    bus=event_bus,
    booking_repo=booking_repo,
    history_repo=history_repo,
    notification_repo=notification_repo,
)


# ── Error mapping ─────────────────────────────────────────────────────


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies and parameters as 400 invalid input."""
    problems = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    logger.warning("Validation error for %s: %s", request.url.path, problems)
    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "reason": RejectionReason.INVALID_INPUT,
                "message": "; ".join(problems),
            }
        },
    )


def _raise_rejection(decision: Rejected) -> None:
    status_code = 400 if decision.reason == RejectionReason.INVALID_INPUT else 409
    raise HTTPException(
        status_code=status_code,
        detail={
            "reason": decision.reason,
            "message": decision.detail,
            "conflicting_booking_ids": decision.conflicting_booking_ids,
        },
    )


def _get_or_404(booking_id: str) -> Booking:
    booking = booking_repo.get(booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


# ── Routes ────────────────────────────────────────────────────────────


@app.post("/bookings", response_model=Booking, status_code=201)
def create_booking(payload: CreateBookingRequest) -> Booking:
    """Admit a new amenity booking; it is stored as Pending."""
    decision, booking = admit_booking(payload, booking_repo, slot_locks, event_bus)
    if isinstance(decision, Rejected):
        _raise_rejection(decision)
    return booking


@app.get("/bookings", response_model=list[Booking])
def list_bookings(
    resident_id: str | None = None,
    amenity_id: str | None = None,
    status: BookingStatus | None = None,
) -> list[Booking]:
    """Return stored bookings, optionally filtered."""
    return booking_repo.list_all(
        resident_id=resident_id, amenity_id=amenity_id, status=status
    )


@app.get("/bookings/{booking_id}", response_model=Booking)
def get_booking(booking_id: str) -> Booking:
    return _get_or_404(booking_id)


@app.patch("/bookings/{booking_id}", response_model=Booking)
def patch_booking(booking_id: str, body: UpdateBookingRequest) -> Booking:
    """Update contact details, reschedule, or move a booking through its lifecycle."""
    booking = _get_or_404(booking_id)
    try:
        result = update_booking(booking, body, booking_repo, slot_locks, event_bus)
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except BookingNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Booking not found") from exc
    if isinstance(result, Rejected):
        _raise_rejection(result)
    return result


@app.post("/bookings/{booking_id}/cancel", response_model=Booking)
def cancel(booking_id: str) -> Booking:
    booking = _get_or_404(booking_id)
    try:
        return cancel_booking(booking, booking_repo, slot_locks, event_bus)
    except InvalidTransitionError as exc:
        raise HTTPException(
            status_code=400, detail=f"Booking is already {exc.current}"
        ) from exc
    except BookingNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Booking not found") from exc


@app.delete("/bookings/{booking_id}", status_code=200)
def delete_booking(booking_id: str) -> dict:
    _get_or_404(booking_id)
    booking_repo.delete(booking_id)
    logger.info("Deleted booking %s", booking_id)
    return {"status": "deleted"}


@app.get("/bookings/{booking_id}/history", response_model=list[BookingHistoryEntry])
def booking_history(booking_id: str) -> list[BookingHistoryEntry]:
    """Return the lifecycle history of a booking, oldest first."""
    _get_or_404(booking_id)
    return history_repo.list_for_booking(booking_id)


@app.get("/amenities/{amenity_id}/availability", response_model=AvailabilityResponse)
def amenity_availability(
    amenity_id: str, booking_date: date = Query(alias="date")
) -> AvailabilityResponse:
    """Return booked ranges and free hourly slots for an amenity on a day."""
    return get_availability(
        amenity_id,
        booking_date,
        booking_repo,
        opening_hour=config.OPENING_HOUR,
        closing_hour=config.CLOSING_HOUR,
    )


@app.get("/notifications", response_model=list[Notification])
def list_notifications() -> list[Notification]:
    """Return all queued resident notifications."""
    return notification_repo.list_all()
