"""Synchronous in-process event bus for booking domain events."""

from __future__ import annotations

import logging
from collections import defaultdict
from threading import Lock
from typing import Any, Callable

from app.domain.errors import EventDispatchError

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", repr(handler))


class EventBus:
    """Publish/subscribe bus keyed by event type.

    Handlers run synchronously in registration order. A failing handler does
    not stop the remaining handlers from seeing the event; once all of them
    have run, the failures are raised together as ``EventDispatchError``.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._subscribers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        with self._lock:
            self._subscribers[event_type].append(handler)
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type, handler: Handler) -> bool:
        """Detach *handler*; returns ``False`` if it was not subscribed."""
        with self._lock:
            handlers = self._subscribers.get(event_type)
            if not handlers or handler not in handlers:
                return False
            handlers.remove(handler)
            if not handlers:
                del self._subscribers[event_type]
        return True

    def handlers_for(self, event_type: type) -> tuple[Handler, ...]:
        with self._lock:
            return tuple(self._subscribers.get(event_type, ()))

    def publish(self, event: Any) -> None:
        event_type = type(event)
        # Snapshot, so handlers may (un)subscribe while the event is delivered
        handlers = self.handlers_for(event_type)
        if not handlers:
            logger.debug("No handlers for %s", event_type.__name__)
            return

        failures: list[Exception] = []
        for handler in handlers:
            try:
                handler(event)
            except Exception as exc:
                logger.exception(
                    "Handler %s failed for %s", _handler_name(handler), event_type.__name__
                )
                failures.append(exc)
        if failures:
            raise EventDispatchError(event, failures) from failures[0]
