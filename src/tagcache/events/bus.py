"""Event bus for record mutation notifications.

The host publishes mutation events; the cache layer registers handlers per
event type. Dispatch is synchronous so invalidation has finished by the time
publish() returns to the writer.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from tagcache.events.schemas import AnyEvent

logger = logging.getLogger(__name__)


EventHandler = Callable[[Any], None]


class EventBus(ABC):
    """Abstract event bus interface."""

    @abstractmethod
    def subscribe(self, event_type: type[AnyEvent], handler: EventHandler) -> None:
        """Register a handler for one event type."""
        pass

    @abstractmethod
    def unsubscribe(self, event_type: type[AnyEvent], handler: EventHandler) -> None:
        """Remove a previously registered handler."""
        pass

    @abstractmethod
    def publish(self, event: AnyEvent) -> int:
        """Deliver an event; returns the number of handlers invoked."""
        pass


class LocalEventBus(EventBus):
    """In-process event bus with synchronous dispatch.

    Handlers run in subscription order. A failing handler is logged and the
    remaining handlers still run; publishers never see handler errors.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = {}

    def subscribe(self, event_type: type[AnyEvent], handler: EventHandler) -> None:
        handlers = self._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            handler_name = getattr(handler, "__name__", handler.__class__.__name__)
            logger.debug(f"Subscribed {handler_name} to {event_type.__name__}")

    def unsubscribe(self, event_type: type[AnyEvent], handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: AnyEvent) -> int:
        handlers = list(self._handlers.get(type(event), ()))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in handler for {type(event).__name__}")
        return len(handlers)

    def handler_count(self, event_type: type[AnyEvent]) -> int:
        """Number of handlers registered for an event type."""
        return len(self._handlers.get(event_type, ()))
