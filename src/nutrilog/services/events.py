"""In-process event bus for pipeline notifications."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from nutrilog.domain.entries import LogEntry
from nutrilog.domain.jobs import PendingJob

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoodEntryAdded:
    """A log entry was committed."""

    entry: LogEntry


@dataclass(frozen=True)
class AnalysisFinished:
    """A pending job left the Analyzing state."""

    job: PendingJob


TEvent = TypeVar("TEvent")
Handler = Callable[[TEvent], Awaitable[None]]


@dataclass
class EventBus:
    """Dispatches events to async handlers in subscription order.

    A failing handler is logged and does not prevent the others from running.
    """

    _handlers: dict[type, list[Handler]] = field(default_factory=dict)

    def subscribe(self, event_type: type[TEvent], handler: Handler) -> None:
        """Register a handler for an event type."""
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type[TEvent], handler: Handler) -> bool:
        """Remove a handler, returning True if it was registered."""
        handlers = self._handlers.get(event_type, [])
        if handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    async def publish(self, event: object) -> None:
        """Deliver an event to every handler subscribed to its type."""
        for handler in list(self._handlers.get(type(event), [])):
            try:
                await handler(event)
            except Exception:
                _logger.exception(
                    "Event handler failed: event=%s handler=%s",
                    type(event).__name__,
                    getattr(handler, "__name__", repr(handler)),
                )
