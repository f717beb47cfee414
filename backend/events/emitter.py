"""
Lifecycle event emitter.

Responsibilities:
- Fan out LifecycleEvent values to subscribers, in subscription order
- Isolate subscribers from each other's failures

Non-responsibilities:
- No buffering, no replay: a late subscriber misses earlier events
- No deduplication: publishers (ConnectionHandle) guarantee each event
  instance is emitted once
"""

from __future__ import annotations

from typing import Callable

from events.types import LifecycleEvent
from observability.logger import log_event


Subscriber = Callable[[LifecycleEvent], None]


class EventEmitter:
    """Synchronous publish/subscribe for lifecycle events."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register `callback` for future events.

        Subscribing the same callable twice is a no-op, so a subscriber
        never sees an event twice.

        Returns:
            A zero-argument function that unsubscribes `callback`.
        """
        if callback not in self._subscribers:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback)

        return _unsubscribe

    def unsubscribe(self, callback: Subscriber) -> None:
        """Remove `callback`. Unknown callbacks are ignored."""
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    def emit(self, event: LifecycleEvent) -> None:
        """
        Deliver `event` to every current subscriber exactly once.

        Iterates over a snapshot, so subscribers added or removed during
        delivery take effect from the next event.
        """
        for callback in tuple(self._subscribers):
            try:
                callback(event)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "EMITTER_SUBSCRIBER_ERROR",
                    "lifecycle_event": event.event_type.value,
                    "subscriber": getattr(callback, "__qualname__", repr(callback)),
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })

    def subscriber_count(self) -> int:
        return len(self._subscribers)
