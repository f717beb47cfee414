"""
Connection status store (state observer / dispatch sink).

Responsibilities:
- Subscribe to lifecycle events
- Fold them into an immutable ConnectionStatusSnapshot via a pure reducer
- Expose the latest snapshot for the HTTP layer and other readers

Non-responsibilities:
- No orchestration logic
- No persistence across restarts
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable

from events.emitter import EventEmitter
from events.types import Disconnected, Established, Failed, LifecycleEvent
from session.connection_status import ConnectionStatus


@dataclass(frozen=True)
class ConnectionStatusSnapshot:
    status: ConnectionStatus = ConnectionStatus.DOWN
    # Type: connection.handle.ConnectionHandle in practice
    connection: Any = None
    session_id: str | None = None
    error: str | None = None
    disconnect_reason: str | None = None
    updated_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "handle_id": getattr(self.connection, "handle_id", None),
            "session_id": self.session_id,
            "error": self.error,
            "disconnect_reason": self.disconnect_reason,
            "updated_ms": self.updated_ms,
        }


def reduce_status(
    snapshot: ConnectionStatusSnapshot,
    event: LifecycleEvent,
) -> ConnectionStatusSnapshot:
    """
    Pure reducer: (snapshot, event) -> snapshot.

    A Disconnected event for a connection other than the current one is
    stale and leaves the snapshot unchanged.
    """
    if isinstance(event, Established):
        return ConnectionStatusSnapshot(
            status=ConnectionStatus.UP,
            connection=event.connection,
            session_id=getattr(event.connection, "session_id", None),
            updated_ms=event.ts_ms,
        )

    if isinstance(event, Disconnected):
        if snapshot.connection is not event.connection:
            return snapshot
        return replace(
            snapshot,
            status=ConnectionStatus.DOWN,
            connection=None,
            disconnect_reason=event.reason,
            updated_ms=event.ts_ms,
        )

    if isinstance(event, Failed):
        return ConnectionStatusSnapshot(
            status=ConnectionStatus.FAILED,
            error=str(event.error),
            updated_ms=event.ts_ms,
        )

    return snapshot


class ConnectionStatusStore:
    """Holds the latest ConnectionStatusSnapshot."""

    def __init__(self) -> None:
        self._snapshot = ConnectionStatusSnapshot()
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def snapshot(self) -> ConnectionStatusSnapshot:
        return self._snapshot

    def dispatch(self, event: LifecycleEvent) -> None:
        self._snapshot = reduce_status(self._snapshot, event)

    def attach(self, emitter: EventEmitter) -> None:
        """Start observing `emitter`. Re-attaching moves the subscription."""
        self.detach()
        self._unsubscribe = emitter.subscribe(self.dispatch)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
