"""
Lifecycle event definitions.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- Events are transient: dispatched, never stored by the emitter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class LifecycleEventType(str, Enum):
    """Discriminant for lifecycle events."""

    ESTABLISHED = "ESTABLISHED"
    DISCONNECTED = "DISCONNECTED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class Established:
    """The signaling connection finished its handshake."""

    # Type: connection.handle.ConnectionHandle in practice
    connection: Any = field(compare=False, repr=False)
    ts_ms: int = 0
    event_type: LifecycleEventType = LifecycleEventType.ESTABLISHED


@dataclass(frozen=True)
class Disconnected:
    """A previously established signaling connection went away."""

    connection: Any = field(compare=False, repr=False)
    reason: str | None = None
    ts_ms: int = 0
    event_type: LifecycleEventType = LifecycleEventType.DISCONNECTED


@dataclass(frozen=True)
class Failed:
    """
    The signaling handshake failed.

    `error` is the value reported by the signaling library, unmodified.
    """

    error: Any
    ts_ms: int = 0
    event_type: LifecycleEventType = LifecycleEventType.FAILED


LifecycleEvent = Union[Established, Disconnected, Failed]
