"""
Connection lifecycle enumerations.

Rules:
- These enums define ONLY discriminants.
- No behavior, no helper methods, no side effects.
- Transitions are defined exclusively in connection.transitions.
"""

from __future__ import annotations

from enum import Enum


class ConnectionState(str, Enum):
    """
    Lifecycle of one signaling connection owned by a ConnectionHandle.

    IDLE -> CONNECTING -> ESTABLISHED -> DISCONNECTED
                     \\-> FAILED
    """

    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    ESTABLISHED = "ESTABLISHED"
    DISCONNECTED = "DISCONNECTED"
    FAILED = "FAILED"


class ConnectionEventKind(str, Enum):
    """Event kinds emitted by a signaling connection object."""

    ESTABLISHED = "ESTABLISHED"
    FAILED = "FAILED"
    DISCONNECTED = "DISCONNECTED"


class ConnectionSignal(str, Enum):
    """
    Inputs to the connection state machine.

    The three library event kinds plus the two locally initiated actions.
    """

    CONNECT = "CONNECT"
    ESTABLISHED = "ESTABLISHED"
    FAILED = "FAILED"
    DISCONNECTED = "DISCONNECTED"
    CLOSE = "CLOSE"
