"""
Pure connection state machine.

(state, signal) -> new_state | None

Rules:
- Pure: no side effects, no IO, no clocks.
- Total: every (state, signal) pair not listed is rejected (None).
- A rejected signal must be ignored by the caller, never applied.

The table is what makes ESTABLISHED and FAILED mutually exclusive and
each at most once per attempt, and what confines DISCONNECTED to after
ESTABLISHED.
"""

from __future__ import annotations

from typing import Final, Mapping

from connection.enums import ConnectionSignal, ConnectionState


_TRANSITIONS: Final[Mapping[tuple[ConnectionState, ConnectionSignal], ConnectionState]] = {
    (ConnectionState.IDLE, ConnectionSignal.CONNECT): ConnectionState.CONNECTING,

    (ConnectionState.CONNECTING, ConnectionSignal.ESTABLISHED): ConnectionState.ESTABLISHED,
    (ConnectionState.CONNECTING, ConnectionSignal.FAILED): ConnectionState.FAILED,
    # Local close before the handshake settled fails the pending connect
    (ConnectionState.CONNECTING, ConnectionSignal.CLOSE): ConnectionState.FAILED,

    (ConnectionState.ESTABLISHED, ConnectionSignal.DISCONNECTED): ConnectionState.DISCONNECTED,
    (ConnectionState.ESTABLISHED, ConnectionSignal.CLOSE): ConnectionState.DISCONNECTED,
}


TERMINAL_STATES: Final[frozenset[ConnectionState]] = frozenset({
    ConnectionState.DISCONNECTED,
    ConnectionState.FAILED,
})


def next_state(
    state: ConnectionState,
    signal: ConnectionSignal,
) -> ConnectionState | None:
    """
    Return the state reached by applying `signal` in `state`.

    Returns None when the transition is not allowed.
    """
    return _TRANSITIONS.get((state, signal))
