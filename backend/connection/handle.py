"""
Connection handle: one signaling connection as an explicit state machine.

Responsibilities:
- Build the underlying connection from a ConnectionConfig
- Register the three library listeners before starting the handshake
- Turn library events into state transitions (connection.transitions)
- Publish Established / Failed / Disconnected exactly once each
- Settle the pending connect result exactly once

Non-responsibilities:
- No retries, no reconnects
- No session (room) semantics
- No knowledge of local media resources

Library signals that the transition table rejects are logged and dropped.
That is the only mechanism guarding against double resolution and
out-of-order events.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any
from uuid import uuid4

from adapters.signaling.base import (
    ConnectionOptions,
    SignalingConnection,
    SignalingLibrary,
)
from config import ConnectionConfig
from connection.enums import ConnectionEventKind, ConnectionSignal, ConnectionState
from connection.transitions import next_state
from constants import CONNECT_ABORTED_ERROR, DISCONNECT_REASON_LOCAL
from events.emitter import EventEmitter
from events.types import Disconnected, Established, Failed
from lifecycle.errors import OrchestrationStateError, SignalingConnectionError
from observability.logger import log_event


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_handle_id() -> str:
    return f"conn_{uuid4().hex[:12]}"


class ConnectionHandle:
    """
    Owns exactly one underlying signaling connection.

    Single use: IDLE -> CONNECTING -> ESTABLISHED -> DISCONNECTED,
    or CONNECTING -> FAILED. A new attempt needs a new handle.
    """

    def __init__(
        self,
        *,
        library: SignalingLibrary,
        emitter: EventEmitter,
        handle_id: str | None = None,
    ) -> None:
        self.handle_id = handle_id or _new_handle_id()
        self._library = library
        self._emitter = emitter

        self._state = ConnectionState.IDLE
        self._connection: SignalingConnection | None = None
        self._pending: asyncio.Future[ConnectionHandle] | None = None
        self._session_id: str | None = None
        self._closed = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connection(self) -> SignalingConnection | None:
        """The underlying library connection object, once created."""
        return self._connection

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def log_context(self) -> dict[str, Any]:
        return {
            "handle_id": self.handle_id,
            "session_id": self._session_id,
            "connection_state": self._state.value,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def connect(
        self,
        config: ConnectionConfig,
        session_id: str | None = None,
    ) -> ConnectionHandle:
        """
        Open the signaling connection.

        Returns:
            self, once the library reported ESTABLISHED.

        Raises:
            SignalingConnectionError carrying the library's FAILED value.
            OrchestrationStateError if this handle was already used.
        """
        if self._state is not ConnectionState.IDLE:
            raise OrchestrationStateError(
                f"connect() on a {self._state.value} handle; handles are single-use"
            )

        self._session_id = session_id
        self._pending = asyncio.get_running_loop().create_future()
        self._apply(ConnectionSignal.CONNECT)

        try:
            connection = self._library.create_connection(
                config.app_id,
                config.auth_token,
                ConnectionOptions(
                    signaling_url=config.signaling_url(session_id),
                    extra=dict(config.session_options),
                ),
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._on_failed(e)
            return await self._pending

        self._connection = connection

        connection.add_event_listener(
            ConnectionEventKind.DISCONNECTED, self._on_disconnected
        )
        connection.add_event_listener(
            ConnectionEventKind.ESTABLISHED, self._on_established
        )
        connection.add_event_listener(
            ConnectionEventKind.FAILED, self._on_failed
        )

        try:
            connection.connect()
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._on_failed(e)

        return await self._pending

    async def disconnect(self) -> None:
        """
        Close the underlying connection.

        No-op if the connection was never created or is already closed.
        Publishes Disconnected("local_disconnect") if the library did not
        report the close itself.
        """
        conn = self._connection
        if conn is None or self._closed:
            return
        self._closed = True

        try:
            await conn.disconnect()
        finally:
            self._remove_all_listeners(conn)

            if self._state is ConnectionState.CONNECTING:
                self._fail(CONNECT_ABORTED_ERROR, signal=ConnectionSignal.CLOSE)
            elif self._state is ConnectionState.ESTABLISHED:
                if self._apply(ConnectionSignal.CLOSE):
                    self._emitter.emit(
                        Disconnected(
                            connection=self,
                            reason=DISCONNECT_REASON_LOCAL,
                            ts_ms=_now_ms(),
                        )
                    )

    # ------------------------------------------------------------------
    # Library listeners
    # ------------------------------------------------------------------

    def _on_established(self, *_: Any) -> None:
        if not self._apply(ConnectionSignal.ESTABLISHED):
            return

        if self._connection is not None:
            self._unsubscribe_handshake(self._connection)

        self._emitter.emit(Established(connection=self, ts_ms=_now_ms()))

        if self._pending is not None and not self._pending.done():
            self._pending.set_result(self)

    def _on_failed(self, error: Any = None) -> None:
        self._fail(error, signal=ConnectionSignal.FAILED)

    def _on_disconnected(self, reason: Any = None) -> None:
        if not self._apply(ConnectionSignal.DISCONNECTED):
            return

        if self._connection is not None:
            self._connection.remove_event_listener(
                ConnectionEventKind.DISCONNECTED, self._on_disconnected
            )

        self._emitter.emit(
            Disconnected(
                connection=self,
                reason=None if reason is None else str(reason),
                ts_ms=_now_ms(),
            )
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _fail(self, error: Any, *, signal: ConnectionSignal) -> None:
        if not self._apply(signal):
            return

        if self._connection is not None:
            self._remove_all_listeners(self._connection)

        log_event({
            "event_type": "CONNECTION_FAILED",
            **self.log_context(),
            "error": str(error),
        })

        self._emitter.emit(Failed(error=error, ts_ms=_now_ms()))

        if self._pending is not None and not self._pending.done():
            exc = SignalingConnectionError(error)
            if isinstance(error, BaseException):
                exc.__cause__ = error
            self._pending.set_exception(exc)

    def _apply(self, signal: ConnectionSignal) -> bool:
        new_state = next_state(self._state, signal)
        if new_state is None:
            log_event({
                "event_type": "CONNECTION_SIGNAL_IGNORED",
                **self.log_context(),
                "signal": signal.value,
            })
            return False

        old_state = self._state
        self._state = new_state
        log_event({
            "event_type": "CONNECTION_TRANSITION",
            **self.log_context(),
            "from": old_state.value,
            "to": new_state.value,
            "signal": signal.value,
        })
        return True

    def _unsubscribe_handshake(self, conn: SignalingConnection) -> None:
        conn.remove_event_listener(ConnectionEventKind.ESTABLISHED, self._on_established)
        conn.remove_event_listener(ConnectionEventKind.FAILED, self._on_failed)

    def _remove_all_listeners(self, conn: SignalingConnection) -> None:
        self._unsubscribe_handshake(conn)
        conn.remove_event_listener(ConnectionEventKind.DISCONNECTED, self._on_disconnected)
