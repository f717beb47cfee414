"""
Session provider layered on the WebSocket signaling connection.

Sends join/leave control messages on the signaling socket. The connection
is looked up through a getter on every call (read-only), so the provider
never holds on to a connection the orchestrator has already torn down.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Mapping, Protocol

from adapters.session.base import SessionContext, SessionProvider
from lifecycle.errors import SessionJoinError


class _JsonSender(Protocol):
    async def send_json(self, payload: Mapping[str, Any]) -> None: ...


class SignalingSessionProvider(SessionProvider):
    def __init__(self, *, get_connection: Callable[[], _JsonSender | None]) -> None:
        self._get_connection = get_connection
        self._current: SessionContext | None = None

    @property
    def current(self) -> SessionContext | None:
        return self._current

    async def join(self, session_id: str) -> SessionContext:
        conn = self._get_connection()
        if conn is None:
            raise SessionJoinError("no signaling connection to join over")

        try:
            await conn.send_json({"type": "join", "room": session_id})
        except Exception as e:  # pylint: disable=broad-exception-caught
            raise SessionJoinError(f"join {session_id!r} failed: {e}") from e

        self._current = SessionContext(
            session_id=session_id,
            joined_at_ms=time.time_ns() // 1_000_000,
        )
        return self._current

    async def leave(self) -> None:
        ctx = self._current
        self._current = None
        if ctx is None:
            return

        conn = self._get_connection()
        if conn is None:
            return
        await conn.send_json({"type": "leave", "room": ctx.session_id})
