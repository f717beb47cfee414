"""
WebSocket signaling binding.

Core model:
- One WebSocket per SignalingConnection; the socket is opened in a
  background task started by connect().
- Socket opened        => ESTABLISHED
- Socket open failed   => FAILED(error text)
- Socket closed later  => DISCONNECTED("<code> <reason>")
- Inbound messages are logged only; session semantics are layered on top
  (see adapters.session.signaling).

Design constraints:
- Adapter must not own orchestration decisions.
- Adapter reports every outcome through listeners, never by raising from
  the background task.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Mapping

from websockets.exceptions import ConnectionClosed
from websockets.legacy.client import (
    connect as ws_connect,
    WebSocketClientProtocol,
)

from adapters.signaling.base import (
    ConnectionOptions,
    Listener,
    ListenerRegistry,
    SignalingConnection,
    SignalingLibrary,
)
from connection.enums import ConnectionEventKind
from constants import (
    APP_ID_HEADER,
    AUTH_HEADER,
    SIGNALING_MAX_MESSAGE_BYTES,
    SIGNALING_OPEN_TIMEOUT_S_DEFAULT,
)
from lifecycle.errors import InitializationError
from observability.logger import log_event


class WebSocketSignalingConnection(SignalingConnection):
    """
    Signaling connection over a single client WebSocket.

    Public interface:
    - connect(): start opening the socket (non-blocking)
    - disconnect(): close the socket and wait for the reader to finish
    - send_json(payload): send one JSON message on an open socket
    """

    def __init__(
        self,
        *,
        app_id: str | None,
        token: str | None,
        options: ConnectionOptions,
        open_timeout_s: float = SIGNALING_OPEN_TIMEOUT_S_DEFAULT,
        max_size: int = SIGNALING_MAX_MESSAGE_BYTES,
    ) -> None:
        self._app_id = app_id
        self._token = token
        self._url = options.signaling_url
        self._open_timeout_s = float(options.extra.get("open_timeout_s", open_timeout_s))
        self._max_size = max_size

        self._listeners = ListenerRegistry()
        self._ws: WebSocketClientProtocol | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def url(self) -> str:
        return self._url

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def add_event_listener(self, kind: ConnectionEventKind, listener: Listener) -> None:
        self._listeners.add(kind, listener)

    def remove_event_listener(self, kind: ConnectionEventKind, listener: Listener) -> None:
        self._listeners.remove(kind, listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        if self._task is not None:
            raise RuntimeError("connect() may only be called once per connection")
        self._task = asyncio.create_task(self._run())

    async def disconnect(self) -> None:
        ws = self._ws
        task = self._task

        if ws is not None:
            await ws.close()
        elif task is not None and not task.done():
            # Still opening: nothing to close yet, abandon the attempt
            task.cancel()

        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def send_json(self, payload: Mapping[str, Any]) -> None:
        ws = self._ws
        if ws is None:
            raise RuntimeError("signaling socket is not open")
        await ws.send(json.dumps(payload, separators=(",", ":")))

    # ------------------------------------------------------------------
    # Background task
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._token:
            headers[AUTH_HEADER] = f"Bearer {self._token}"
        if self._app_id:
            headers[APP_ID_HEADER] = self._app_id
        return headers

    async def _run(self) -> None:
        try:
            ws = await ws_connect(
                self._url,
                extra_headers=self._headers(),
                open_timeout=self._open_timeout_s,
                max_size=self._max_size,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._listeners.fire(ConnectionEventKind.FAILED, str(e) or type(e).__name__)
            return

        self._ws = ws
        self._listeners.fire(ConnectionEventKind.ESTABLISHED)

        reason = await self._recv_until_closed(ws)
        self._ws = None
        self._listeners.fire(ConnectionEventKind.DISCONNECTED, reason)

    async def _recv_until_closed(self, ws: WebSocketClientProtocol) -> str:
        try:
            async for raw in ws:
                self._log_inbound(raw)
        except ConnectionClosed:
            pass

        return f"{ws.close_code} {ws.close_reason}".strip()

    def _log_inbound(self, raw: str | bytes) -> None:
        msg_type: Any = None
        if isinstance(raw, str):
            try:
                msg_type = json.loads(raw).get("type")
            except (ValueError, AttributeError):
                msg_type = None

        log_event({
            "event_type": "SIGNALING_MESSAGE",
            "url": self._url,
            "message_type": msg_type,
            "size": len(raw),
        })


class WebSocketSignalingLibrary(SignalingLibrary):
    """
    Signaling library producing WebSocketSignalingConnection objects.

    init() validates process-wide defaults; it holds no sockets.
    """

    def __init__(self) -> None:
        self._initialized = False
        self._open_timeout_s = SIGNALING_OPEN_TIMEOUT_S_DEFAULT

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def init(self, options: Mapping[str, Any]) -> None:
        try:
            open_timeout_s = float(options.get("open_timeout_s", self._open_timeout_s))
        except (TypeError, ValueError) as e:
            raise InitializationError(f"invalid open_timeout_s: {e}") from e

        if open_timeout_s <= 0:
            raise InitializationError("open_timeout_s must be positive")

        self._open_timeout_s = open_timeout_s
        self._initialized = True

    def create_connection(
        self,
        app_id: str | None,
        token: str | None,
        options: ConnectionOptions,
    ) -> WebSocketSignalingConnection:
        if not self._initialized:
            raise InitializationError("signaling library used before init()")

        return WebSocketSignalingConnection(
            app_id=app_id,
            token=token,
            options=options,
            open_timeout_s=self._open_timeout_s,
        )
