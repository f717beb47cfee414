# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
import json
import socket
from typing import Any

import pytest
from websockets.legacy.server import serve

from adapters.signaling.websocket import WebSocketSignalingLibrary
from config import ConnectionConfig
from connection.enums import ConnectionState
from connection.handle import ConnectionHandle
from events.emitter import EventEmitter
from events.types import Disconnected, Established, LifecycleEvent
from lifecycle.errors import SignalingConnectionError


async def _handle_for(lib_options: dict[str, Any] | None = None):
    lib = WebSocketSignalingLibrary()
    await lib.init(lib_options or {"open_timeout_s": 2})
    emitter = EventEmitter()
    events: list[LifecycleEvent] = []
    emitter.subscribe(events.append)
    return ConnectionHandle(library=lib, emitter=emitter), emitter, events


def test_handshake_headers_messages_and_remote_close():
    seen: dict[str, Any] = {}

    async def server_handler(ws):
        seen["path"] = ws.path
        seen["auth"] = ws.request_headers.get("Authorization")
        seen["app_id"] = ws.request_headers.get("X-App-Id")
        seen["message"] = json.loads(await ws.recv())
        await ws.close(code=1000, reason="bye")

    async def scenario():
        async with serve(server_handler, "127.0.0.1", 0) as server:
            port = server.sockets[0].getsockname()[1]
            handle, emitter, events = await _handle_for()
            gone = asyncio.Event()
            emitter.subscribe(
                lambda e: gone.set() if isinstance(e, Disconnected) else None
            )

            config = ConnectionConfig(
                endpoint=f"ws://127.0.0.1:{port}/signal",
                auth_token="t",
                app_id="app",
            )
            await handle.connect(config, "room1")
            await handle.connection.send_json({"type": "join", "room": "room1"})
            await asyncio.wait_for(gone.wait(), timeout=5)
            await handle.disconnect()
            return handle, events

    handle, events = asyncio.run(scenario())

    assert seen == {
        "path": "/signal?room=room1",
        "auth": "Bearer t",
        "app_id": "app",
        "message": {"type": "join", "room": "room1"},
    }
    assert [type(e) for e in events] == [Established, Disconnected]
    assert events[1].reason == "1000 bye"
    assert handle.state is ConnectionState.DISCONNECTED


def test_local_disconnect_closes_socket():
    async def scenario():
        server_saw_close = asyncio.Event()

        async def server_handler(ws):
            await ws.wait_closed()
            server_saw_close.set()

        async with serve(server_handler, "127.0.0.1", 0) as server:
            port = server.sockets[0].getsockname()[1]
            handle, _, events = await _handle_for()
            await handle.connect(ConnectionConfig(endpoint=f"ws://127.0.0.1:{port}"))
            await handle.disconnect()
            await asyncio.wait_for(server_saw_close.wait(), timeout=5)
            return events

    events = asyncio.run(scenario())

    assert [type(e) for e in events] == [Established, Disconnected]
    assert events[1].reason == "1000"


def test_refused_connection_fails_handshake():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()

    async def scenario():
        handle, _, events = await _handle_for()
        with pytest.raises(SignalingConnectionError):
            await handle.connect(ConnectionConfig(endpoint=f"ws://127.0.0.1:{port}"))
        return handle, events

    handle, events = asyncio.run(scenario())

    assert handle.state is ConnectionState.FAILED
    assert [e.event_type.value for e in events] == ["FAILED"]
