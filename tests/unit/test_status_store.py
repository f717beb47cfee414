# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio

from events.emitter import EventEmitter
from events.types import Disconnected, Established, Failed
from session.connection_status import ConnectionStatus
from session.status_store import (
    ConnectionStatusSnapshot,
    ConnectionStatusStore,
    reduce_status,
)

from fakes import CONFIG, Rig, fail_with


class FakeHandle:
    def __init__(self, handle_id: str, session_id: str | None = None) -> None:
        self.handle_id = handle_id
        self.session_id = session_id


def test_initial_snapshot_is_down():
    snap = ConnectionStatusStore().snapshot

    assert snap.status is ConnectionStatus.DOWN
    assert snap.to_dict()["handle_id"] is None


def test_established_then_disconnected():
    h = FakeHandle("conn_1", "room1")
    snap = ConnectionStatusSnapshot()

    snap = reduce_status(snap, Established(connection=h, ts_ms=10))
    assert snap.status is ConnectionStatus.UP
    assert snap.connection is h
    assert snap.session_id == "room1"

    snap = reduce_status(snap, Disconnected(connection=h, reason="bye", ts_ms=20))
    assert snap.status is ConnectionStatus.DOWN
    assert snap.connection is None
    assert snap.disconnect_reason == "bye"
    assert snap.updated_ms == 20


def test_stale_disconnect_is_ignored():
    old, new = FakeHandle("conn_old"), FakeHandle("conn_new")
    snap = reduce_status(ConnectionStatusSnapshot(), Established(connection=new))

    after = reduce_status(snap, Disconnected(connection=old, reason="late"))

    assert after is snap


def test_failed_records_error_text():
    snap = reduce_status(ConnectionStatusSnapshot(), Failed(error="auth", ts_ms=5))

    assert snap.status is ConnectionStatus.FAILED
    assert snap.to_dict() == {
        "status": "FAILED",
        "handle_id": None,
        "session_id": None,
        "error": "auth",
        "disconnect_reason": None,
        "updated_ms": 5,
    }


def test_store_follows_emitter_until_detached():
    emitter = EventEmitter()
    store = ConnectionStatusStore()
    store.attach(emitter)

    emitter.emit(Failed(error="auth"))
    assert store.snapshot.status is ConnectionStatus.FAILED

    store.detach()
    emitter.emit(Established(connection=FakeHandle("conn_1")))
    assert store.snapshot.status is ConnectionStatus.FAILED
    assert emitter.subscriber_count() == 0


def test_store_tracks_orchestrated_session():
    rig = Rig(report_close=True)
    store = ConnectionStatusStore()
    store.attach(rig.emitter)

    async def scenario():
        await rig.orchestrator.initialize(CONFIG, "room1")
        up = store.snapshot
        await rig.orchestrator.teardown()
        return up, store.snapshot

    up, down = asyncio.run(scenario())

    assert up.status is ConnectionStatus.UP
    assert up.session_id == "room1"
    assert down.status is ConnectionStatus.DOWN
    assert down.disconnect_reason == "closed"


def test_store_reports_failed_connect():
    rig = Rig(on_connect=fail_with("auth"))
    store = ConnectionStatusStore()
    store.attach(rig.emitter)

    async def scenario():
        try:
            await rig.orchestrator.initialize(CONFIG, "room1")
        except Exception:  # pylint: disable=broad-exception-caught
            pass

    asyncio.run(scenario())

    assert store.snapshot.status is ConnectionStatus.FAILED
    assert store.snapshot.error == "auth"


def test_status_values_are_event_derived_only():
    assert [s.value for s in ConnectionStatus] == ["DOWN", "UP", "FAILED"]
