# pylint: disable=missing-module-docstring,missing-function-docstring
from typing import Any

import pytest

import events.emitter as emitter_mod
from events.emitter import EventEmitter
from events.types import Disconnected, Established, Failed, LifecycleEvent


def test_each_subscriber_gets_each_event_once():
    emitter = EventEmitter()
    a: list[LifecycleEvent] = []
    b: list[LifecycleEvent] = []
    emitter.subscribe(a.append)
    emitter.subscribe(b.append)
    emitter.subscribe(a.append)  # duplicate subscription is ignored

    event = Failed(error="auth")
    emitter.emit(event)

    assert a == [event]
    assert b == [event]
    assert emitter.subscriber_count() == 2


def test_no_replay_for_late_subscribers():
    emitter = EventEmitter()
    emitter.emit(Established(connection=None))

    late: list[LifecycleEvent] = []
    emitter.subscribe(late.append)
    emitter.emit(Disconnected(connection=None, reason="bye"))

    assert [e.event_type.value for e in late] == ["DISCONNECTED"]


def test_unsubscribe_function_stops_delivery():
    emitter = EventEmitter()
    seen: list[LifecycleEvent] = []
    unsubscribe = emitter.subscribe(seen.append)

    unsubscribe()
    unsubscribe()
    emitter.emit(Failed(error="x"))

    assert seen == []


def test_failing_subscriber_does_not_block_others(monkeypatch: pytest.MonkeyPatch):
    logged: list[dict[str, Any]] = []
    monkeypatch.setattr(emitter_mod, "log_event", logged.append)

    emitter = EventEmitter()
    seen: list[LifecycleEvent] = []

    def broken(_: LifecycleEvent) -> None:
        raise RuntimeError("observer bug")

    emitter.subscribe(broken)
    emitter.subscribe(seen.append)
    emitter.emit(Failed(error="auth"))

    assert len(seen) == 1
    assert logged[0]["event_type"] == "EMITTER_SUBSCRIBER_ERROR"
    assert logged[0]["lifecycle_event"] == "FAILED"
    assert logged[0]["message"] == "observer bug"


def test_subscriber_removed_during_emit_still_gets_current_event():
    emitter = EventEmitter()
    seen: list[str] = []

    def first(_: LifecycleEvent) -> None:
        seen.append("first")
        emitter.unsubscribe(second)

    def second(_: LifecycleEvent) -> None:
        seen.append("second")

    emitter.subscribe(first)
    emitter.subscribe(second)

    emitter.emit(Failed(error="x"))
    emitter.emit(Failed(error="y"))

    assert seen == ["first", "second", "first"]
