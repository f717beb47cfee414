# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
from typing import Any

import pytest

import lifecycle.pipeline as pipeline_mod
from lifecycle.errors import TeardownError
from lifecycle.pipeline import Step, StepStatus, run_fail_fast, run_isolated


def recorder(calls: list[str], name: str, *, result: Any = None, error: Exception | None = None):
    async def _step():
        calls.append(name)
        if error is not None:
            raise error
        return result
    return Step(name, _step)


def test_fail_fast_runs_in_order():
    calls: list[str] = []
    steps = [recorder(calls, n) for n in ("a", "b", "c")]

    report = asyncio.run(run_fail_fast("p", steps))

    assert calls == ["a", "b", "c"]
    assert report.ok
    assert [o.name for o in report.outcomes] == ["a", "b", "c"]


def test_fail_fast_stops_and_reraises_same_error():
    calls: list[str] = []
    err = ValueError("b broke")
    steps = [
        recorder(calls, "a"),
        recorder(calls, "b", error=err),
        recorder(calls, "c"),
    ]

    with pytest.raises(ValueError) as excinfo:
        asyncio.run(run_fail_fast("p", steps))

    assert excinfo.value is err
    assert calls == ["a", "b"]


def test_fail_fast_logs_remaining_steps_as_skipped(monkeypatch: pytest.MonkeyPatch):
    emitted: list[dict[str, Any]] = []
    monkeypatch.setattr(pipeline_mod, "log_event", emitted.append)
    calls: list[str] = []
    steps = [recorder(calls, "a", error=RuntimeError("x")), recorder(calls, "b")]

    with pytest.raises(RuntimeError):
        asyncio.run(run_fail_fast("p", steps, context={"session_id": "r"}))

    assert [(e["step"], e["status"]) for e in emitted] == [
        ("a", "FAILED"),
        ("b", "SKIPPED"),
    ]
    assert all(e["session_id"] == "r" for e in emitted)


def test_step_returning_false_is_skipped():
    calls: list[str] = []

    report = asyncio.run(
        run_isolated("p", [recorder(calls, "a", result=False), recorder(calls, "b")])
    )

    assert report.status_of("a") is StepStatus.SKIPPED
    assert report.status_of("b") is StepStatus.OK
    assert report.status_of("missing") is None


def test_isolated_runs_every_step_and_wraps_errors():
    calls: list[str] = []
    cause = OSError("boom")
    steps = [
        recorder(calls, "a", error=cause),
        recorder(calls, "b"),
        recorder(calls, "c", error=RuntimeError("again")),
    ]

    report = asyncio.run(run_isolated("p", steps))

    assert calls == ["a", "b", "c"]
    assert not report.ok
    assert [o.status for o in report.outcomes] == [
        StepStatus.FAILED,
        StepStatus.OK,
        StepStatus.FAILED,
    ]
    first, second = report.errors()
    assert isinstance(first, TeardownError)
    assert first.step == "a"
    assert first.cause is cause
    assert second.step == "c"
