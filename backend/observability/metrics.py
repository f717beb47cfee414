"""
Timing helpers for observability.

Responsibilities:
- Measure durations using monotonic time (immune to clock changes)
- Emit metrics as JSONL events via observability.logger
- Never aggregate: one metric = one log event

Durations use monotonic time; the event's ts_ms is wall-clock for log
correlation.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

import observability.logger as logger


def emit_timer(
    name: str,
    *,
    start_ns: int,
    session_id: str | None = None,
    outcome: str = "ok",
    details: dict[str, Any] | None = None,
) -> int:
    """
    Emit one METRIC_TIMER event measured from `start_ns` (monotonic_ns).

    Returns:
        duration in milliseconds
    """
    duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000

    logger.log_event({
        "event_type": "METRIC_TIMER",
        "metric": name,
        "value_ms": duration_ms,
        "session_id": session_id,
        "outcome": outcome,
        "details": details or {},
    })

    return duration_ms


@contextmanager
def timed(
    name: str,
    *,
    session_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[None]:
    """
    Context manager for measuring durations safely.

    Guarantees:
    - Metric is emitted exactly once
    - Exceptions inside the block are recorded as outcome="error"
      and re-raised unchanged

    Usage:
        with timed("connect_latency", session_id=room):
            await handle.connect(config, room)
    """
    start_ns = time.monotonic_ns()
    outcome = "ok"
    try:
        yield
    except BaseException:
        outcome = "error"
        raise
    finally:
        emit_timer(
            name,
            start_ns=start_ns,
            session_id=session_id,
            outcome=outcome,
            details=details,
        )
