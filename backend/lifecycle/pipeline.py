"""
Ordered task pipeline.

A pipeline is a tuple of named async steps executed strictly in order.
Two compositions:

run_fail_fast:
    Stops at the first failing step and re-raises its error unmodified.
    Remaining steps are reported as SKIPPED in the log.

run_isolated:
    Runs every step. A failing step is recorded as a TeardownError and the
    next step runs anyway. Never raises (except on cancellation).

A step function returning False reports SKIPPED (nothing to do); any other
return value reports OK.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Sequence

from lifecycle.errors import TeardownError
from observability.logger import log_event


StepFn = Callable[[], Awaitable[Any]]


class StepStatus(str, Enum):
    OK = "OK"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class Step:
    name: str
    run: StepFn


@dataclass(frozen=True)
class StepOutcome:
    name: str
    status: StepStatus
    error: BaseException | None = None


@dataclass(frozen=True)
class PipelineReport:
    pipeline: str
    outcomes: tuple[StepOutcome, ...]

    @property
    def ok(self) -> bool:
        return all(o.status is not StepStatus.FAILED for o in self.outcomes)

    def errors(self) -> tuple[BaseException, ...]:
        return tuple(o.error for o in self.outcomes if o.error is not None)

    def status_of(self, name: str) -> StepStatus | None:
        for o in self.outcomes:
            if o.name == name:
                return o.status
        return None


def _log_outcome(pipeline: str, outcome: StepOutcome, context: dict[str, Any]) -> None:
    log_event({
        "event_type": "PIPELINE_STEP",
        **context,
        "pipeline": pipeline,
        "step": outcome.name,
        "status": outcome.status.value,
        "error": None if outcome.error is None else repr(outcome.error),
    })


async def _run_step(step: Step) -> StepOutcome:
    result = await step.run()
    status = StepStatus.SKIPPED if result is False else StepStatus.OK
    return StepOutcome(name=step.name, status=status)


async def run_fail_fast(
    pipeline: str,
    steps: Sequence[Step],
    *,
    context: dict[str, Any] | None = None,
) -> PipelineReport:
    """Run `steps` in order; re-raise the first error unmodified."""
    ctx = context or {}
    outcomes: list[StepOutcome] = []

    for i, step in enumerate(steps):
        try:
            outcome = await _run_step(step)
        except Exception as exc:
            _log_outcome(pipeline, StepOutcome(step.name, StepStatus.FAILED, exc), ctx)
            for rest in steps[i + 1:]:
                _log_outcome(pipeline, StepOutcome(rest.name, StepStatus.SKIPPED), ctx)
            raise

        _log_outcome(pipeline, outcome, ctx)
        outcomes.append(outcome)

    return PipelineReport(pipeline=pipeline, outcomes=tuple(outcomes))


async def run_isolated(
    pipeline: str,
    steps: Sequence[Step],
    *,
    context: dict[str, Any] | None = None,
) -> PipelineReport:
    """Run every step in order; wrap failures in TeardownError and continue."""
    ctx = context or {}
    outcomes: list[StepOutcome] = []

    for step in steps:
        try:
            outcome = await _run_step(step)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            outcome = StepOutcome(
                name=step.name,
                status=StepStatus.FAILED,
                error=TeardownError(step.name, exc),
            )

        _log_outcome(pipeline, outcome, ctx)
        outcomes.append(outcome)

    return PipelineReport(pipeline=pipeline, outcomes=tuple(outcomes))
