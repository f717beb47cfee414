"""
Error taxonomy for session establishment.

Propagation rules:
- initialize() fails on the first fatal step and re-raises the original
  error object unchanged.
- teardown() wraps each step failure in TeardownError, logs it and moves on.
  TeardownError never escapes teardown().
"""

from __future__ import annotations

from typing import Any


class OrchestratorError(Exception):
    """Base class for all session-establishment errors."""


class InitializationError(OrchestratorError):
    """The signaling library failed to initialize. Fatal, never retried here."""


class SignalingConnectionError(OrchestratorError):
    """
    The signaling handshake failed.

    `error` holds the value the signaling library reported with its FAILED
    event (often a short string such as "auth"). str() of the exception is
    the text of that value.
    """

    def __init__(self, error: Any) -> None:
        super().__init__(str(error))
        self.error = error


class ResourceAcquisitionError(OrchestratorError):
    """Local media resources could not be acquired."""


class SessionJoinError(OrchestratorError):
    """Joining the session failed after the connection was established."""


class TeardownError(OrchestratorError):
    """A single teardown step failed. Logged and swallowed by teardown()."""

    def __init__(self, step: str, cause: BaseException) -> None:
        super().__init__(f"{step}: {cause!r}")
        self.step = step
        self.cause = cause


class OrchestrationStateError(OrchestratorError):
    """An operation was called in a state that does not allow it."""
