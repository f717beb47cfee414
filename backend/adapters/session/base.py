"""
Session provider contract.

Defines the *interface only*. A session (room) is the joined multi-party
context layered on an established signaling connection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SessionContext:
    """The joined session. Only ever created over an established connection."""

    session_id: str
    joined_at_ms: int


class SessionProvider(ABC):
    @abstractmethod
    async def join(self, session_id: str) -> SessionContext:
        """
        Join `session_id`.

        Raises:
            lifecycle.errors.SessionJoinError on failure.
        """
        raise NotImplementedError

    @abstractmethod
    async def leave(self) -> None:
        """Leave the currently joined session."""
        raise NotImplementedError
