"""
Local media resource contract.

Defines the *interface only*. No capture, no encoding.

Key invariants:
- A LocalResourceSet lives independently of any signaling connection.
  It may exist when the connection never succeeded and must be released
  regardless of connection outcome.
- release() is called at most once per acquired set by the orchestrator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class LocalTrack:
    """One acquired local capture resource (e.g. microphone, camera)."""

    kind: str
    track_id: str
    # Provider-specific device handle, opaque to the orchestrator
    handle: Any = None


@dataclass(frozen=True)
class LocalResourceSet:
    """Zero or more acquired local tracks."""

    tracks: tuple[LocalTrack, ...] = ()

    def kinds(self) -> tuple[str, ...]:
        return tuple(t.kind for t in self.tracks)


class LocalResourceProvider(ABC):
    """Acquires and releases local media resources."""

    @abstractmethod
    async def acquire(self) -> LocalResourceSet:
        """
        Acquire local resources.

        Raises:
            lifecycle.errors.ResourceAcquisitionError when resources are
            unavailable.
        """
        raise NotImplementedError

    @abstractmethod
    async def release(self, resources: LocalResourceSet) -> None:
        """Release a previously acquired set."""
        raise NotImplementedError
