"""
Static local resource provider.

For headless deployments where capture happens on the client: hands out
descriptor-only tracks for the configured kinds and tracks which sets are
still held, so a double release or a release of a foreign set is caught.
"""

from __future__ import annotations

from uuid import uuid4

from adapters.media.base import LocalResourceProvider, LocalResourceSet, LocalTrack
from lifecycle.errors import ResourceAcquisitionError


class StaticResourceProvider(LocalResourceProvider):
    def __init__(self, *, kinds: tuple[str, ...]) -> None:
        self._kinds = kinds
        self._held: list[LocalResourceSet] = []

    @property
    def held(self) -> tuple[LocalResourceSet, ...]:
        return tuple(self._held)

    async def acquire(self) -> LocalResourceSet:
        unknown = [k for k in self._kinds if k not in ("audio", "video")]
        if unknown:
            raise ResourceAcquisitionError(f"unsupported track kinds: {unknown}")

        resources = LocalResourceSet(
            tracks=tuple(
                LocalTrack(kind=kind, track_id=f"{kind}_{uuid4().hex[:8]}")
                for kind in self._kinds
            )
        )
        self._held.append(resources)
        return resources

    async def release(self, resources: LocalResourceSet) -> None:
        for i, held in enumerate(self._held):
            if held is resources:
                del self._held[i]
                return
        raise ValueError("resource set is not held by this provider")
