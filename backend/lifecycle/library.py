"""
Process-scoped signaling library initialization.

One LibraryInitToken per process, created at startup and handed to every
orchestrator. ensure() is idempotent: the first call awaits library.init(),
concurrent callers wait on the same lock, later callers return immediately.
A failed init leaves the token uninitialized so a later attempt can try
again; within one attempt the failure is fatal.
"""

from __future__ import annotations

import asyncio
from types import MappingProxyType
from typing import Any, Mapping

from adapters.signaling.base import SignalingLibrary
from observability.logger import log_event
from observability.metrics import timed


class LibraryInitToken:
    def __init__(
        self,
        *,
        library: SignalingLibrary,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        self._library = library
        self._options: Mapping[str, Any] = MappingProxyType(dict(options or {}))
        self._lock = asyncio.Lock()
        self._initialized = False

    @property
    def library(self) -> SignalingLibrary:
        return self._library

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def ensure(self) -> SignalingLibrary:
        """
        Initialize the library once per process.

        Raises:
            Whatever library.init() raised (InitializationError in practice),
            unmodified.
        """
        if self._initialized:
            return self._library

        async with self._lock:
            if self._initialized:
                return self._library

            with timed("library_init"):
                await self._library.init(self._options)

            self._initialized = True
            log_event({
                "event_type": "LIBRARY_INIT",
                "library": type(self._library).__name__,
            })

        return self._library
