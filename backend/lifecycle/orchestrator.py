"""
Lifecycle orchestrator: join and leave a real-time session.

initialize(config, session_id), fail-fast pipeline:
    1. library_init         ensure the process-wide signaling library init
    2. connect_and_acquire  connect || acquire local resources (all-settled)
    3. join_session         join the room over the established connection

teardown(), isolated pipeline (every step runs):
    1. leave_session        if a session was joined
    2. disconnect           if a connection handle exists, after (1)
    3. release_resources    if local resources are held, always attempted

Ownership:
- One orchestrator owns at most one ConnectionHandle, one LocalResourceSet
  and one SessionContext at a time.
- References are dropped as soon as their teardown step starts, so a
  failing step is never retried and teardown() is idempotent.
- teardown() bumps a generation counter. An initialize() still in flight
  checks it before storing anything and undoes what it produced after
  teardown started, so nothing is left held once teardown() returns.
"""

from __future__ import annotations

import asyncio
from typing import Any

from adapters.media.base import LocalResourceProvider, LocalResourceSet
from adapters.session.base import SessionContext, SessionProvider
from config import ConnectionConfig
from connection.enums import ConnectionState
from connection.handle import ConnectionHandle
from constants import (
    STEP_CONNECT_AND_ACQUIRE,
    STEP_DISCONNECT,
    STEP_JOIN_SESSION,
    STEP_LEAVE_SESSION,
    STEP_LIBRARY_INIT,
    STEP_RELEASE_RESOURCES,
)
from events.emitter import EventEmitter
from lifecycle.errors import (
    OrchestrationStateError,
    ResourceAcquisitionError,
    SessionJoinError,
)
from lifecycle.library import LibraryInitToken
from lifecycle.pipeline import PipelineReport, Step, run_fail_fast, run_isolated
from observability.logger import log_event
from observability.metrics import timed


class LifecycleOrchestrator:
    """
    Drives session establishment and teardown for one participant.

    Lifecycle events (Established / Failed / Disconnected) are published on
    `emitter` by the ConnectionHandle; subscribe to observe them.
    """

    def __init__(
        self,
        *,
        init_token: LibraryInitToken,
        resource_provider: LocalResourceProvider,
        session_provider: SessionProvider,
        emitter: EventEmitter | None = None,
    ) -> None:
        self._init_token = init_token
        self._resource_provider = resource_provider
        self._session_provider = session_provider
        self.emitter = emitter or EventEmitter()

        self._handle: ConnectionHandle | None = None
        self._resources: LocalResourceSet | None = None
        self._session: SessionContext | None = None
        self._session_id: str | None = None
        self._initializing = False
        self._generation = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def handle(self) -> ConnectionHandle | None:
        return self._handle

    @property
    def resources(self) -> LocalResourceSet | None:
        return self._resources

    @property
    def session(self) -> SessionContext | None:
        return self._session

    def holds_anything(self) -> bool:
        return (
            self._handle is not None
            or self._resources is not None
            or self._session is not None
        )

    def log_context(self) -> dict[str, Any]:
        return {
            "session_id": self._session_id,
            "connection_state": (
                self._handle.state.value if self._handle is not None else None
            ),
            "has_resources": self._resources is not None,
            "joined": self._session is not None,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def initialize(
        self,
        config: ConnectionConfig,
        session_id: str,
    ) -> SessionContext:
        """
        Connect, acquire local resources and join `session_id`.

        Returns:
            The joined SessionContext.

        Raises (first fatal error, unmodified):
            InitializationError       library init failed
            SignalingConnectionError  handshake failed; join skipped
            ResourceAcquisitionError  resources unavailable; join skipped
            SessionJoinError          join failed
            OrchestrationStateError   an attempt is already held, or
                                      teardown() abandoned this one
        """
        if self._initializing or self.holds_anything():
            raise OrchestrationStateError(
                "an orchestration attempt is already held; call teardown() first"
            )

        self._initializing = True
        self._session_id = session_id
        generation = self._generation

        steps = (
            Step(STEP_LIBRARY_INIT, self._init_library),
            Step(
                STEP_CONNECT_AND_ACQUIRE,
                lambda: self._connect_and_acquire(config, session_id, generation),
            ),
            Step(STEP_JOIN_SESSION, lambda: self._join(session_id, generation)),
        )

        try:
            with timed("initialize", session_id=session_id):
                await run_fail_fast(
                    "initialize", steps, context={"session_id": session_id}
                )
        finally:
            self._initializing = False

        assert self._session is not None
        return self._session

    async def teardown(self) -> PipelineReport:
        """
        Leave, disconnect, release. Never raises.

        Safe to call at any time, including before initialize() and after
        a failed initialize().

        Returns:
            The per-step report; failed steps carry a TeardownError.
        """
        session_id = self._session_id
        self._generation += 1
        steps = (
            Step(STEP_LEAVE_SESSION, self._leave),
            Step(STEP_DISCONNECT, self._disconnect),
            Step(STEP_RELEASE_RESOURCES, self._release),
        )

        with timed("teardown", session_id=session_id):
            report = await run_isolated(
                "teardown", steps, context={"session_id": session_id}
            )

        for error in report.errors():
            log_event({
                "event_type": "TEARDOWN_STEP_FAILED",
                "session_id": session_id,
                "error": str(error),
            })

        self._session_id = None
        return report

    # ------------------------------------------------------------------
    # initialize() steps
    # ------------------------------------------------------------------

    async def _init_library(self) -> None:
        await self._init_token.ensure()

    async def _connect_and_acquire(
        self,
        config: ConnectionConfig,
        session_id: str,
        generation: int,
    ) -> None:
        self._check_not_abandoned(generation)

        handle = ConnectionHandle(
            library=self._init_token.library,
            emitter=self.emitter,
        )
        self._handle = handle

        # Neither task cancels the other; both must settle
        acquired, connected = await asyncio.gather(
            asyncio.create_task(self._acquire(generation)),
            asyncio.create_task(self._connect(handle, config, session_id)),
            return_exceptions=True,
        )

        if isinstance(connected, BaseException):
            if isinstance(acquired, BaseException):
                log_event({
                    "event_type": "RESOURCE_ACQUISITION_FAILED",
                    "session_id": session_id,
                    "error": str(acquired),
                })
            raise connected
        if isinstance(acquired, BaseException):
            raise acquired

    async def _connect(
        self,
        handle: ConnectionHandle,
        config: ConnectionConfig,
        session_id: str,
    ) -> None:
        with timed("connect", session_id=session_id):
            await handle.connect(config, session_id)

    async def _acquire(self, generation: int) -> None:
        try:
            resources = await self._resource_provider.acquire()
        except ResourceAcquisitionError:
            raise
        except Exception as e:
            raise ResourceAcquisitionError(f"local resource acquisition failed: {e}") from e

        if generation != self._generation:
            await self._resource_provider.release(resources)
            self._check_not_abandoned(generation)

        self._resources = resources

    async def _join(self, session_id: str, generation: int) -> None:
        self._check_not_abandoned(generation)

        handle = self._handle
        if handle is None or handle.state is not ConnectionState.ESTABLISHED:
            state = handle.state.value if handle is not None else None
            raise SessionJoinError(f"cannot join over a {state} connection")

        try:
            session = await self._session_provider.join(session_id)
        except SessionJoinError:
            raise
        except Exception as e:
            raise SessionJoinError(f"join {session_id!r} failed: {e}") from e

        if generation != self._generation:
            await self._session_provider.leave()
            self._check_not_abandoned(generation)

        self._session = session

    def _check_not_abandoned(self, generation: int) -> None:
        if generation != self._generation:
            raise OrchestrationStateError(
                "initialize() abandoned: teardown() started while it was in flight"
            )

    # ------------------------------------------------------------------
    # teardown() steps
    # ------------------------------------------------------------------

    async def _leave(self) -> bool | None:
        if self._session is None:
            return False
        self._session = None
        await self._session_provider.leave()
        return None

    async def _disconnect(self) -> bool | None:
        handle = self._handle
        if handle is None:
            return False
        self._handle = None
        await handle.disconnect()
        return None

    async def _release(self) -> bool | None:
        resources = self._resources
        if resources is None:
            return False
        self._resources = None
        await self._resource_provider.release(resources)
        return None
