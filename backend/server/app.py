"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Build the process-scoped library init token and the orchestrator
- Tear the session down on shutdown
- Register routes
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.media.base import LocalResourceProvider
from adapters.media.static import StaticResourceProvider
from adapters.session.base import SessionProvider
from adapters.session.signaling import SignalingSessionProvider
from adapters.signaling.base import SignalingLibrary
from adapters.signaling.websocket import WebSocketSignalingLibrary
from config import AppConfig
from lifecycle.library import LibraryInitToken
from lifecycle.orchestrator import LifecycleOrchestrator
from observability import logger
from session.status_store import ConnectionStatusStore

from server.routes import register_routes


def create_app(
    config: AppConfig | None = None,
    *,
    library: SignalingLibrary | None = None,
    resource_provider: LocalResourceProvider | None = None,
    session_provider: SessionProvider | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Collaborators default to the WebSocket signaling binding, the static
    resource provider and the signaling session provider; tests pass fakes.
    """
    config = config or AppConfig.load_from_env()
    logger.set_enabled(config.enable_json_logs)

    orchestrator = build_orchestrator(
        config,
        library=library,
        resource_provider=resource_provider,
        session_provider=session_provider,
    )

    store = ConnectionStatusStore()
    store.attach(orchestrator.emitter)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await orchestrator.teardown()

    app = FastAPI(title="Session Orchestrator API", lifespan=lifespan)

    app.state.config = config
    app.state.orchestrator = orchestrator
    app.state.status_store = store

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten later
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    register_routes(app)

    return app


def build_orchestrator(
    config: AppConfig,
    *,
    library: SignalingLibrary | None = None,
    resource_provider: LocalResourceProvider | None = None,
    session_provider: SessionProvider | None = None,
) -> LifecycleOrchestrator:
    """Wire one orchestrator with a process-scoped LibraryInitToken."""
    init_token = LibraryInitToken(
        library=library or WebSocketSignalingLibrary(),
        options={"open_timeout_s": config.signaling_open_timeout_s},
    )

    orchestrator: LifecycleOrchestrator

    def _current_connection():  # type: ignore[no-untyped-def]
        handle = orchestrator.handle
        return handle.connection if handle is not None else None

    orchestrator = LifecycleOrchestrator(
        init_token=init_token,
        resource_provider=resource_provider or StaticResourceProvider(
            kinds=config.local_tracks
        ),
        session_provider=session_provider or SignalingSessionProvider(
            get_connection=_current_connection
        ),
    )
    return orchestrator
