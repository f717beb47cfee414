"""
Route registration for the session orchestrator API.

Responsibilities:
- Define HTTP endpoints for joining, leaving and inspecting the session
- Map orchestrator errors to HTTP status codes
- Pull dependencies from app.state
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from lifecycle.errors import OrchestrationStateError, OrchestratorError
from lifecycle.orchestrator import LifecycleOrchestrator
from observability.logger import log_event
from session.status_store import ConnectionStatusStore


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.get("/session")
    async def session_status() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        orchestrator: LifecycleOrchestrator = app.state.orchestrator
        store: ConnectionStatusStore = app.state.status_store
        return {
            "connection": store.snapshot.to_dict(),
            "orchestrator": orchestrator.log_context(),
        }

    @app.post("/session/{room}", response_model=None)
    async def join_session(room: str) -> dict[str, Any] | JSONResponse: # pyright: ignore[reportUnusedFunction]
        orchestrator: LifecycleOrchestrator = app.state.orchestrator

        try:
            session = await orchestrator.initialize(
                app.state.config.connection_config(), room
            )
        except OrchestrationStateError as exc:
            return _error_response(409, exc)
        except OrchestratorError as exc:
            return _error_response(502, exc)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "HTTP_FATAL_ERROR",
                "session_id": room,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return _error_response(500, exc)

        resources = orchestrator.resources
        return {
            "session_id": session.session_id,
            "joined_at_ms": session.joined_at_ms,
            "tracks": list(resources.kinds()) if resources is not None else [],
        }

    @app.delete("/session")
    async def leave_session() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        orchestrator: LifecycleOrchestrator = app.state.orchestrator
        report = await orchestrator.teardown()
        return {
            "steps": [
                {
                    "name": o.name,
                    "status": o.status.value,
                    "error": None if o.error is None else str(o.error),
                }
                for o in report.outcomes
            ],
        }


def _error_response(status_code: int, exc: BaseException) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "message": str(exc)},
    )
