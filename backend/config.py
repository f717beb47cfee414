"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide typed, immutable config objects

Non-responsibilities:
- No orchestration logic
- No behavioral constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Mapping

from constants import ROOM_QUERY_PARAM, SIGNALING_OPEN_TIMEOUT_S_DEFAULT


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Immutable per-attempt connection configuration.

    Built once per orchestration attempt and never mutated.
    """

    endpoint: str
    auth_token: str | None = None
    app_id: str | None = None
    session_options: Mapping[str, Any] = field(default_factory=dict)

    def signaling_url(self, session_id: str | None = None) -> str:
        """
        Return the signaling URL, scoped to `session_id` when one is given.

        The session id is appended as the `room` query parameter. It is
        percent-encoded on purpose: ids are opaque strings, and one holding
        `&`, `#` or `/` must not add parameters or cut the query short.
        """
        if not session_id:
            return self.endpoint

        sep = "&" if urllib.parse.urlsplit(self.endpoint).query else "?"
        room = urllib.parse.quote(session_id, safe="")
        return f"{self.endpoint}{sep}{ROOM_QUERY_PARAM}={room}"


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the app factory and orchestrator wiring.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # Signaling
    # ------------------------------------------------------------------

    signaling_endpoint: str
    signaling_app_id: str | None
    signaling_token: str | None
    signaling_open_timeout_s: float

    # ------------------------------------------------------------------
    # Local media
    # ------------------------------------------------------------------

    local_tracks: tuple[str, ...]

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool

    # ------------------------------------------------------------------
    # Derived
    # ------------------------------------------------------------------

    def connection_config(self) -> ConnectionConfig:
        """Build the per-attempt connection config from process settings."""
        return ConnectionConfig(
            endpoint=self.signaling_endpoint,
            auth_token=self.signaling_token,
            app_id=self.signaling_app_id,
            session_options={"open_timeout_s": self.signaling_open_timeout_s},
        )

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            KeyError if SIGNALING_ENDPOINT is missing.
            ValueError if SIGNALING_OPEN_TIMEOUT_S is not a number.
        """
        tracks = os.environ.get("LOCAL_TRACKS", "audio")
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            signaling_endpoint=os.environ["SIGNALING_ENDPOINT"],
            signaling_app_id=os.environ.get("SIGNALING_APP_ID"),
            signaling_token=os.environ.get("SIGNALING_TOKEN"),
            signaling_open_timeout_s=float(
                os.environ.get(
                    "SIGNALING_OPEN_TIMEOUT_S",
                    SIGNALING_OPEN_TIMEOUT_S_DEFAULT,
                )
            ),

            local_tracks=tuple(t.strip() for t in tracks.split(",") if t.strip()),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",
        )
