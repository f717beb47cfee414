"""
Behavioral constants for session establishment.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic strings for wire/query names elsewhere in the codebase.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Signaling URL
# =============================================================================

# Query parameter carrying the session (room) id on the signaling URL
ROOM_QUERY_PARAM: Final[str] = "room"

# =============================================================================
# Signaling transport
# =============================================================================

SIGNALING_OPEN_TIMEOUT_S_DEFAULT: Final[float] = 10.0
SIGNALING_MAX_MESSAGE_BYTES: Final[int] = 2**20

AUTH_HEADER: Final[str] = "Authorization"
APP_ID_HEADER: Final[str] = "X-App-Id"

# =============================================================================
# Disconnect reasons
# =============================================================================

# Reported when the local side closed the connection and the library did not
# report a reason of its own
DISCONNECT_REASON_LOCAL: Final[str] = "local_disconnect"

# Failure value used when a pending connect is closed before it settles
CONNECT_ABORTED_ERROR: Final[str] = "connect_aborted"

# =============================================================================
# Pipeline step names
# =============================================================================

STEP_LIBRARY_INIT: Final[str] = "library_init"
STEP_CONNECT_AND_ACQUIRE: Final[str] = "connect_and_acquire"
STEP_JOIN_SESSION: Final[str] = "join_session"

STEP_LEAVE_SESSION: Final[str] = "leave_session"
STEP_DISCONNECT: Final[str] = "disconnect"
STEP_RELEASE_RESOURCES: Final[str] = "release_resources"
