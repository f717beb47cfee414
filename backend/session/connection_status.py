"""
Connection status as seen by the surrounding application.

DOWN | UP | FAILED

Pure data owned by ConnectionStatusStore; derived only from lifecycle
events, never set directly.
"""
from enum import Enum

class ConnectionStatus(Enum):
    """Observable signaling connection status."""
    DOWN = "DOWN"       # No connection (never connected, or disconnected)
    UP = "UP"           # Established signaling connection
    FAILED = "FAILED"   # Last connect attempt failed
