"""
Signaling library contract.

This module defines the *interface only*. The signaling protocol itself
(session negotiation, presence, media offers) lives behind it.

Key invariants:
- A connection emits exactly three event kinds: ESTABLISHED, FAILED(error),
  DISCONNECTED(reason).
- ESTABLISHED and FAILED are mutually exclusive per connect() attempt.
- Listeners are invoked synchronously on the event loop thread:
    ESTABLISHED  -> listener()
    FAILED       -> listener(error)
    DISCONNECTED -> listener(reason)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from connection.enums import ConnectionEventKind


Listener = Callable[..., None]


@dataclass(frozen=True)
class ConnectionOptions:
    """
    Options passed when constructing a signaling connection.

    signaling_url already carries the room query parameter when the
    attempt is session-scoped.
    """

    signaling_url: str
    extra: Mapping[str, Any] = field(default_factory=dict)


class SignalingConnection(ABC):
    """
    One signaling connection object, as produced by the library.

    Implementations are responsible for:
    - Performing the handshake after connect()
    - Reporting its outcome through registered listeners
    - Closing the transport on disconnect()
    """

    @abstractmethod
    def connect(self) -> None:
        """
        Start the handshake and return immediately.

        The outcome is reported through ESTABLISHED / FAILED listeners.
        """
        raise NotImplementedError

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection. Completes once the transport is closed."""
        raise NotImplementedError

    @abstractmethod
    def add_event_listener(self, kind: ConnectionEventKind, listener: Listener) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove_event_listener(self, kind: ConnectionEventKind, listener: Listener) -> None:
        """Remove a listener. Removing an unknown listener is a no-op."""
        raise NotImplementedError


class SignalingLibrary(ABC):
    """
    Process-level entry point of the signaling library.

    init() must be awaited once before any connection is created; callers
    should go through lifecycle.library.LibraryInitToken rather than
    calling it directly.
    """

    @abstractmethod
    async def init(self, options: Mapping[str, Any]) -> None:
        """
        One-time library initialization.

        Raises:
            lifecycle.errors.InitializationError on failure.
        """
        raise NotImplementedError

    @abstractmethod
    def create_connection(
        self,
        app_id: str | None,
        token: str | None,
        options: ConnectionOptions,
    ) -> SignalingConnection:
        raise NotImplementedError


class ListenerRegistry:
    """
    Listener bookkeeping shared by SignalingConnection implementations.

    fire() iterates over a snapshot, so a listener may remove itself (or
    others) while being called.
    """

    def __init__(self) -> None:
        self._listeners: dict[ConnectionEventKind, list[Listener]] = {
            kind: [] for kind in ConnectionEventKind
        }

    def add(self, kind: ConnectionEventKind, listener: Listener) -> None:
        self._listeners[kind].append(listener)

    def remove(self, kind: ConnectionEventKind, listener: Listener) -> None:
        try:
            self._listeners[kind].remove(listener)
        except ValueError:
            pass

    def count(self, kind: ConnectionEventKind) -> int:
        return len(self._listeners[kind])

    def fire(self, kind: ConnectionEventKind, *args: Any) -> None:
        for listener in tuple(self._listeners[kind]):
            listener(*args)
