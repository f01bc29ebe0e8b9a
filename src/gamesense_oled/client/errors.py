"""Runtime errors raised by the GameSense client."""

from __future__ import annotations


class GameSenseError(RuntimeError):
    """Base exception for GameSense client failures."""


class TransportError(GameSenseError):
    """A request did not reach the engine or the engine refused it."""

    def __init__(self, endpoint: str, message: str, status: int | None = None) -> None:
        self.endpoint = endpoint
        self.message = message
        self.status = status
        detail = f" (HTTP {status})" if status is not None else ""
        super().__init__(f"{endpoint}: {message}{detail}")


class SessionStateError(GameSenseError):
    """An operation was attempted in the wrong session state."""


class HeartbeatError(GameSenseError):
    """The keep-alive loop stopped after a failed heartbeat."""


class PartialBindError(GameSenseError):
    """The event was registered but binding its handlers failed.

    The event stays registered and unbound on the engine; nothing is rolled
    back. The underlying transport error is chained as ``__cause__``.
    """

    def __init__(self, event: str, message: str) -> None:
        self.event = event
        super().__init__(f"event {event!r} registered but not bound: {message}")


class CorePropsError(GameSenseError):
    """The engine address could not be discovered from coreProps.json."""


__all__ = [
    "CorePropsError",
    "GameSenseError",
    "HeartbeatError",
    "PartialBindError",
    "SessionStateError",
    "TransportError",
]
