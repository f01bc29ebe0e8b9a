"""Session client for the GameSense engine.

A :class:`GameSenseSession` walks through three states::

    UNINITIALIZED --setup()--> ACTIVE --teardown()--> TERMINATED

Event operations are only accepted while ``ACTIVE`` and are rejected locally,
before any request is sent, in every other state. ``setup`` starts a
:class:`~gamesense_oled.client.heartbeat.HeartbeatTask`; ``teardown`` stops it
before the game is removed so no heartbeat can race the removal. A terminated
session cannot be reactivated; build a new one instead.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from gamesense_oled.protocol.messages import (
    BIND_EVENT_ENDPOINT,
    GAME_EVENT_ENDPOINT,
    GAME_METADATA_ENDPOINT,
    REGISTER_EVENT_ENDPOINT,
    REMOVE_EVENT_ENDPOINT,
    REMOVE_GAME_ENDPOINT,
    EventBinding,
    EventData,
    EventRegistration,
    EventRemove,
    EventValue,
    GameEvent,
    GameMetadata,
    GameRemove,
    ScreenHandler,
    validate_identifier,
)

from .config import ClientConfig, load_client_config
from .core_props import resolve_address
from .errors import HeartbeatError, PartialBindError, SessionStateError, TransportError
from .heartbeat import HeartbeatTask
from .transport import HttpTransport, Transport

logger = logging.getLogger(__name__)


def _maybe_enable_debug_logger(enabled: bool) -> bool:
    if not enabled:
        return False
    has_local = any(getattr(h, "_gamesense_local", False) for h in logger.handlers)
    if not has_local:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(name)s - %(levelname)s - %(message)s"))
        handler.setLevel(logging.DEBUG)
        setattr(handler, "_gamesense_local", True)
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return True


class SessionState(Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    TERMINATED = "terminated"


TriggerData = Union[EventData, Mapping[str, Any], EventValue]

# The engine stores the deinitialize timer as an unsigned 16-bit value.
MAX_DEINITIALIZE_TIMER_MS = 65_535


def _heartbeat_interval(metadata: GameMetadata, config: ClientConfig) -> int:
    timer = metadata.deinitialize_timer_length_ms
    if timer is None:
        return int(config.heartbeat_ms)
    if isinstance(timer, bool) or not 1 <= int(timer) <= MAX_DEINITIALIZE_TIMER_MS:
        raise ValueError(
            f"deinitialize_timer_length_ms must be between 1 and {MAX_DEINITIALIZE_TIMER_MS}, got {timer!r}"
        )
    return int(timer)


class GameSenseSession:
    """Registers one game with the engine and drives its events."""

    def __init__(
        self,
        transport: Optional[Transport] = None,
        *,
        address: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        on_heartbeat_failure: Optional[Callable[[HeartbeatError], None]] = None,
    ) -> None:
        self._config = config if config is not None else load_client_config()
        _maybe_enable_debug_logger(self._config.debug)
        if transport is None:
            resolved = resolve_address(address, self._config)
            logger.debug("Using GameSense engine at %s", resolved)
            transport = HttpTransport(resolved, timeout_s=self._config.http_timeout_s)
            self._owns_transport = True
        else:
            self._owns_transport = False
        self._transport = transport
        self._on_heartbeat_failure = on_heartbeat_failure
        self._state = SessionState.UNINITIALIZED
        self._game: str | None = None
        self._heartbeat_interval_ms: int | None = None
        self._heartbeat: HeartbeatTask | None = None

    # --- Read-only session facts -------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def game(self) -> str | None:
        return self._game

    @property
    def heartbeat_interval_ms(self) -> int | None:
        return self._heartbeat_interval_ms

    @property
    def heartbeat(self) -> HeartbeatTask | None:
        return self._heartbeat

    @property
    def heartbeat_failure(self) -> HeartbeatError | None:
        heartbeat = self._heartbeat
        return heartbeat.failure if heartbeat is not None else None

    # --- Lifecycle ----------------------------------------------------------

    async def setup(self, metadata: GameMetadata) -> None:
        """Register the game and start the heartbeat."""

        self._require_state(SessionState.UNINITIALIZED, "setup")
        validate_identifier(metadata.game, "game")
        interval = _heartbeat_interval(metadata, self._config)
        await self._post(GAME_METADATA_ENDPOINT, metadata.to_dict())

        self._game = metadata.game
        self._heartbeat_interval_ms = interval
        self._heartbeat = HeartbeatTask(
            self._transport,
            metadata.game,
            self._heartbeat_interval_ms,
            on_failure=self._on_heartbeat_failure,
        )
        self._heartbeat.start()
        self._state = SessionState.ACTIVE
        logger.info("Registered game %s (heartbeat %d ms)", metadata.game, self._heartbeat_interval_ms)

    async def teardown(self) -> None:
        """Stop the heartbeat, then remove the game from the engine."""

        game = self._require_active("teardown")
        self._state = SessionState.TERMINATED
        heartbeat = self._heartbeat
        if heartbeat is not None:
            await heartbeat.cancel()
        await self._post(REMOVE_GAME_ENDPOINT, GameRemove(game).to_dict())
        logger.info("Removed game %s", game)

    async def close(self) -> None:
        """Release the HTTP transport if this session created it."""

        if self._owns_transport:
            await self._transport.close()

    async def __aenter__(self) -> "GameSenseSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if self._state is SessionState.ACTIVE:
                if exc_type is None:
                    await self.teardown()
                else:
                    try:
                        await self.teardown()
                    except TransportError:
                        logger.warning("Game removal failed while unwinding", exc_info=True)
        finally:
            await self.close()

    # --- Events -------------------------------------------------------------

    async def create_event(self, registration: EventRegistration) -> None:
        """Register (or re-register) an event's range and icon."""

        self._require_active("create_event")
        registration.validate()
        self._check_game(registration.game)
        await self._post(REGISTER_EVENT_ENDPOINT, registration.to_dict())

    async def bind_event(self, binding: EventBinding) -> None:
        """Attach screen handlers to an already registered event."""

        self._require_active("bind_event")
        await self._post(BIND_EVENT_ENDPOINT, self._binding_body(binding))

    async def create_event_and_bind(
        self,
        registration: EventRegistration,
        handlers: Sequence[ScreenHandler],
    ) -> None:
        """Register an event and bind *handlers* to it.

        The binding is encoded before anything is sent, so payload errors leave
        the engine untouched. If the bind request itself fails the event stays
        registered without handlers and :class:`PartialBindError` is raised.
        """

        self._require_active("create_event_and_bind")
        body = self._binding_body(EventBinding.for_registration(registration, handlers))
        await self.create_event(registration)
        try:
            await self._post(BIND_EVENT_ENDPOINT, body)
        except TransportError as exc:
            logger.warning("Event %s registered but binding failed: %s", registration.event, exc)
            raise PartialBindError(registration.event, str(exc)) from exc

    async def trigger(self, event: str, data: Optional[TriggerData] = None) -> None:
        """Push a value (and optional frame substitutions) for *event*."""

        game = self._require_active("trigger")
        validate_identifier(event, "event")
        event_data = EventData.coerce(data) if data is not None else None
        await self._post(GAME_EVENT_ENDPOINT, GameEvent(game, event, event_data).to_dict())

    async def remove_event(self, event: str | EventRemove) -> None:
        game = self._require_active("remove_event")
        if isinstance(event, EventRemove):
            self._check_game(event.game)
            event = event.event
        validate_identifier(event, "event")
        await self._post(REMOVE_EVENT_ENDPOINT, EventRemove(game, event).to_dict())

    # --- Internals ----------------------------------------------------------

    def _binding_body(self, binding: EventBinding) -> Dict[str, Any]:
        validate_identifier(binding.event, "event")
        self._check_game(binding.game)
        if binding.min_value > binding.max_value:
            raise ValueError(
                f"event {binding.event!r} has min_value {binding.min_value} > max_value {binding.max_value}"
            )
        return binding.to_dict()

    def _require_state(self, expected: SessionState, operation: str) -> None:
        if self._state is not expected:
            raise SessionStateError(
                f"cannot {operation}: session is {self._state.value}, expected {expected.value}"
            )

    def _require_active(self, operation: str) -> str:
        self._require_state(SessionState.ACTIVE, operation)
        assert self._game is not None
        return self._game

    def _check_game(self, game: str) -> None:
        if game != self._game:
            raise ValueError(f"message targets game {game!r} but the session registered {self._game!r}")

    async def _post(self, endpoint: str, body: Mapping[str, Any]) -> Mapping[str, Any]:
        try:
            response = await self._transport.post(endpoint, body)
        except TransportError as exc:
            logger.debug("%s failed: %s", endpoint, exc)
            raise
        logger.debug("%s response: %s", endpoint, response)
        return response


__all__ = ["GameSenseSession", "SessionState", "TriggerData"]
