from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Tuple

import pytest

from gamesense_oled.client import (
    ClientConfig,
    GameSenseSession,
    HeartbeatError,
    PartialBindError,
    SessionState,
    SessionStateError,
    TransportError,
)
from gamesense_oled.protocol import EventBinding, EventData, EventRegistration, EventRemove, GameMetadata, Icon
from gamesense_oled.protocol.builders import multi_line, screen_handler, text_line


class FakeTransport:
    def __init__(self, fail_on: Tuple[str, ...] = ()) -> None:
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.fail_on = set(fail_on)
        self.closed = False

    async def post(self, endpoint: str, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        self.calls.append((endpoint, dict(payload)))
        if endpoint in self.fail_on:
            raise TransportError(endpoint, "engine said no", 400)
        return {}

    async def close(self) -> None:
        self.closed = True

    def endpoints(self, *, heartbeats: bool = False) -> List[str]:
        return [name for name, _ in self.calls if heartbeats or name != "game_heartbeat"]


def _session(transport: FakeTransport, **kwargs: Any) -> GameSenseSession:
    return GameSenseSession(transport, config=ClientConfig(), **kwargs)


def _registration() -> EventRegistration:
    return EventRegistration("OLED_CLOCK", "TIME_UPDATE", 0, 1, Icon.Timer)


def _handlers():
    frame = multi_line(text_line("Now  ", context_frame_key="curr_game"), text_line("Time  "))
    return [screen_handler([frame])]


def test_clock_session_lifecycle() -> None:
    transport = FakeTransport()

    async def scenario() -> GameSenseSession:
        session = _session(transport)
        await session.setup(GameMetadata("OLED_CLOCK", deinitialize_timer_length_ms=15000))
        assert session.state is SessionState.ACTIVE
        assert session.heartbeat_interval_ms == 15000

        await session.create_event_and_bind(_registration(), _handlers())
        await session.trigger(
            "TIME_UPDATE", {"value": "13:45:02", "frame": {"curr_game": "IDLE"}}
        )
        await session.teardown()
        return session

    session = asyncio.run(scenario())

    assert session.state is SessionState.TERMINATED
    assert transport.endpoints() == [
        "game_metadata",
        "register_game_event",
        "bind_game_event",
        "game_event",
        "remove_game",
    ]
    bodies = dict(transport.calls)
    assert bodies["game_metadata"] == {"game": "OLED_CLOCK", "deinitialize_timer_length_ms": 15000}
    assert bodies["register_game_event"]["icon_id"] == int(Icon.Timer)
    bind = bodies["bind_game_event"]
    assert bind["handlers"][0]["device-type"] == "screened"
    assert bind["handlers"][0]["datas"][0]["lines"][0]["context-frame-key"] == "curr_game"
    assert bodies["game_event"] == {
        "game": "OLED_CLOCK",
        "event": "TIME_UPDATE",
        "data": {"value": "13:45:02", "frame": {"curr_game": "IDLE"}},
    }
    assert bodies["remove_game"] == {"game": "OLED_CLOCK"}
    # The session did not build the transport, so it leaves it open.
    assert transport.closed is False


def _event_operations(session: GameSenseSession) -> List[Tuple[str, Callable[[], Awaitable[None]]]]:
    binding = EventBinding.for_registration(_registration(), _handlers())
    return [
        ("create_event", lambda: session.create_event(_registration())),
        ("bind_event", lambda: session.bind_event(binding)),
        ("create_event_and_bind", lambda: session.create_event_and_bind(_registration(), _handlers())),
        ("trigger", lambda: session.trigger("TIME_UPDATE", 1)),
        ("remove_event", lambda: session.remove_event("TIME_UPDATE")),
        ("teardown", session.teardown),
    ]


def test_operations_rejected_before_setup() -> None:
    transport = FakeTransport()

    async def scenario() -> List[str]:
        session = _session(transport)
        rejected = []
        for name, operation in _event_operations(session):
            with pytest.raises(SessionStateError, match=name):
                await operation()
            rejected.append(name)
        assert session.state is SessionState.UNINITIALIZED
        return rejected

    rejected = asyncio.run(scenario())

    assert len(rejected) == 6
    assert transport.calls == []


def test_operations_rejected_after_teardown() -> None:
    transport = FakeTransport()

    async def scenario() -> None:
        session = _session(transport)
        await session.setup(GameMetadata("OLED_CLOCK"))
        await session.teardown()
        sent = len(transport.calls)

        for name, operation in _event_operations(session):
            with pytest.raises(SessionStateError, match=name):
                await operation()
        with pytest.raises(SessionStateError):
            await session.setup(GameMetadata("OLED_CLOCK"))
        assert len(transport.calls) == sent
        assert session.state is SessionState.TERMINATED

    asyncio.run(scenario())


@pytest.mark.parametrize("timer", [-1, 0, 65_536])
def test_invalid_heartbeat_interval_sends_nothing(timer: int) -> None:
    transport = FakeTransport()

    async def scenario() -> GameSenseSession:
        session = _session(transport)
        with pytest.raises(ValueError, match="deinitialize_timer_length_ms"):
            await session.setup(GameMetadata("OLED_CLOCK", deinitialize_timer_length_ms=timer))
        return session

    session = asyncio.run(scenario())

    assert transport.calls == []
    assert session.state is SessionState.UNINITIALIZED
    assert session.heartbeat is None


def test_heartbeat_interval_follows_engine_timer_bounds() -> None:
    async def scenario() -> List[int]:
        intervals = []
        for timer in (1, 65_535):
            session = _session(FakeTransport())
            await session.setup(GameMetadata("OLED_CLOCK", deinitialize_timer_length_ms=timer))
            intervals.append(session.heartbeat_interval_ms)
            await session.teardown()
        return intervals

    assert asyncio.run(scenario()) == [1, 65_535]


def test_setup_uses_configured_heartbeat_when_metadata_has_none() -> None:
    async def scenario() -> GameSenseSession:
        session = GameSenseSession(FakeTransport(), config=ClientConfig(heartbeat_ms=2500))
        await session.setup(GameMetadata("OLED_CLOCK"))
        await session.teardown()
        return session

    assert asyncio.run(scenario()).heartbeat_interval_ms == 2500


def test_failed_setup_stays_uninitialized() -> None:
    transport = FakeTransport(fail_on=("game_metadata",))

    async def scenario() -> GameSenseSession:
        session = _session(transport)
        with pytest.raises(TransportError) as excinfo:
            await session.setup(GameMetadata("OLED_CLOCK"))
        assert excinfo.value.status == 400
        return session

    session = asyncio.run(scenario())

    assert session.state is SessionState.UNINITIALIZED
    assert session.heartbeat is None
    assert transport.endpoints(heartbeats=True) == ["game_metadata"]


def test_invalid_game_name_is_rejected_locally() -> None:
    transport = FakeTransport()

    async def scenario() -> None:
        session = _session(transport)
        with pytest.raises(ValueError):
            await session.setup(GameMetadata("oled clock"))

    asyncio.run(scenario())

    assert transport.calls == []


def test_heartbeat_stops_before_remove_game() -> None:
    transport = FakeTransport()

    async def scenario() -> int:
        session = _session(transport)
        await session.setup(GameMetadata("OLED_CLOCK", deinitialize_timer_length_ms=10))
        await asyncio.sleep(0.06)
        await session.teardown()
        count = len(transport.calls)
        await asyncio.sleep(0.05)
        assert len(transport.calls) == count
        assert session.heartbeat is not None and not session.heartbeat.running
        return session.heartbeat.ticks

    ticks = asyncio.run(scenario())

    endpoints = transport.endpoints(heartbeats=True)
    assert ticks >= 2
    assert endpoints.count("game_heartbeat") == ticks
    assert endpoints[-1] == "remove_game"
    assert endpoints.index("remove_game") > max(
        i for i, name in enumerate(endpoints) if name == "game_heartbeat"
    )


def test_bind_failure_leaves_event_registered() -> None:
    transport = FakeTransport(fail_on=("bind_game_event",))

    async def scenario() -> GameSenseSession:
        session = _session(transport)
        await session.setup(GameMetadata("OLED_CLOCK"))
        with pytest.raises(PartialBindError) as excinfo:
            await session.create_event_and_bind(_registration(), _handlers())
        assert excinfo.value.event == "TIME_UPDATE"
        assert isinstance(excinfo.value.__cause__, TransportError)
        await session.teardown()
        return session

    asyncio.run(scenario())

    assert transport.endpoints() == [
        "game_metadata",
        "register_game_event",
        "bind_game_event",
        "remove_game",
    ]


def test_bad_binding_is_caught_before_registering() -> None:
    transport = FakeTransport()
    registration = EventRegistration("OLED_CLOCK", "TIME_UPDATE", 5, 1)

    async def scenario() -> None:
        session = _session(transport)
        await session.setup(GameMetadata("OLED_CLOCK"))
        with pytest.raises(ValueError):
            await session.create_event_and_bind(registration, _handlers())
        await session.teardown()

    asyncio.run(scenario())

    assert "register_game_event" not in transport.endpoints()


def test_events_must_target_session_game() -> None:
    transport = FakeTransport()

    async def scenario() -> None:
        session = _session(transport)
        await session.setup(GameMetadata("OLED_CLOCK"))
        with pytest.raises(ValueError, match="OTHER_GAME"):
            await session.create_event(EventRegistration("OTHER_GAME", "TIME_UPDATE"))
        with pytest.raises(ValueError):
            await session.remove_event(EventRemove("OTHER_GAME", "TIME_UPDATE"))
        await session.remove_event("TIME_UPDATE")
        await session.teardown()

    asyncio.run(scenario())

    assert ("remove_game_event", {"game": "OLED_CLOCK", "event": "TIME_UPDATE"}) in transport.calls


def test_trigger_accepts_scalar_and_none() -> None:
    transport = FakeTransport()

    async def scenario() -> None:
        session = _session(transport)
        await session.setup(GameMetadata("OLED_CLOCK"))
        await session.trigger("TIME_UPDATE", 42)
        await session.trigger("TIME_UPDATE", EventData("x"))
        await session.trigger("TIME_UPDATE")
        await session.teardown()

    asyncio.run(scenario())

    datas = [body["data"] for name, body in transport.calls if name == "game_event"]
    assert datas == [{"value": 42}, {"value": "x"}, None]


def test_heartbeat_failure_is_reported_without_ending_session() -> None:
    transport = FakeTransport(fail_on=("game_heartbeat",))
    failures: List[HeartbeatError] = []

    async def scenario() -> GameSenseSession:
        session = _session(transport, on_heartbeat_failure=failures.append)
        await session.setup(GameMetadata("OLED_CLOCK", deinitialize_timer_length_ms=10))
        await asyncio.sleep(0.05)
        assert session.state is SessionState.ACTIVE
        await session.trigger("TIME_UPDATE", 1)
        await session.teardown()
        return session

    session = asyncio.run(scenario())

    assert len(failures) == 1
    assert session.heartbeat_failure is failures[0]
    assert isinstance(failures[0].__cause__, TransportError)
    assert transport.endpoints(heartbeats=True).count("game_heartbeat") == 1


def test_context_manager_tears_down_and_keeps_transport() -> None:
    transport = FakeTransport()

    async def scenario() -> GameSenseSession:
        async with _session(transport) as session:
            await session.setup(GameMetadata("OLED_CLOCK"))
        return session

    session = asyncio.run(scenario())

    assert session.state is SessionState.TERMINATED
    assert transport.endpoints()[-1] == "remove_game"
    assert transport.closed is False


def test_context_manager_unwinds_when_removal_fails() -> None:
    transport = FakeTransport(fail_on=("remove_game",))

    async def scenario() -> None:
        async with _session(transport) as session:
            await session.setup(GameMetadata("OLED_CLOCK"))
            raise KeyError("boom")

    with pytest.raises(KeyError):
        asyncio.run(scenario())

    assert transport.endpoints()[-1] == "remove_game"
