from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Tuple

import pytest
from aiohttp import test_utils, web

from gamesense_oled.client import HttpTransport, TransportError


async def _start_engine(received: List[Tuple[str, Dict[str, Any]]]) -> test_utils.TestServer:
    async def accept(request: web.Request) -> web.Response:
        received.append((request.path, await request.json()))
        return web.json_response({"game": "OLED_CLOCK"})

    async def reject(request: web.Request) -> web.Response:
        return web.json_response({"error": "Game name is not valid"}, status=400)

    async def empty(request: web.Request) -> web.Response:
        return web.Response(text="")

    async def slow(request: web.Request) -> web.Response:
        await asyncio.sleep(0.5)
        return web.json_response({})

    app = web.Application()
    app.router.add_post("/game_metadata", accept)
    app.router.add_post("/remove_game", reject)
    app.router.add_post("/game_heartbeat", empty)
    app.router.add_post("/game_event", slow)
    server = test_utils.TestServer(app)
    await server.start_server()
    return server


def test_post_sends_json_and_returns_body() -> None:
    received: List[Tuple[str, Dict[str, Any]]] = []

    async def scenario() -> Any:
        server = await _start_engine(received)
        transport = HttpTransport(f"{server.host}:{server.port}")
        try:
            return await transport.post("game_metadata", {"game": "OLED_CLOCK"})
        finally:
            await transport.close()
            await server.close()

    body = asyncio.run(scenario())

    assert body == {"game": "OLED_CLOCK"}
    assert received == [("/game_metadata", {"game": "OLED_CLOCK"})]


def test_engine_error_becomes_transport_error() -> None:
    async def scenario() -> None:
        server = await _start_engine([])
        transport = HttpTransport(f"{server.host}:{server.port}")
        try:
            with pytest.raises(TransportError) as excinfo:
                await transport.post("remove_game", {"game": "OLED_CLOCK"})
            assert excinfo.value.status == 400
            assert excinfo.value.endpoint == "remove_game"
            assert "Game name is not valid" in str(excinfo.value)

            assert await transport.post("game_heartbeat", {"game": "OLED_CLOCK"}) == {}
        finally:
            await transport.close()
            await server.close()

    asyncio.run(scenario())


def test_timeout_becomes_transport_error() -> None:
    async def scenario() -> None:
        server = await _start_engine([])
        transport = HttpTransport(f"{server.host}:{server.port}", timeout_s=0.1)
        try:
            with pytest.raises(TransportError, match="timed out"):
                await transport.post("game_event", {"game": "OLED_CLOCK", "event": "E", "data": None})
        finally:
            await transport.close()
            await server.close()

    asyncio.run(scenario())


def test_unreachable_engine() -> None:
    async def scenario() -> None:
        server = await _start_engine([])
        address = f"{server.host}:{server.port}"
        await server.close()
        transport = HttpTransport(address)
        try:
            with pytest.raises(TransportError) as excinfo:
                await transport.post("game_metadata", {"game": "OLED_CLOCK"})
            assert excinfo.value.status is None
        finally:
            await transport.close()

    asyncio.run(scenario())


def test_url_building() -> None:
    transport = HttpTransport(" 127.0.0.1:51234/ ")

    assert transport.base_url == "http://127.0.0.1:51234"
    assert transport.url("game_event") == "http://127.0.0.1:51234/game_event"
