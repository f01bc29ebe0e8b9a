"""OLED clock: shows the local time and a "now playing" label on the screen."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from contextlib import suppress
from datetime import datetime
from typing import Callable, List, Optional

from gamesense_oled.client import GameSenseSession
from gamesense_oled.protocol import EventData, EventRegistration, GameMetadata, Icon, ScreenHandler
from gamesense_oled.protocol.builders import multi_line, screen_handler, text_line

logger = logging.getLogger(__name__)

GAME = "OLED_CLOCK"
EVENT = "TIME_UPDATE"
IDLE_LABEL = "IDLE"
DEFAULT_HEARTBEAT_MS = 15_000

HELP_LINES = (
    "Available Commands:",
    "  set <game name> - Set the game name",
    "  idle - Set the game name to IDLE",
    "  exit - Exit the program",
)


def clock_metadata(heartbeat_ms: int = DEFAULT_HEARTBEAT_MS) -> GameMetadata:
    return GameMetadata(
        game=GAME,
        game_display_name="OLED Clock",
        developer="gamesense-oled",
        deinitialize_timer_length_ms=heartbeat_ms,
    )


def clock_registration() -> EventRegistration:
    return EventRegistration(
        game=GAME,
        event=EVENT,
        min_value=0,
        max_value=1,
        icon=Icon.Timer,
        value_optional=False,
    )


def clock_handlers() -> List[ScreenHandler]:
    # "nullstr" is always sent empty so the last line shows only its prefix.
    frame = multi_line(
        text_line("Now  ", context_frame_key="curr_game"),
        text_line("Time  "),
        text_line("/ gamesense /", context_frame_key="nullstr"),
    )
    return [screen_handler([frame])]


def _deliver(future: asyncio.Future[str], line: str, error: Optional[BaseException]) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(line)


async def _read_line(readline: Callable[[], str]) -> str:
    """Run one blocking *readline* on a daemon thread; loop shutdown never waits on it."""

    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()

    def worker() -> None:
        line, error = "", None
        try:
            line = readline()
        except Exception as exc:
            error = exc
        # The loop may already be closed when the read finally returns.
        with suppress(RuntimeError):
            loop.call_soon_threadsafe(_deliver, future, line, error)

    threading.Thread(target=worker, name="gamesense-clock-stdin", daemon=True).start()
    return await future


class ClockApp:
    """Pushes ``TIME_UPDATE`` every ``tick_s`` seconds until told to exit."""

    def __init__(
        self,
        session: GameSenseSession,
        *,
        tick_s: float = 1.0,
        heartbeat_ms: int = DEFAULT_HEARTBEAT_MS,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._session = session
        self._tick_s = tick_s
        self._heartbeat_ms = heartbeat_ms
        self._now = now
        self._label = IDLE_LABEL
        self._stop = asyncio.Event()

    @property
    def label(self) -> str:
        return self._label

    def event_data(self) -> EventData:
        return EventData(
            value=self._now().strftime("%H:%M:%S"),
            frame={"curr_game": self._label, "nullstr": ""},
        )

    def handle_command(self, line: str) -> bool:
        """Apply one operator command; returns ``False`` once the app should exit."""

        args = line.split()
        if not args:
            return True
        command, rest = args[0], args[1:]
        if command == "help":
            for text in HELP_LINES:
                logger.info(text)
        elif command == "set":
            if not rest:
                logger.warning("Failed to set game name: No game name provided")
                return True
            self._label = " ".join(rest)
            logger.info("Update game name to %s", self._label)
        elif command == "idle":
            self._label = IDLE_LABEL
            logger.info("Update game name to %s", self._label)
        elif command == "exit":
            logger.info("Exiting...")
            self._stop.set()
            return False
        else:
            logger.warning("Unknown command: %s", command)
        return True

    async def start(self) -> None:
        await self._session.setup(clock_metadata(self._heartbeat_ms))
        await self._session.create_event_and_bind(clock_registration(), clock_handlers())

    async def run_updates(self) -> None:
        while not self._stop.is_set():
            await self._session.trigger(EVENT, self.event_data())
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self._tick_s)

    async def read_commands(self, readline: Optional[Callable[[], str]] = None) -> None:
        readline = readline or sys.stdin.readline
        while not self._stop.is_set():
            line = await _read_line(readline)
            if not line:
                # stdin closed
                self._stop.set()
                return
            if not self.handle_command(line):
                return

    def request_stop(self) -> None:
        self._stop.set()

    async def run(self, readline: Optional[Callable[[], str]] = None) -> None:
        await self.start()
        logger.info("Setup complete, type 'help' for a list of commands")
        updater = asyncio.create_task(self.run_updates(), name="gamesense-clock-updates")
        commands = asyncio.create_task(self.read_commands(readline), name="gamesense-clock-commands")
        try:
            done, _ = await asyncio.wait({updater, commands}, return_when=asyncio.FIRST_COMPLETED)
            self._stop.set()
            if updater in done:
                # Re-raise trigger failures.
                updater.result()
            else:
                await updater
        finally:
            self._stop.set()
            logger.info("Stopping update task")
            await self._session.teardown()
            commands.cancel()


__all__ = [
    "EVENT",
    "GAME",
    "IDLE_LABEL",
    "ClockApp",
    "clock_handlers",
    "clock_metadata",
    "clock_registration",
]
