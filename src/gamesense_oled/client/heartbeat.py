"""Background keep-alive loop for a registered game."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from gamesense_oled.protocol.messages import GAME_HEARTBEAT_ENDPOINT, GameHeartbeat

from .errors import HeartbeatError
from .transport import Transport

logger = logging.getLogger(__name__)


class HeartbeatTask:
    """Send ``game_heartbeat`` every ``interval_ms`` until cancelled.

    The first heartbeat goes out as soon as the task starts. Any failed request
    ends the loop for good: the error is kept in :attr:`failure` and passed to
    ``on_failure``; nothing is retried.
    """

    def __init__(
        self,
        transport: Transport,
        game: str,
        interval_ms: int,
        *,
        on_failure: Optional[Callable[[HeartbeatError], None]] = None,
    ) -> None:
        if interval_ms <= 0:
            raise ValueError(f"heartbeat interval must be positive, got {interval_ms}")
        self._transport = transport
        self._game = game
        self._interval_ms = int(interval_ms)
        self._on_failure = on_failure
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False
        self._failure: HeartbeatError | None = None
        self._ticks = 0

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def ticks(self) -> int:
        """Number of heartbeats the engine accepted."""

        return self._ticks

    @property
    def failure(self) -> HeartbeatError | None:
        return self._failure

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        if self._task is not None:
            raise RuntimeError("heartbeat task already started")
        if self._cancelled:
            raise RuntimeError("heartbeat task was cancelled")
        task = asyncio.create_task(self._run(), name=f"gamesense-heartbeat-{self._game}")
        task.add_done_callback(self._on_done)
        self._task = task
        logger.debug("Heartbeat started for %s every %d ms", self._game, self._interval_ms)
        return task

    async def cancel(self) -> None:
        """Stop the loop and wait until it has exited. May only be called once."""

        if self._cancelled:
            raise RuntimeError("heartbeat task already cancelled")
        self._cancelled = True
        task = self._task
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.debug("Heartbeat stopped for %s after %d ticks", self._game, self._ticks)

    async def _run(self) -> None:
        body = GameHeartbeat(self._game).to_dict()
        interval_s = self._interval_ms / 1000.0
        while True:
            try:
                await self._transport.post(GAME_HEARTBEAT_ENDPOINT, body)
            except Exception as exc:
                logger.warning("Heartbeat for %s failed (%s); keep-alive stopped", self._game, exc)
                raise HeartbeatError(f"heartbeat for {self._game} failed: {exc}") from exc
            self._ticks += 1
            await asyncio.sleep(interval_s)

    def _on_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        failure = exc if isinstance(exc, HeartbeatError) else HeartbeatError(str(exc))
        self._failure = failure
        if self._on_failure is not None:
            try:
                self._on_failure(failure)
            except Exception:
                logger.debug("heartbeat on_failure callback failed", exc_info=True)


__all__ = ["HeartbeatTask"]
