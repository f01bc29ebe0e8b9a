"""
Command-line entry point for the OLED clock.

Usage: ``gamesense-clock [--address HOST:PORT] [--debug] [--interval SECONDS]``
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional, Sequence

from gamesense_oled import __version__
from gamesense_oled.client import GameSenseError, GameSenseSession, load_client_config

from .clock import DEFAULT_HEARTBEAT_MS, ClockApp

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gamesense-clock", description="Show a clock on SteelSeries OLED screens")
    parser.add_argument("--address", help="engine host:port (default: read coreProps.json)")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("--interval", type=float, default=1.0, help="seconds between clock updates")
    parser.add_argument(
        "--heartbeat-ms",
        type=int,
        default=DEFAULT_HEARTBEAT_MS,
        help="engine deinitialize timer / heartbeat interval in milliseconds",
    )
    return parser


async def _run(args: argparse.Namespace) -> None:
    config = load_client_config()
    async with GameSenseSession(address=args.address, config=config) as session:
        app = ClockApp(session, tick_s=args.interval, heartbeat_ms=args.heartbeat_ms)
        await app.run()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    debug = args.debug or os.getenv("GAMESENSE_DEBUG", "").lower() in ("1", "true", "yes")
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
    )

    logger.info("GameSense OLED Clock %s", __version__)
    try:
        asyncio.run(_run(args))
    except GameSenseError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
