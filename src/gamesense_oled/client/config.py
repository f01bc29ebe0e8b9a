"""Client configuration resolved from ``GAMESENSE_*`` environment variables."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from gamesense_oled.utils.env import env_bool, env_float, env_int, env_str

DEFAULT_HEARTBEAT_MS = 10_000
DEFAULT_HTTP_TIMEOUT_S = 5.0


@dataclass(frozen=True)
class ClientConfig:
    """Settings shared by the session, its transport and address discovery."""

    address: Optional[str] = None
    core_props_path: Optional[Path] = None
    http_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    heartbeat_ms: int = DEFAULT_HEARTBEAT_MS
    debug: bool = False


def load_client_config(env: Optional[Mapping[str, str]] = None) -> ClientConfig:
    core_props = env_str("GAMESENSE_CORE_PROPS", env=env)
    timeout = env_float("GAMESENSE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT_S, env=env)
    heartbeat = env_int("GAMESENSE_HEARTBEAT_MS", DEFAULT_HEARTBEAT_MS, env=env)
    return ClientConfig(
        address=env_str("GAMESENSE_ADDRESS", env=env),
        core_props_path=Path(core_props).expanduser() if core_props else None,
        http_timeout_s=timeout if timeout > 0 else DEFAULT_HTTP_TIMEOUT_S,
        heartbeat_ms=heartbeat if heartbeat > 0 else DEFAULT_HEARTBEAT_MS,
        debug=env_bool("GAMESENSE_CLIENT_DEBUG", env=env),
    )


__all__ = ["DEFAULT_HEARTBEAT_MS", "DEFAULT_HTTP_TIMEOUT_S", "ClientConfig", "load_client_config"]
