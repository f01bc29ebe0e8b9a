"""Asyncio client for the GameSense engine."""

from __future__ import annotations

from .config import ClientConfig, load_client_config
from .core_props import CoreProps, default_core_props_path, read_core_props, resolve_address
from .errors import (
    CorePropsError,
    GameSenseError,
    HeartbeatError,
    PartialBindError,
    SessionStateError,
    TransportError,
)
from .heartbeat import HeartbeatTask
from .session import GameSenseSession, SessionState
from .transport import HttpTransport, Transport

__all__ = [
    "ClientConfig",
    "CoreProps",
    "CorePropsError",
    "GameSenseError",
    "GameSenseSession",
    "HeartbeatError",
    "HeartbeatTask",
    "HttpTransport",
    "PartialBindError",
    "SessionState",
    "SessionStateError",
    "Transport",
    "TransportError",
    "default_core_props_path",
    "load_client_config",
    "read_core_props",
    "resolve_address",
]
