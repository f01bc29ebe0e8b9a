"""Request bodies for the GameSense engine endpoints.

Every message is a small dataclass with ``to_dict``/``from_dict`` so the
session code only ever hands plain JSON mappings to the transport.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any, Dict, Mapping, Sequence, Tuple, Union

from .icons import SCREENED, Icon
from .payloads import ScreenData, decode_icon, decode_screen_datas, encode_screen_datas
from .wire import (
    PayloadDecodeError,
    as_mapping,
    as_sequence,
    join_path,
    read_bool,
    read_int,
    read_str,
    strip_none,
)

# Endpoint names, appended to ``http://<address>/``.
GAME_METADATA_ENDPOINT = "game_metadata"
GAME_HEARTBEAT_ENDPOINT = "game_heartbeat"
REGISTER_EVENT_ENDPOINT = "register_game_event"
BIND_EVENT_ENDPOINT = "bind_game_event"
GAME_EVENT_ENDPOINT = "game_event"
REMOVE_EVENT_ENDPOINT = "remove_game_event"
REMOVE_GAME_ENDPOINT = "remove_game"

SCREEN_MODE = "screen"

_IDENTIFIER_RE = re.compile(r"^[A-Z0-9_-]+$")


def normalize_identifier(name: str) -> str:
    """Upper-case *name* and replace whitespace so the engine accepts it."""

    return re.sub(r"\s+", "_", str(name).strip()).upper()


def validate_identifier(name: str, kind: str = "identifier") -> str:
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise ValueError(f"{kind} {name!r} must contain only A-Z, 0-9, '-' and '_'")
    return name


@dataclass(frozen=True, slots=True)
class GameMetadata:
    game: str
    game_display_name: str | None = None
    developer: str | None = None
    deinitialize_timer_length_ms: int | None = None

    def to_dict(self) -> Dict[str, Any]:
        return strip_none(
            {
                "game": self.game,
                "game_display_name": self.game_display_name,
                "developer": self.developer,
                "deinitialize_timer_length_ms": self.deinitialize_timer_length_ms,
            }
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameMetadata":
        timer = data.get("deinitialize_timer_length_ms")
        return cls(
            game=read_str(data, "game", ""),
            game_display_name=data.get("game_display_name"),
            developer=data.get("developer"),
            deinitialize_timer_length_ms=int(timer) if timer is not None else None,
        )


@dataclass(frozen=True, slots=True)
class GameHeartbeat:
    game: str

    def to_dict(self) -> Dict[str, Any]:
        return {"game": self.game}


@dataclass(frozen=True, slots=True)
class GameRemove:
    game: str

    def to_dict(self) -> Dict[str, Any]:
        return {"game": self.game}


@dataclass(frozen=True, slots=True)
class EventRegistration:
    game: str
    event: str
    min_value: int = 0
    max_value: int = 100
    icon: Icon = Icon.NoIcon
    value_optional: bool = False

    def validate(self) -> None:
        validate_identifier(self.game, "game")
        validate_identifier(self.event, "event")
        if self.min_value > self.max_value:
            raise ValueError(
                f"event {self.event!r} has min_value {self.min_value} > max_value {self.max_value}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game": self.game,
            "event": self.event,
            "min_value": int(self.min_value),
            "max_value": int(self.max_value),
            "icon_id": int(self.icon),
            "value_optional": bool(self.value_optional),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EventRegistration":
        return cls(
            game=read_str(data, "game", ""),
            event=read_str(data, "event", ""),
            min_value=read_int(data, "min_value", ""),
            max_value=read_int(data, "max_value", ""),
            icon=decode_icon(data.get("icon_id", 0), "icon_id"),
            value_optional=read_bool(data, "value_optional", "", False),
        )


@dataclass(frozen=True, slots=True)
class ScreenHandler:
    """Draw *datas* on the ``zone`` of every device matching ``device_type``."""

    device_type: str = SCREENED
    zone: str = "one"
    datas: Tuple[ScreenData, ...] = ()
    mode: str = SCREEN_MODE

    def __post_init__(self) -> None:
        object.__setattr__(self, "datas", tuple(self.datas))

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        return {
            "device-type": self.device_type,
            "zone": self.zone,
            "mode": self.mode,
            "datas": encode_screen_datas(self.datas, join_path(path, "datas")),
        }

    @classmethod
    def from_dict(cls, data: Any, path: str = "") -> "ScreenHandler":
        mapping = as_mapping(data, path)
        mode = read_str(mapping, "mode", path, SCREEN_MODE)
        if mode != SCREEN_MODE:
            raise PayloadDecodeError(join_path(path, "mode"), f"unsupported handler mode {mode!r}")
        return cls(
            device_type=read_str(mapping, "device-type", path),
            zone=read_str(mapping, "zone", path),
            datas=decode_screen_datas(mapping.get("datas"), join_path(path, "datas")),
            mode=mode,
        )


@dataclass(frozen=True, slots=True)
class EventBinding:
    game: str
    event: str
    min_value: int = 0
    max_value: int = 100
    icon: Icon = Icon.NoIcon
    handlers: Tuple[ScreenHandler, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "handlers", tuple(self.handlers))

    @classmethod
    def for_registration(
        cls, registration: EventRegistration, handlers: Sequence[ScreenHandler]
    ) -> "EventBinding":
        return cls(
            game=registration.game,
            event=registration.event,
            min_value=registration.min_value,
            max_value=registration.max_value,
            icon=registration.icon,
            handlers=tuple(handlers),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game": self.game,
            "event": self.event,
            "min_value": int(self.min_value),
            "max_value": int(self.max_value),
            "icon_id": int(self.icon),
            "handlers": [
                handler.to_dict(join_path("handlers", i)) for i, handler in enumerate(self.handlers)
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EventBinding":
        mapping = as_mapping(data, "")
        entries = as_sequence(mapping.get("handlers"), "handlers")
        return cls(
            game=read_str(mapping, "game", ""),
            event=read_str(mapping, "event", ""),
            min_value=read_int(mapping, "min_value", ""),
            max_value=read_int(mapping, "max_value", ""),
            icon=decode_icon(mapping.get("icon_id", 0), "icon_id"),
            handlers=tuple(
                ScreenHandler.from_dict(entry, join_path("handlers", i)) for i, entry in enumerate(entries)
            ),
        )


EventValue = Union[str, int]


def _check_value(value: Any, path: str) -> EventValue:
    if isinstance(value, bool) or not isinstance(value, (str, Integral)):
        raise ValueError(f"{path} must be a string or an integer, got {type(value).__name__}")
    return value if isinstance(value, str) else int(value)


@dataclass(frozen=True, slots=True)
class EventData:
    """Value pushed on a trigger plus optional context-frame substitutions."""

    value: EventValue
    frame: Dict[str, EventValue] | None = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"value": _check_value(self.value, "value")}
        if self.frame is not None:
            payload["frame"] = {
                str(key): _check_value(val, f"frame.{key}") for key, val in self.frame.items()
            }
        return payload

    @classmethod
    def coerce(cls, data: "EventData | Mapping[str, Any] | EventValue") -> "EventData":
        """Accept an :class:`EventData`, a ``{value, frame}`` mapping or a bare scalar."""

        if isinstance(data, EventData):
            return data
        if isinstance(data, Mapping):
            if "value" not in data:
                raise ValueError("event data mapping requires 'value'")
            frame = data.get("frame")
            return cls(value=data["value"], frame=dict(frame) if frame is not None else None)
        return cls(value=_check_value(data, "value"))


@dataclass(frozen=True, slots=True)
class GameEvent:
    game: str
    event: str
    data: EventData | None = None

    def to_dict(self) -> Dict[str, Any]:
        # ``data`` is always sent; the engine expects the key even when empty.
        return {
            "game": self.game,
            "event": self.event,
            "data": self.data.to_dict() if self.data is not None else None,
        }


@dataclass(frozen=True, slots=True)
class EventRemove:
    game: str
    event: str

    def to_dict(self) -> Dict[str, Any]:
        return {"game": self.game, "event": self.event}


__all__ = [
    "BIND_EVENT_ENDPOINT",
    "GAME_EVENT_ENDPOINT",
    "GAME_HEARTBEAT_ENDPOINT",
    "GAME_METADATA_ENDPOINT",
    "REGISTER_EVENT_ENDPOINT",
    "REMOVE_EVENT_ENDPOINT",
    "REMOVE_GAME_ENDPOINT",
    "SCREEN_MODE",
    "EventBinding",
    "EventData",
    "EventRegistration",
    "EventRemove",
    "EventValue",
    "GameEvent",
    "GameHeartbeat",
    "GameMetadata",
    "GameRemove",
    "ScreenHandler",
    "normalize_identifier",
    "validate_identifier",
]
