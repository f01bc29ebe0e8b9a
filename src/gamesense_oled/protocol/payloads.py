"""Display payloads bound to GameSense screen handlers.

The engine's screen handler ``datas`` array mixes several frame shapes without
any discriminator field. The dataclasses below give every shape its own type;
:func:`decode_screen_data` and :func:`decode_frame` pick the type from the keys
present on the wire, in a fixed precedence order:

1. all four ``image-data-128xNN`` fields -> :class:`DeviceImageFrame`
2. ``image-data`` -> :class:`ImageFrame`
3. ``lines`` -> :class:`MultiLineFrame`
4. flattened line-content fields -> :class:`SingleLineFrame`

Line content is a progress bar when ``has-progress-bar`` is present and text
otherwise; ``repeats`` is :class:`Infinite` for a JSON boolean and
:class:`Counts` for a JSON integer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Integral
from typing import Any, Dict, Mapping, Sequence, Tuple, Union

from .icons import IMAGE_SIZES, Icon, OledDevice
from .wire import (
    PayloadDecodeError,
    as_mapping,
    as_sequence,
    coerce_bytes,
    decode_image,
    encode_image,
    flatten_into,
    join_path,
    read_bool,
    read_int,
    read_optional_str,
    read_str,
    strip_none,
    wire_name,
)

LINE_CONTENT_FIELDS = ("has-text", "has-progress-bar", "prefix", "suffix", "bold", "wrap")
MODIFIER_FIELDS = ("length-millis", "icon-id", "repeats")
ACCESSOR_FIELDS = ("arg", "context-frame-key")

# Device slot attribute -> screen family, in wire order.
DEVICE_SLOTS: Tuple[Tuple[str, OledDevice], ...] = (
    ("image_rival", OledDevice.RIVAL),
    ("image_apex", OledDevice.APEX),
    ("image_arctis_pro", OledDevice.ARCTIS_PRO_WIRELESS),
    ("image_gamedac", OledDevice.GAMEDAC),
)
DEVICE_IMAGE_FIELDS = tuple(wire_name(attr) for attr, _ in DEVICE_SLOTS)


# --- Line content ----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TextModifier:
    """Render the event value as text, optionally wrapped in a prefix/suffix."""

    has_text: bool = True
    prefix: str = ""
    suffix: str = ""
    bold: bool = False
    wrap: int = 0

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        return {
            "has-text": bool(self.has_text),
            "prefix": self.prefix,
            "suffix": self.suffix,
            "bold": bool(self.bold),
            "wrap": int(self.wrap),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> "TextModifier":
        return cls(
            has_text=read_bool(data, "has-text", path, True),
            prefix=read_str(data, "prefix", path, ""),
            suffix=read_str(data, "suffix", path, ""),
            bold=read_bool(data, "bold", path, False),
            wrap=read_int(data, "wrap", path, 0),
        )


@dataclass(frozen=True, slots=True)
class ProgressBarModifier:
    """Render the event value as a progress bar over the event range."""

    has_progress_bar: bool = True

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        return {"has-progress-bar": bool(self.has_progress_bar)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> "ProgressBarModifier":
        return cls(has_progress_bar=read_bool(data, "has-progress-bar", path, True))


LineContent = Union[TextModifier, ProgressBarModifier]


def decode_line_content(data: Mapping[str, Any], path: str = "") -> LineContent:
    if "has-progress-bar" in data:
        return ProgressBarModifier.from_dict(data, path)
    return TextModifier.from_dict(data, path)


# --- Frame modifiers -------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Infinite:
    """Repeat forever (``True``) or play once (``False``)."""

    enabled: bool = False

    def to_wire(self) -> bool:
        return bool(self.enabled)


@dataclass(frozen=True, slots=True)
class Counts:
    """Repeat a fixed number of times."""

    count: int

    def to_wire(self) -> int:
        return int(self.count)


Repeat = Union[Infinite, Counts]


def decode_repeat(value: Any, path: str) -> Repeat:
    # bool before int: JSON booleans are Python ints as well.
    if isinstance(value, bool):
        return Infinite(value)
    if isinstance(value, Integral):
        return Counts(int(value))
    raise PayloadDecodeError(path, "expected a boolean or an integer")


def decode_icon(value: Any, path: str) -> Icon:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise PayloadDecodeError(path, "expected an integer icon id")
    try:
        return Icon(int(value))
    except ValueError as exc:
        raise PayloadDecodeError(path, f"unknown icon id {value}") from exc


@dataclass(frozen=True, slots=True)
class FrameModifiers:
    length_millis: int = 0
    icon: Icon = Icon.NoIcon
    repeats: Repeat = field(default_factory=Infinite)

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        return {
            "length-millis": int(self.length_millis),
            "icon-id": int(self.icon),
            "repeats": self.repeats.to_wire(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> "FrameModifiers":
        icon = data.get("icon-id", Icon.NoIcon)
        repeats = data.get("repeats", False)
        return cls(
            length_millis=read_int(data, "length-millis", path, 0),
            icon=decode_icon(icon, join_path(path, "icon-id")),
            repeats=decode_repeat(repeats, join_path(path, "repeats")),
        )

    @classmethod
    def from_block(cls, data: Mapping[str, Any], path: str = "") -> "FrameModifiers | None":
        """Return modifiers flattened into *data*, or ``None`` when absent."""

        if not any(key in data for key in MODIFIER_FIELDS):
            return None
        return cls.from_dict(data, path)


@dataclass(frozen=True, slots=True)
class DataAccessor:
    """Select what a line shows: a literal ``arg`` or a trigger frame key."""

    arg: str | None = None
    context_frame_key: str | None = None

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        return strip_none({"arg": self.arg, "context-frame-key": self.context_frame_key})

    @classmethod
    def from_block(cls, data: Mapping[str, Any], path: str = "") -> "DataAccessor | None":
        if not any(data.get(key) is not None for key in ACCESSOR_FIELDS):
            return None
        return cls(
            arg=read_optional_str(data, "arg", path),
            context_frame_key=read_optional_str(data, "context-frame-key", path),
        )


def _block(value: Any, path: str) -> Dict[str, Any] | None:
    return value.to_dict(path) if value is not None else None


def _accessor_or_none(accessor: DataAccessor | None) -> DataAccessor | None:
    # An accessor with neither field is not distinguishable from none on the wire.
    if accessor is None or (accessor.arg is None and accessor.context_frame_key is None):
        return None
    return accessor


# --- Frames ----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SingleLineFrame:
    content: LineContent = field(default_factory=TextModifier)
    modifiers: FrameModifiers | None = None
    accessor: DataAccessor | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "accessor", _accessor_or_none(self.accessor))

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        payload = self.content.to_dict(path)
        return flatten_into(payload, _block(self.modifiers, path), _block(self.accessor, path))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> "SingleLineFrame":
        return cls(
            content=decode_line_content(data, path),
            modifiers=FrameModifiers.from_block(data, path),
            accessor=DataAccessor.from_block(data, path),
        )


@dataclass(frozen=True, slots=True)
class LineData:
    content: LineContent = field(default_factory=TextModifier)
    accessor: DataAccessor | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "accessor", _accessor_or_none(self.accessor))

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        return flatten_into(self.content.to_dict(path), _block(self.accessor, path))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> "LineData":
        mapping = as_mapping(data, path)
        return cls(
            content=decode_line_content(mapping, path),
            accessor=DataAccessor.from_block(mapping, path),
        )


@dataclass(frozen=True, slots=True)
class MultiLineFrame:
    lines: Tuple[LineData, ...] = ()
    modifiers: FrameModifiers | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        lines_path = join_path(path, "lines")
        payload: Dict[str, Any] = {
            "lines": [line.to_dict(join_path(lines_path, i)) for i, line in enumerate(self.lines)],
        }
        return flatten_into(payload, _block(self.modifiers, path))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> "MultiLineFrame":
        lines_path = join_path(path, "lines")
        entries = as_sequence(data.get("lines"), lines_path)
        return cls(
            lines=tuple(LineData.from_dict(entry, join_path(lines_path, i)) for i, entry in enumerate(entries)),
            modifiers=FrameModifiers.from_block(data, path),
        )


@dataclass(frozen=True, slots=True)
class ImageFrame:
    """A single packed bitmap shown as-is on whichever screen renders it."""

    image_data: bytes = b""
    modifiers: FrameModifiers | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "image_data", coerce_bytes(self.image_data))

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        payload = {"image-data": encode_image(self.image_data, join_path(path, "image-data"), IMAGE_SIZES)}
        return flatten_into(payload, _block(self.modifiers, path))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> "ImageFrame":
        return cls(
            image_data=decode_image(data.get("image-data"), join_path(path, "image-data"), IMAGE_SIZES),
            modifiers=FrameModifiers.from_block(data, path),
        )


@dataclass(frozen=True, slots=True)
class DeviceImageFrame:
    """One packed bitmap per OLED family; the engine picks the matching one."""

    image_rival: bytes
    image_apex: bytes
    image_arctis_pro: bytes
    image_gamedac: bytes

    def __post_init__(self) -> None:
        for attr, _ in DEVICE_SLOTS:
            object.__setattr__(self, attr, coerce_bytes(getattr(self, attr)))

    def image_for(self, device: OledDevice) -> bytes:
        for attr, slot_device in DEVICE_SLOTS:
            if slot_device is device:
                return getattr(self, attr)
        raise KeyError(device)

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for attr, device in DEVICE_SLOTS:
            name = wire_name(attr)
            payload[name] = encode_image(getattr(self, attr), join_path(path, name), device.image_bytes)
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> "DeviceImageFrame":
        images: Dict[str, bytes] = {}
        for attr, device in DEVICE_SLOTS:
            name = wire_name(attr)
            images[attr] = decode_image(data.get(name), join_path(path, name), device.image_bytes)
        return cls(**images)


Frame = Union[SingleLineFrame, MultiLineFrame, ImageFrame, DeviceImageFrame]


@dataclass(frozen=True, slots=True)
class RangeScreenData:
    """Frames shown only while the event value lies within ``[low, high]``."""

    low: int
    high: int
    datas: Tuple[Frame, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "datas", tuple(self.datas))

    def to_dict(self, path: str = "") -> Dict[str, Any]:
        datas_path = join_path(path, "datas")
        return {
            "low": int(self.low),
            "high": int(self.high),
            "datas": [frame.to_dict(join_path(datas_path, i)) for i, frame in enumerate(self.datas)],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: str = "") -> "RangeScreenData":
        datas_path = join_path(path, "datas")
        entries = as_sequence(data.get("datas"), datas_path)
        return cls(
            low=read_int(data, "low", path),
            high=read_int(data, "high", path),
            datas=tuple(decode_frame(entry, join_path(datas_path, i)) for i, entry in enumerate(entries)),
        )


ScreenData = Union[RangeScreenData, Frame]


# --- Shape resolution ------------------------------------------------------


def frame_shape(data: Mapping[str, Any]) -> type | None:
    """Return the frame class selected by the precedence table, if any."""

    if all(name in data for name in DEVICE_IMAGE_FIELDS):
        return DeviceImageFrame
    if "image-data" in data:
        return ImageFrame
    if "lines" in data:
        return MultiLineFrame
    if any(name in data for name in LINE_CONTENT_FIELDS):
        return SingleLineFrame
    return None


def decode_frame(data: Any, path: str = "") -> Frame:
    mapping = as_mapping(data, path)
    shape = frame_shape(mapping)
    if shape is None:
        partial = [name for name in DEVICE_IMAGE_FIELDS if name in mapping]
        if partial:
            missing = ", ".join(name for name in DEVICE_IMAGE_FIELDS if name not in mapping)
            raise PayloadDecodeError(path, f"per-device image is missing {missing}")
        raise PayloadDecodeError(path, "object matches no frame shape")
    return shape.from_dict(mapping, path)


def decode_screen_data(data: Any, path: str = "") -> ScreenData:
    mapping = as_mapping(data, path)
    if frame_shape(mapping) is None and "datas" in mapping:
        return RangeScreenData.from_dict(mapping, path)
    return decode_frame(mapping, path)


def decode_screen_datas(data: Any, path: str = "") -> Tuple[ScreenData, ...]:
    entries = as_sequence(data, path)
    return tuple(decode_screen_data(entry, join_path(path, i)) for i, entry in enumerate(entries))


def encode_screen_datas(datas: Sequence[ScreenData], path: str = "") -> list[Dict[str, Any]]:
    return [entry.to_dict(join_path(path, i)) for i, entry in enumerate(datas)]


__all__ = [
    "ACCESSOR_FIELDS",
    "DEVICE_IMAGE_FIELDS",
    "DEVICE_SLOTS",
    "LINE_CONTENT_FIELDS",
    "MODIFIER_FIELDS",
    "Counts",
    "DataAccessor",
    "DeviceImageFrame",
    "Frame",
    "FrameModifiers",
    "ImageFrame",
    "Infinite",
    "LineContent",
    "LineData",
    "MultiLineFrame",
    "ProgressBarModifier",
    "RangeScreenData",
    "Repeat",
    "ScreenData",
    "SingleLineFrame",
    "TextModifier",
    "decode_frame",
    "decode_icon",
    "decode_line_content",
    "decode_repeat",
    "decode_screen_data",
    "decode_screen_datas",
    "encode_screen_datas",
    "frame_shape",
]
