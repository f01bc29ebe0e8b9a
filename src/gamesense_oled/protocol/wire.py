"""Wire-format primitives shared by the GameSense payload and message codecs.

The engine speaks loosely-typed JSON: optional fields are left out rather than
sent as ``null``, nested modifier blocks are flattened into their parent
object, and field names use dashes where the Python model uses underscores.
Everything in this module is transport-agnostic and free of I/O.
"""

from __future__ import annotations

from numbers import Integral
from typing import Any, Dict, Mapping, Sequence

# Model attribute -> wire field. Attributes absent from this table keep their
# name on the wire (``game``, ``event``, ``zone``, ``prefix`` ...).
FIELD_NAMES: Dict[str, str] = {
    "device_type": "device-type",
    "has_text": "has-text",
    "has_progress_bar": "has-progress-bar",
    "length_millis": "length-millis",
    "icon": "icon-id",
    "context_frame_key": "context-frame-key",
    "image_data": "image-data",
    "image_rival": "image-data-128x36",
    "image_apex": "image-data-128x40",
    "image_arctis_pro": "image-data-128x48",
    "image_gamedac": "image-data-128x52",
}


def wire_name(attribute: str) -> str:
    return FIELD_NAMES.get(attribute, attribute)


class PayloadError(ValueError):
    """Base class for wire codec failures; carries the offending field path."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path or "<root>"
        self.message = message
        super().__init__(f"{self.path}: {message}")


class PayloadDecodeError(PayloadError):
    """Wire data did not match any known payload shape."""


class PayloadEncodeError(PayloadError):
    """A model value cannot be represented on the wire."""


def join_path(path: str, field: str | int) -> str:
    if isinstance(field, int):
        return f"{path}[{field}]"
    return f"{path}.{field}" if path else field


def strip_none(mapping: Dict[str, Any]) -> Dict[str, Any]:
    """Return *mapping* without keys whose value is ``None``."""

    return {key: value for key, value in mapping.items() if value is not None}


def flatten_into(target: Dict[str, Any], *blocks: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Merge flattened sub-blocks into *target* at the same nesting level."""

    for block in blocks:
        if not block:
            continue
        for key, value in block.items():
            if key in target:
                raise PayloadEncodeError(key, "flattened field collides with parent field")
            target[key] = value
    return target


def as_mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise PayloadDecodeError(path, "expected a JSON object")
    return value


def as_sequence(value: Any, path: str) -> Sequence[Any]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes, bytearray)):
        raise PayloadDecodeError(path, "expected a JSON array")
    return value


def require(data: Mapping[str, Any], field: str, path: str) -> Any:
    if field not in data:
        raise PayloadDecodeError(join_path(path, field), "missing required field")
    return data[field]


def read_bool(data: Mapping[str, Any], field: str, path: str, default: bool) -> bool:
    value = data.get(field, default)
    if not isinstance(value, bool):
        raise PayloadDecodeError(join_path(path, field), "expected a boolean")
    return value


def read_int(data: Mapping[str, Any], field: str, path: str, default: int | None = None) -> int:
    if field not in data and default is not None:
        return default
    value = require(data, field, path)
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise PayloadDecodeError(join_path(path, field), "expected an integer")
    return int(value)


def read_str(data: Mapping[str, Any], field: str, path: str, default: str | None = None) -> str:
    if field not in data and default is not None:
        return default
    value = require(data, field, path)
    if not isinstance(value, str):
        raise PayloadDecodeError(join_path(path, field), "expected a string")
    return value


def read_optional_str(data: Mapping[str, Any], field: str, path: str) -> str | None:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise PayloadDecodeError(join_path(path, field), "expected a string")
    return value


def coerce_bytes(value: Any) -> bytes:
    """Normalise bytes-like values (including ``uint8`` numpy arrays) to ``bytes``."""

    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    tobytes = getattr(value, "tobytes", None)
    if callable(tobytes):
        return bytes(tobytes())
    return bytes(value)


def encode_image(data: bytes, path: str, sizes: frozenset[int] | int) -> list[int]:
    """Encode an image buffer as a JSON array of unsigned bytes."""

    _check_length(len(data), path, sizes, PayloadEncodeError)
    return list(data)


def decode_image(value: Any, path: str, sizes: frozenset[int] | int) -> bytes:
    """Decode an image buffer sent either as a byte array or a byte string."""

    if isinstance(value, (bytes, bytearray)):
        data = bytes(value)
    elif isinstance(value, str):
        try:
            data = value.encode("latin-1")
        except UnicodeEncodeError as exc:
            raise PayloadDecodeError(path, "byte string contains characters above 0xFF") from exc
    elif isinstance(value, Sequence):
        for index, item in enumerate(value):
            if isinstance(item, bool) or not isinstance(item, Integral) or not 0 <= int(item) <= 255:
                raise PayloadDecodeError(join_path(path, index), "expected an unsigned 8-bit integer")
        data = bytes(int(item) for item in value)
    else:
        raise PayloadDecodeError(path, "expected a byte array")
    _check_length(len(data), path, sizes, PayloadDecodeError)
    return data


def _check_length(
    length: int,
    path: str,
    sizes: frozenset[int] | int,
    error: type[PayloadError],
) -> None:
    allowed = {sizes} if isinstance(sizes, int) else set(sizes)
    if length not in allowed:
        expected = " or ".join(str(size) for size in sorted(allowed))
        raise error(path, f"image buffer must be {expected} bytes, got {length}")


__all__ = [
    "FIELD_NAMES",
    "PayloadDecodeError",
    "PayloadEncodeError",
    "PayloadError",
    "as_mapping",
    "as_sequence",
    "coerce_bytes",
    "decode_image",
    "encode_image",
    "flatten_into",
    "join_path",
    "read_bool",
    "read_int",
    "read_optional_str",
    "read_str",
    "require",
    "strip_none",
    "wire_name",
]
