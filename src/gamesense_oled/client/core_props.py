"""Discover the engine address from SteelSeries Engine's ``coreProps.json``."""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .config import ClientConfig
from .errors import CorePropsError

logger = logging.getLogger(__name__)

_WINDOWS_SUFFIX = Path("SteelSeries") / "SteelSeries Engine 3" / "coreProps.json"
_MACOS_PATH = Path("/Library/Application Support/SteelSeries Engine 3/coreProps.json")


@dataclass(frozen=True)
class CoreProps:
    address: str
    encrypted_address: Optional[str] = None


def default_core_props_path(
    platform_name: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Path:
    platform_name = platform_name or sys.platform
    env = os.environ if env is None else env
    if platform_name.startswith("win"):
        program_data = env.get("PROGRAMDATA")
        if not program_data:
            raise CorePropsError("PROGRAMDATA is not set; cannot locate coreProps.json")
        return Path(program_data) / _WINDOWS_SUFFIX
    if platform_name == "darwin":
        return _MACOS_PATH
    raise CorePropsError(f"SteelSeries Engine is not available on platform {platform_name!r}")


def read_core_props(path: Path) -> CoreProps:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise CorePropsError(f"coreProps.json not found at {path}; is SteelSeries Engine running?") from exc
    except OSError as exc:
        raise CorePropsError(f"cannot read {path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorePropsError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise CorePropsError(f"{path} must contain a JSON object")
    address = data.get("address")
    if not isinstance(address, str) or not address:
        raise CorePropsError(f"{path} has no 'address' entry")
    encrypted = data.get("encryptedAddress")
    logger.debug("Core props read from %s: address=%s", path, address)
    return CoreProps(address=address, encrypted_address=encrypted if isinstance(encrypted, str) else None)


def resolve_address(explicit: Optional[str] = None, config: Optional[ClientConfig] = None) -> str:
    """Return the engine ``host:port``.

    Precedence: *explicit* argument, then ``GAMESENSE_ADDRESS``, then the
    coreProps.json file (``GAMESENSE_CORE_PROPS`` or the platform default).
    """

    if explicit:
        return explicit
    if config is not None and config.address:
        return config.address
    path = config.core_props_path if config is not None and config.core_props_path else default_core_props_path()
    return read_core_props(path).address


__all__ = ["CoreProps", "default_core_props_path", "read_core_props", "resolve_address"]
