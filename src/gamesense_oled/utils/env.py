from __future__ import annotations

import os
from typing import Mapping, Optional


def _source(env: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if env is None else env


def env_str(name: str, default: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    raw = _source(env).get(name)
    if raw is None:
        return default
    raw = raw.strip()
    return raw if raw else default


def env_bool(name: str, default: bool = False, env: Optional[Mapping[str, str]] = None) -> bool:
    raw = _source(env).get(name)
    if raw is None:
        return default
    s = raw.strip().lower()
    if s in ("1", "true", "yes", "on", "dbg", "debug"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    return default


def env_int(name: str, default: int, env: Optional[Mapping[str, str]] = None) -> int:
    raw = _source(env).get(name)
    if not raw:
        return default
    try:
        return int(raw, 10)
    except ValueError:
        return default


def env_float(name: str, default: float, env: Optional[Mapping[str, str]] = None) -> float:
    raw = _source(env).get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default
