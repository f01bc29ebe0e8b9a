"""Wire protocol for the GameSense engine: payload model, codec and requests."""

from __future__ import annotations

from .icons import *  # noqa: F401,F403
from .wire import PayloadDecodeError, PayloadEncodeError, PayloadError
from .payloads import *  # noqa: F401,F403
from .messages import *  # noqa: F401,F403
from .parser import PayloadParser

__all__ = [name for name in globals().keys() if not name.startswith("_")]
