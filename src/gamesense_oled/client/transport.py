"""JSON-over-HTTP transport for the local GameSense engine."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Mapping, Optional, Protocol

from aiohttp import ClientError, ClientSession, ClientTimeout

from .config import DEFAULT_HTTP_TIMEOUT_S
from .errors import TransportError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """What the session needs from a transport: POST a JSON body to an endpoint."""

    async def post(self, endpoint: str, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        ...

    async def close(self) -> None:
        ...


class HttpTransport:
    """POST JSON bodies to ``http://<address>/<endpoint>`` with aiohttp."""

    def __init__(
        self,
        address: str,
        *,
        timeout_s: float = DEFAULT_HTTP_TIMEOUT_S,
        session: Optional[ClientSession] = None,
    ) -> None:
        self._base_url = f"http://{address.strip().rstrip('/')}"
        self._timeout = ClientTimeout(total=timeout_s)
        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        return self._base_url

    def url(self, endpoint: str) -> str:
        return f"{self._base_url}/{endpoint}"

    async def post(self, endpoint: str, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        session = self._ensure_session()
        url = self.url(endpoint)
        logger.debug("POST %s body=%s", url, json.dumps(payload, separators=(",", ":")))
        try:
            async with session.post(url, json=payload) as response:
                status = response.status
                text = await response.text()
        except asyncio.TimeoutError as exc:
            raise TransportError(endpoint, "request timed out") from exc
        except ClientError as exc:
            raise TransportError(endpoint, str(exc) or exc.__class__.__name__) from exc

        body = self._decode_body(text)
        logger.debug("POST %s -> %s %s", url, status, body)
        error = body.get("error")
        if status >= 400 or error:
            message = str(error) if error else (text.strip() or "request rejected")
            raise TransportError(endpoint, message, status)
        return body

    async def close(self) -> None:
        session = self._session
        if session is not None and self._owns_session and not session.closed:
            await session.close()
        if self._owns_session:
            self._session = None

    def _ensure_session(self) -> ClientSession:
        # Created lazily so the session binds to the loop that issues requests.
        if self._session is None or self._session.closed:
            if not self._owns_session:
                raise TransportError("", "injected HTTP session is closed")
            self._session = ClientSession(timeout=self._timeout)
        return self._session

    @staticmethod
    def _decode_body(text: str) -> Dict[str, Any]:
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Engine replied with non-JSON body: %r", text[:200])
            return {}
        return dict(data) if isinstance(data, Mapping) else {}


__all__ = ["HttpTransport", "Transport"]
