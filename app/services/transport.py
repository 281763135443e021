"""
HTTP transport
==============
The connector never talks to httpx directly: it goes through a Transport,
so tests can hand in canned responses and the production client can be
shared (and closed) by the application lifespan.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

import httpx

from app.config import HTTP_TIMEOUT_SECONDS
from app.errors import TransportError

logger = logging.getLogger(__name__)

# Headers matching the official Disney Android app
DEFAULT_HEADERS = {
    "User-Agent":      "okhttp/3.12.1",
    "Accept-Encoding": "gzip",
    "Accept-Language": "en",
}


@dataclass
class TransportResponse:
    status_code: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)   # lower-cased names

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return json.loads(self.text)


class Transport(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        content: Optional[str] = None,
    ) -> TransportResponse: ...


class HttpxTransport:
    """Transport backed by one long-lived httpx.AsyncClient."""

    def __init__(self, timeout: float = HTTP_TIMEOUT_SECONDS):
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, headers=DEFAULT_HEADERS)
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        content: Optional[str] = None,
    ) -> TransportResponse:
        try:
            resp = await self._get_client().request(
                method, url, headers=headers, params=params, content=content,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed", e) from e

        logger.debug(f"[transport] {method} {url} → {resp.status_code}")
        return TransportResponse(
            status_code=resp.status_code,
            text=resp.text,
            headers={k.lower(): v for k, v in resp.headers.items()},
        )

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
