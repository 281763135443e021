"""
Authenticated WDPRO API client.

Every call is gated by the CredentialCache and carries the headers the
official Android app sends. Non-2xx responses and non-JSON bodies are
raised as TransportError; callers wrap them in their own error kind.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.config import WDPRO_APP_ID
from app.errors import TransportError
from app.services.credentials import CredentialCache
from app.services.transport import Transport

logger = logging.getLogger(__name__)

CONVERSATION_ID = "WDPRO-MOBILE.MDX.CLIENT-PROD"
API_ACCEPT = "application/json;apiversion=1"


class WDProClient:
    def __init__(
        self,
        transport: Transport,
        credentials: CredentialCache,
        app_id: str = WDPRO_APP_ID,
    ):
        self._transport = transport
        self._credentials = credentials
        self._app_id = app_id

    @property
    def credentials(self) -> CredentialCache:
        return self._credentials

    async def fetch_json(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        now: Optional[datetime] = None,
    ) -> Any:
        now = now or datetime.now(timezone.utc)
        token = await self._credentials.get_token(now)

        request_headers = {
            "Authorization":     f"BEARER {token}",
            "Accept":            API_ACCEPT,
            "X-Conversation-Id": CONVERSATION_ID,
            "X-App-Id":          self._app_id,
            "X-Correlation-ID":  str(int(now.timestamp() * 1000)),
        }
        # caller headers win over the defaults
        if headers:
            request_headers.update(headers)

        # GET carries data as query string, anything else as a JSON body
        if method.upper() == "GET":
            resp = await self._transport.request(method, url, headers=request_headers, params=params)
        else:
            request_headers.setdefault("Content-Type", "application/json")
            resp = await self._transport.request(
                method, url, headers=request_headers,
                content=json.dumps(params) if params is not None else None,
            )

        # load balancer instance id, kept even when the call failed
        correlation_id = resp.headers.get("x-correlation-id")
        if correlation_id:
            self._credentials.record_correlation_id(correlation_id)

        if not resp.ok:
            raise TransportError(f"Unexpected status code {resp.status_code} from {url}", resp.text[:200])

        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON data returned by {url}", e) from e
