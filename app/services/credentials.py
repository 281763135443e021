"""
Access token cache
==================
One bearer token per process (one operator account). The token is reused
until shortly before the expiry the token endpoint reports, then replaced
wholesale by a fresh one.
"""

import asyncio
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional, Tuple

from app.config import WDPRO_TOKEN_URL, WDPRO_CLIENT_ID
from app.errors import CredentialError, TransportError
from app.models.schemas import Credential
from app.services.transport import Transport

logger = logging.getLogger(__name__)

EXPIRY_MARGIN_SECONDS = 30     # refresh this long before the reported expiry
MIN_EXPIRES_IN_SECONDS = 5


class CredentialCache:
    def __init__(
        self,
        transport: Transport,
        token_url: str = WDPRO_TOKEN_URL,
        client_id: str = WDPRO_CLIENT_ID,
    ):
        self._transport = transport
        self._token_url = token_url
        self._body = f"grant_type=assertion&assertion_type=public&client_id={client_id}"
        self._credential: Optional[Credential] = None
        self._lock = asyncio.Lock()

    @property
    def credential(self) -> Optional[Credential]:
        return self._credential

    async def get_token(self, now: Optional[datetime] = None) -> str:
        """
        Return a valid access token, fetching a new one if the cached token
        is missing or expired. Concurrent callers share one refresh.
        """
        now = now or datetime.now(timezone.utc)

        cached = self._credential
        if cached is not None and cached.is_valid(now):
            return cached.token

        async with self._lock:
            # another caller may have refreshed while we waited
            cached = self._credential
            if cached is not None and cached.is_valid(now):
                return cached.token
            if cached is not None:
                logger.debug("[Disney] Access token has expired, fetching new one")

            token, expires_in = await self._fetch_token()
            expires_at = now + timedelta(
                seconds=max(expires_in - EXPIRY_MARGIN_SECONDS, MIN_EXPIRES_IN_SECONDS)
            )
            self._credential = Credential(token=token, expires_at=expires_at)
            logger.info(f"[Disney] Fetched access token, expires in {expires_in}s (at {expires_at.isoformat()})")
            return token

    def record_correlation_id(self, correlation_id: str):
        """Attach the load balancer's correlation id to the current token (diagnostics only)."""
        cached = self._credential
        if cached is None or not correlation_id:
            return
        self._credential = cached.model_copy(update={"correlation_id": correlation_id})

    async def _fetch_token(self) -> Tuple[str, int]:
        try:
            resp = await self._transport.request(
                "POST",
                self._token_url,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                content=self._body,
            )
        except TransportError as e:
            raise CredentialError("Failed to get access token", e) from e

        if resp.status_code != 200:
            raise CredentialError(
                "Unexpected status code for access token response, expected 200",
                f"got {resp.status_code}",
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise CredentialError("Invalid JSON returned for access token", e) from e

        if not isinstance(data, dict) or not data.get("access_token") or "expires_in" not in data:
            raise CredentialError("Invalid body response for access token", data)

        try:
            expires_in = int(data["expires_in"])
        except (TypeError, ValueError) as e:
            raise CredentialError("Invalid expires_in in access token response", e) from e

        if expires_in < MIN_EXPIRES_IN_SECONDS:
            raise CredentialError(f"Access token expiry time is implausibly low: {expires_in}s")

        return data["access_token"], expires_in
