"""
Settings
========
Upstream endpoints and cache lifetimes, read from the environment once at
import time. Per-park identifiers live in VenueConfig (see app/parks/).
"""

import os
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field

WDPRO_API_BASE      = os.getenv("WDPRO_API_BASE", "https://api.wdpro.disney.go.com/facility-service/")
WDPRO_SCHEDULE_BASE = os.getenv(
    "WDPRO_SCHEDULE_BASE",
    "https://api.wdpro.disney.go.com/mobile-service/public/ancestor-activities-schedules/",
)
WDPRO_TOKEN_URL     = os.getenv("WDPRO_TOKEN_URL", "https://authorization.go.com/token")
WDPRO_CLIENT_ID     = os.getenv("WDPRO_CLIENT_ID", "WDPRO-MOBILE.MDX.WDW.ANDROID-PROD")
WDPRO_APP_ID        = os.getenv("WDPRO_APP_ID", "WDW-MDX-ANDROID-3.4.1")

SCHEDULE_MAX_DAYS        = int(os.getenv("SCHEDULE_MAX_DAYS", "30"))
SCHEDULE_CACHE_HOURS     = int(os.getenv("SCHEDULE_CACHE_HOURS", "12"))
SCHEDULE_REFRESH_MINUTES = int(os.getenv("SCHEDULE_REFRESH_MINUTES", "60"))
HTTP_TIMEOUT_SECONDS     = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))


class VenueConfig(BaseModel):
    """
    Identifiers and formatting rules for one park.

    venue_id           : resort/destination id, the schedule cache key ("dlp")
    attraction_api_id  : the park's own facility id ("P1")
    region             : region query parameter required by the live API
    """
    park_key: str
    name: str
    venue_id: str
    attraction_api_id: Optional[str] = None
    region: Optional[str] = None
    timezone: str
    display_timezone: Optional[str] = None
    time_format: str = "%Y-%m-%dT%H:%M:%S%z"
    date_format: str = "%Y-%m-%d"
    max_days_ahead: int = Field(default=SCHEDULE_MAX_DAYS, ge=0)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def display_tz(self) -> ZoneInfo:
        return ZoneInfo(self.display_timezone or self.timezone)

    def render_context(self) -> dict:
        """Serialisation context for DayWindow / AttractionRecord dumps."""
        return {"time_format": self.time_format, "date_format": self.date_format}
