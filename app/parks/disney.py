"""
Disney Park Connector
=====================
Live data source: {WDPRO_API_BASE}theme-parks/{park_id};destination={resort_id}/wait-times
Schedule source:  {WDPRO_SCHEDULE_BASE}{resort_id};entityType=destination

One connector per park. Parks of the same resort share a ScheduleStore
(one schedule request covers the whole resort) and every park shares the
CredentialCache behind the WDProClient.

A wait-times query runs:
  config check → schedule freshness → live fetch → assembly
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from app.config import VenueConfig, WDPRO_API_BASE
from app.errors import ConfigurationError, LiveDataFetchError, TransportError
from app.models.schemas import AttractionRecord, DayWindow, VenueSchedule
from app.parks.base import BaseParkConnector
from app.services.schedule import ScheduleStore, clean_id, closed_sequence
from app.services.wait_times import assemble
from app.services.wdpro import WDProClient

logger = logging.getLogger(__name__)


class DisneyParkConnector(BaseParkConnector):
    supports_ride_schedules = True

    def __init__(
        self,
        config: VenueConfig,
        client: WDProClient,
        schedules: ScheduleStore,
        api_base: str = WDPRO_API_BASE,
    ):
        self.config = config
        self.park_id = config.park_key
        self.park_name = config.name
        self._client = client
        self._schedules = schedules
        self._api_base = api_base

    def wait_times_url(self) -> str:
        return (
            f"{self._api_base}theme-parks/{self.config.attraction_api_id}"
            f";destination={self.config.venue_id}/wait-times"
        )

    def _require_park_id(self):
        if not self.config.attraction_api_id:
            raise ConfigurationError("Park not configured correctly", "Park ID not configured")

    # ──────────────────────────────────────────
    # Attractions
    # ──────────────────────────────────────────

    async def fetch_wait_times(self, now: Optional[datetime] = None) -> List[AttractionRecord]:
        now = now or datetime.now(timezone.utc)
        self._require_park_id()
        if not self.config.region:
            raise ConfigurationError("Park not configured correctly", "Park region not configured")

        # opening/closing times come from the schedule cache
        schedule = await self._schedules.ensure_fresh(self.config, now)

        try:
            data = await self._client.fetch_json(
                self.wait_times_url(), params={"region": self.config.region}, now=now,
            )
        except TransportError as e:
            raise LiveDataFetchError("Error fetching wait times", e) from e

        if not data:
            raise LiveDataFetchError("No data returned for wait times")
        if not isinstance(data, dict) or not isinstance(data.get("entries"), list):
            raise LiveDataFetchError("Invalid data returned from API (no entries)", str(data)[:200])

        records = assemble(data["entries"], schedule, self.config, now)
        logger.info(f"[{self.park_id}] {len(records)} attractions fetched.")
        return records

    # ──────────────────────────────────────────
    # Schedules
    # ──────────────────────────────────────────

    async def fetch_opening_times(self, now: Optional[datetime] = None) -> List[DayWindow]:
        """Opening hours of the park itself for the whole schedule range."""
        self._require_park_id()
        return await self._lookup(self.config.attraction_api_id, now)

    async def fetch_ride_schedule(self, ride_id: str, now: Optional[datetime] = None) -> List[DayWindow]:
        return await self._lookup(ride_id, now)

    async def warm_schedule(self, now: Optional[datetime] = None) -> VenueSchedule:
        return await self._schedules.ensure_fresh(self.config, now)

    async def _lookup(self, entity_id: str, now: Optional[datetime]) -> List[DayWindow]:
        now = now or datetime.now(timezone.utc)
        schedule = await self._schedules.ensure_fresh(self.config, now)

        windows = schedule.by_attraction.get(clean_id(entity_id))
        if windows:
            return list(windows)

        # no published hours: assume shut for the whole range
        logger.debug(f"[{self.park_id}] No schedule data for '{entity_id}', assuming not open yet.")
        return closed_sequence(now, self.config)
