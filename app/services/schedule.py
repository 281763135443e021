"""
Schedule Store
==============
Per-venue cache of the multi-day operating calendar for every attraction
(and the parks themselves) in a resort.

Upstream payload (ancestor-activities-schedules):
  { activities: [ { id, schedule: { schedules: [
        { date: "YYYY-MM-DD", startTime: "HH:MM[:SS]", endTime: "HH:MM[:SS]", type } ] } } ] }

  type — "Operating" | "Closed" | "Refurbishment"   → standard day window
         anything else (e.g. "Extra Magic Hours")   → special window on that day

A cached VenueSchedule is never edited: a refresh builds a new one and
swaps it in, so a caller holding the old one keeps a consistent view.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, date, time, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.config import VenueConfig, WDPRO_SCHEDULE_BASE, SCHEDULE_CACHE_HOURS
from app.errors import ScheduleFetchError, ScheduleParseError, TransportError
from app.models.schemas import DayWindow, SpecialWindow, ScheduleType, VenueSchedule
from app.services.wdpro import WDProClient

logger = logging.getLogger(__name__)

# non-special operating types; everything else is attached under "special"
STANDARD_TYPES = ("Operating", "Closed", "Refurbishment")

_ID_PREFIX = re.compile(r"^([^;]+)")


def clean_id(raw_id: str) -> str:
    """Strip the ';entityType=...' style suffix the API appends to ids."""
    match = _ID_PREFIX.match(str(raw_id))
    return match.group(1) if match else str(raw_id)


# ──────────────────────────────────────────────
# Date / time helpers
# ──────────────────────────────────────────────

def schedule_range(now: datetime, config: VenueConfig) -> Tuple[datetime, datetime]:
    """Start of today to end of today + max_days_ahead, in the park's timezone."""
    tz = config.tz
    start = datetime.combine(now.astimezone(tz).date(), time.min, tzinfo=tz)
    last_day = (now + timedelta(days=config.max_days_ahead)).astimezone(tz).date()
    end = datetime.combine(last_day, time.max, tzinfo=tz)
    return start, end


def _parse_clock(value: str) -> timedelta:
    """
    "HH:MM" or "HH:MM:SS" → offset from midnight.
    Hours past 23 are allowed ("26:00" is 02:00 the next day).
    """
    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"unrecognised time {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = float(parts[2]) if len(parts) == 3 else 0.0
    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def _entry_times(entry: dict, day: date, config: VenueConfig) -> Tuple[datetime, datetime]:
    midnight = datetime.combine(day, time.min, tzinfo=config.tz)
    opening = midnight + _parse_clock(entry["startTime"])
    closing = midnight + _parse_clock(entry["endTime"])

    # closing before opening means the window runs past midnight
    if closing < opening:
        closing += timedelta(days=1)

    display = config.display_tz
    return opening.astimezone(display), closing.astimezone(display)


def full_day_window(
    day: date,
    config: VenueConfig,
    window_type: ScheduleType = ScheduleType.closed,
    with_date: bool = True,
) -> DayWindow:
    tz, display = config.tz, config.display_tz
    return DayWindow(
        date=day if with_date else None,
        opening_time=datetime.combine(day, time.min, tzinfo=tz).astimezone(display),
        closing_time=datetime.combine(day, time.max, tzinfo=tz).astimezone(display),
        type=window_type,
    )


def closed_sequence(now: datetime, config: VenueConfig) -> List[DayWindow]:
    """One Closed full-day window per day in the schedule range."""
    start, end = schedule_range(now, config)
    days = (end.date() - start.date()).days
    return [full_day_window(start.date() + timedelta(days=i), config) for i in range(days + 1)]


# ──────────────────────────────────────────────
# Parser
# ──────────────────────────────────────────────

def parse_schedule(
    payload: Any,
    config: VenueConfig,
    start: datetime,
    end: datetime,
) -> Dict[str, List[DayWindow]]:
    """
    Turn a raw schedule payload into date-ordered day windows per cleaned id.

    Every date in [start, end] gets exactly one window; days the API did
    not return are filled in as Closed. Special entries are attached to
    the standard window of the same day and dropped if there is none.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("activities"), list):
        raise ScheduleParseError("No schedule data returned", str(payload)[:200])

    first_day, last_day = start.date(), end.date()
    schedule: Dict[str, List[DayWindow]] = {}

    for activity in payload["activities"]:
        if not isinstance(activity, dict) or not activity.get("id"):
            continue
        activity_id = clean_id(activity["id"])

        # no schedule block at all: nothing published, leave it out.
        # an empty schedules list still gets a Closed day for every date.
        block = activity.get("schedule")
        if not block:
            continue
        if not isinstance(block, dict):
            raise ScheduleParseError(f"Invalid schedule block for {activity_id}", str(block)[:200])
        entries = block.get("schedules")
        if entries is None:
            continue
        if not isinstance(entries, list):
            raise ScheduleParseError(f"Invalid schedule list for {activity_id}", str(entries)[:200])

        standard: List[Tuple[date, dict]] = []
        special: List[Tuple[date, dict]] = []
        try:
            for entry in entries:
                day = date.fromisoformat(entry["date"])
                if day < first_day or day > last_day:
                    continue
                if entry.get("type") in STANDARD_TYPES:
                    standard.append((day, entry))
                else:
                    special.append((day, entry))

            days: Dict[date, dict] = {}
            for day, entry in standard:
                opening, closing = _entry_times(entry, day, config)
                days[day] = {
                    "date": day,
                    "opening_time": opening,
                    "closing_time": closing,
                    # Refurbishment and friends are reported as Closed
                    "type": ScheduleType.operating if entry["type"] == "Operating" else ScheduleType.closed,
                    "special": [],
                }

            for day, entry in special:
                if day not in days:
                    continue
                opening, closing = _entry_times(entry, day, config)
                days[day]["special"].append(SpecialWindow(
                    type=str(entry.get("type")),
                    opening_time=opening,
                    closing_time=closing,
                ))
        except (KeyError, TypeError, ValueError) as e:
            raise ScheduleParseError(f"Invalid schedule entry for {activity_id}", e) from e

        windows: List[DayWindow] = []
        for offset in range((last_day - first_day).days + 1):
            day = first_day + timedelta(days=offset)
            if day in days:
                windows.append(DayWindow(**days[day]))
            else:
                windows.append(full_day_window(day, config))

        schedule[activity_id] = windows

    return schedule


# ──────────────────────────────────────────────
# Request strategy
# ──────────────────────────────────────────────

@dataclass
class ScheduleRequest:
    url: str
    params: Dict[str, Any]


ScheduleRequestBuilder = Callable[[VenueConfig, datetime, datetime], ScheduleRequest]


def default_schedule_request(config: VenueConfig, start: datetime, end: datetime) -> ScheduleRequest:
    """Schedules for every theme park and attraction in the resort."""
    params = {
        "filters":   "theme-park,Attraction",
        "startDate": start.strftime("%Y-%m-%d"),
        "endDate":   end.strftime("%Y-%m-%d"),
    }
    if config.region:
        params["region"] = config.region
    return ScheduleRequest(
        url=f"{WDPRO_SCHEDULE_BASE}{config.venue_id};entityType=destination",
        params=params,
    )


# ──────────────────────────────────────────────
# Store
# ──────────────────────────────────────────────

class ScheduleStore:
    def __init__(
        self,
        client: WDProClient,
        request_builder: ScheduleRequestBuilder = default_schedule_request,
        cache_hours: int = SCHEDULE_CACHE_HOURS,
    ):
        self._client = client
        self._request_builder = request_builder
        self._cache_lifetime = timedelta(hours=cache_hours)
        self._entries: Dict[str, VenueSchedule] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, venue_id: str) -> Optional[VenueSchedule]:
        return self._entries.get(venue_id)

    async def ensure_fresh(self, config: VenueConfig, now: Optional[datetime] = None) -> VenueSchedule:
        """
        Return the cached schedule for the venue, refreshing it first if it
        has expired. A failed refresh raises and leaves the old entry in place.
        """
        now = now or datetime.now(timezone.utc)
        venue_id = config.venue_id

        cached = self._entries.get(venue_id)
        if cached is not None and cached.is_fresh(now):
            return cached

        lock = self._locks.setdefault(venue_id, asyncio.Lock())
        async with lock:
            cached = self._entries.get(venue_id)
            if cached is not None and cached.is_fresh(now):
                return cached
            return await self._refresh(config, now)

    async def _refresh(self, config: VenueConfig, now: datetime) -> VenueSchedule:
        start, end = schedule_range(now, config)
        request = self._request_builder(config, start, end)

        try:
            payload = await self._client.fetch_json(request.url, params=request.params, now=now)
        except TransportError as e:
            raise ScheduleFetchError("Error fetching park schedule", e) from e
        if not payload:
            raise ScheduleFetchError("No schedule data returned")

        schedule = VenueSchedule(
            venue_id=config.venue_id,
            expires_at=now + self._cache_lifetime,
            by_attraction=parse_schedule(payload, config, start, end),
        )
        self._entries[config.venue_id] = schedule
        logger.info(
            f"[Disney] Schedule for '{config.venue_id}' cached: "
            f"{len(schedule.by_attraction)} entities, {start.date()} → {end.date()}."
        )
        return schedule
