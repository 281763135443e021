"""
Wait-time assembly
==================
Joins the live wait-times payload with the cached schedule.

Live entry fields used:
  id        : "80010190;entityType=Attraction"
  name      : display name
  type      : only "Attraction" entries are reported
  waitTime  : { postedWaitMinutes, status, fastPass: { available } }
"""

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from app.config import VenueConfig
from app.models.schemas import AttractionRecord, AttractionStatus, ScheduleType, VenueSchedule
from app.services.schedule import clean_id, full_day_window
from app.services.window_selector import select_active

logger = logging.getLogger(__name__)

ATTRACTION_TYPE = "Attraction"

# anything else from the API is reported as Closed
KNOWN_STATUSES = {s.value: s for s in AttractionStatus}


def _map_status(raw: Optional[str]) -> AttractionStatus:
    if raw not in KNOWN_STATUSES:
        if raw:
            logger.debug(f"[Disney] Unknown ride status '{raw}', reporting closed")
        return AttractionStatus.closed
    return KNOWN_STATUSES[raw]


def _as_dict(value: Any) -> dict:
    """Nested live objects that are absent or not objects count as missing."""
    return value if isinstance(value, dict) else {}


def _wait_minutes(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (ValueError, TypeError):
        return 0


def assemble(
    entries: Iterable[dict],
    schedule: Optional[VenueSchedule],
    config: VenueConfig,
    now: datetime,
) -> List[AttractionRecord]:
    today = now.astimezone(config.tz).date()
    by_attraction = schedule.by_attraction if schedule is not None else {}

    records: List[AttractionRecord] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if not entry.get("id") or not entry.get("name") or entry.get("type") != ATTRACTION_TYPE:
            continue

        ride_id = clean_id(entry["id"])
        live = _as_dict(entry.get("waitTime"))
        raw_status = live.get("status")
        active = raw_status == AttractionStatus.operating.value

        windows = by_attraction.get(ride_id)
        if windows is not None:
            window = select_active(windows, now, today)
        else:
            # no published hours: open all day exactly when it is running
            window = full_day_window(
                today, config,
                ScheduleType.operating if active else ScheduleType.closed,
                with_date=False,
            )

        records.append(AttractionRecord(
            id=ride_id,
            name=entry["name"],
            wait_time=_wait_minutes(live.get("postedWaitMinutes")),
            active=active,
            status=_map_status(raw_status),
            fast_pass_available=bool(_as_dict(live.get("fastPass")).get("available")),
            schedule=window,
        ))

    return records
