from pydantic import BaseModel, ConfigDict, Field, SerializationInfo, field_serializer
from typing import Optional, List, Dict
from datetime import datetime, date as CalendarDate
from enum import Enum


def _render_time(value: datetime, info: SerializationInfo) -> str:
    fmt = (info.context or {}).get("time_format")
    return value.strftime(fmt) if fmt else value.isoformat()


def _render_date(value: CalendarDate, info: SerializationInfo) -> str:
    fmt = (info.context or {}).get("date_format")
    return value.strftime(fmt) if fmt else value.isoformat()


# ──────────────────────────────────────────────
# Access token
# ──────────────────────────────────────────────

class Credential(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: datetime
    correlation_id: Optional[str] = None    # diagnostics only, never affects validity

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


# ──────────────────────────────────────────────
# Schedules
# ──────────────────────────────────────────────

class ScheduleType(str, Enum):
    operating = "Operating"
    closed = "Closed"                   # also Refurbishment and any other non-Operating type


class SpecialWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str                           # e.g. "Extra Magic Hours"
    opening_time: datetime
    closing_time: datetime

    @field_serializer("opening_time", "closing_time", when_used="json")
    def _serialize_time(self, value: datetime, info: SerializationInfo) -> str:
        return _render_time(value, info)


class DayWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: Optional[CalendarDate] = None   # stripped once attached to a live record
    opening_time: datetime
    closing_time: datetime
    type: ScheduleType
    special: List[SpecialWindow] = []

    def contains(self, moment: datetime) -> bool:
        return self.opening_time <= moment < self.closing_time

    @field_serializer("opening_time", "closing_time", when_used="json")
    def _serialize_time(self, value: datetime, info: SerializationInfo) -> str:
        return _render_time(value, info)

    @field_serializer("date", when_used="json-unless-none")
    def _serialize_date(self, value: CalendarDate, info: SerializationInfo) -> str:
        return _render_date(value, info)


class VenueSchedule(BaseModel):
    model_config = ConfigDict(frozen=True)

    venue_id: str
    expires_at: datetime
    by_attraction: Dict[str, List[DayWindow]] = {}

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at


# ──────────────────────────────────────────────
# Attractions — Live
# ──────────────────────────────────────────────

class AttractionStatus(str, Enum):
    operating = "Operating"
    closed = "Closed"                   # anything unrecognised is reported as closed
    down = "Down"


class AttractionRecord(BaseModel):
    id: str
    name: str
    wait_time: int = Field(default=0, ge=0)     # minutes
    active: bool
    status: AttractionStatus
    fast_pass_available: bool = False
    schedule: Optional[DayWindow] = None
