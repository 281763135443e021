from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from app.errors import ScheduleFetchError, ScheduleParseError
from app.models.schemas import ScheduleType
from app.services.schedule import (
    ScheduleRequest,
    ScheduleStore,
    clean_id,
    closed_sequence,
    parse_schedule,
    schedule_range,
)
from fakes import entry, schedule_payload

PARIS = ZoneInfo("Europe/Paris")
SCHEDULES = "ancestor-activities-schedules"


def paris(y, m, d, hh=0, mm=0) -> datetime:
    return datetime(y, m, d, hh, mm, tzinfo=PARIS)


def _parse(payload, venue, now):
    start, end = schedule_range(now, venue)
    return parse_schedule(payload, venue, start, end)


# =============================================================================
# Parser
# =============================================================================

def test_clean_id_strips_suffix() -> None:
    assert clean_id("80010190;entityType=Attraction") == "80010190"
    assert clean_id("P1") == "P1"


def test_range_covers_today_to_max_days(venue, now) -> None:
    start, end = schedule_range(now, venue)
    assert start == paris(2024, 6, 15)
    assert end.date() == date(2024, 6, 18)
    assert end.hour == 23 and end.minute == 59


def test_every_day_covered_once(venue, now) -> None:
    payload = schedule_payload(("ride-1", [entry("2024-06-16", "09:00", "18:00")]))
    windows = _parse(payload, venue, now)["ride-1"]

    assert [w.date for w in windows] == [date(2024, 6, d) for d in (15, 16, 17, 18)]
    assert [w.type for w in windows] == [
        ScheduleType.closed, ScheduleType.operating, ScheduleType.closed, ScheduleType.closed,
    ]


def test_missing_day_is_full_day_closed(venue, now) -> None:
    windows = _parse(schedule_payload(("ride-1", [entry("2024-06-16", "09:00", "18:00")])), venue, now)["ride-1"]
    closed = windows[0]
    assert closed.opening_time == paris(2024, 6, 15)
    assert closed.closing_time.date() == date(2024, 6, 15)
    assert closed.closing_time > paris(2024, 6, 15, 23, 59)
    assert closed.special == []


def test_operating_window_times(venue, now) -> None:
    windows = _parse(schedule_payload(("ride-1", [entry("2024-06-15", "09:30:00", "23:00:00")])), venue, now)
    today = windows["ride-1"][0]
    assert today.opening_time == paris(2024, 6, 15, 9, 30)
    assert today.closing_time == paris(2024, 6, 15, 23, 0)


def test_overnight_window_closes_next_day(venue, now) -> None:
    windows = _parse(schedule_payload(("ride-1", [entry("2024-06-15", "22:00", "02:00")])), venue, now)
    window = windows["ride-1"][0]
    assert window.opening_time == paris(2024, 6, 15, 22)
    assert window.closing_time == paris(2024, 6, 16, 2)
    assert window.closing_time > window.opening_time


def test_hours_past_midnight_notation(venue, now) -> None:
    windows = _parse(schedule_payload(("ride-1", [entry("2024-06-15", "20:00", "26:00")])), venue, now)
    assert windows["ride-1"][0].closing_time == paris(2024, 6, 16, 2)


def test_refurbishment_reported_closed(venue, now) -> None:
    windows = _parse(schedule_payload(("ride-1", [entry("2024-06-15", "09:00", "18:00", "Refurbishment")])), venue, now)
    window = windows["ride-1"][0]
    assert window.type == ScheduleType.closed
    assert window.opening_time == paris(2024, 6, 15, 9)


def test_special_hours_attached_to_their_day(venue, now) -> None:
    payload = schedule_payload(("P1", [
        entry("2024-06-15", "08:00", "09:30", "Extra Magic Hours"),
        entry("2024-06-15", "09:30", "22:00"),
    ]))
    today = _parse(payload, venue, now)["P1"][0]
    assert today.type == ScheduleType.operating
    assert len(today.special) == 1
    assert today.special[0].type == "Extra Magic Hours"
    assert today.special[0].opening_time == paris(2024, 6, 15, 8)


def test_special_without_standard_day_is_dropped(venue, now) -> None:
    payload = schedule_payload(("P1", [
        entry("2024-06-15", "09:00", "22:00"),
        entry("2024-06-17", "20:00", "23:00", "Special Ticketed Event"),
    ]))
    windows = _parse(payload, venue, now)["P1"]
    assert windows[2].date == date(2024, 6, 17)
    assert windows[2].type == ScheduleType.closed
    assert windows[2].special == []


def test_entries_outside_range_discarded(venue, now) -> None:
    payload = schedule_payload(("ride-1", [
        entry("2024-06-14", "09:00", "18:00"),
        entry("2024-06-19", "09:00", "18:00"),
    ]))
    windows = _parse(payload, venue, now)["ride-1"]
    assert len(windows) == 4
    assert all(w.type == ScheduleType.closed for w in windows)


def test_ids_are_cleaned(venue, now) -> None:
    payload = schedule_payload(("80010190;entityType=Attraction", [entry("2024-06-15", "09:00", "18:00")]))
    assert list(_parse(payload, venue, now)) == ["80010190"]


def test_empty_schedule_list_is_closed_every_day(venue, now) -> None:
    windows = _parse(schedule_payload(("80010191;entityType=Attraction", [])), venue, now)["80010191"]
    assert [w.date for w in windows] == [date(2024, 6, d) for d in (15, 16, 17, 18)]
    assert {w.type for w in windows} == {ScheduleType.closed}


def test_activity_without_schedule_block_left_out(venue, now) -> None:
    payload = {"activities": [{"id": "r1"}, {"id": "r2", "schedule": {}}]}
    assert _parse(payload, venue, now) == {}


@pytest.mark.parametrize("activity", [
    {"id": "r1", "schedule": ["oops"]},
    {"id": "r1", "schedule": {"schedules": "oops"}},
    {"id": "r1", "schedule": {"schedules": ["oops"]}},
])
def test_malformed_schedule_shapes_are_parse_errors(venue, now, activity) -> None:
    with pytest.raises(ScheduleParseError, match="r1"):
        _parse({"activities": [activity]}, venue, now)


def test_display_timezone_conversion(venue, now) -> None:
    utc_venue = venue.model_copy(update={"display_timezone": "UTC"})
    windows = _parse(schedule_payload(("ride-1", [entry("2024-06-15", "09:00", "18:00")])), utc_venue, now)
    window = windows["ride-1"][0]
    assert window.opening_time.utcoffset() == timedelta(0)
    assert window.opening_time.hour == 7


def test_missing_activities_is_parse_error(venue, now) -> None:
    with pytest.raises(ScheduleParseError):
        _parse({"something": []}, venue, now)


def test_malformed_time_is_parse_error(venue, now) -> None:
    with pytest.raises(ScheduleParseError, match="ride-1"):
        _parse(schedule_payload(("ride-1", [entry("2024-06-15", "nine", "18:00")])), venue, now)


def test_closed_sequence(venue, now) -> None:
    windows = closed_sequence(now, venue)
    assert [w.date for w in windows] == [date(2024, 6, d) for d in (15, 16, 17, 18)]
    assert {w.type for w in windows} == {ScheduleType.closed}


# =============================================================================
# Store
# =============================================================================

def _good_payload() -> dict:
    return schedule_payload(
        ("P1", [entry("2024-06-15", "09:30", "22:00")]),
        ("80010190;entityType=Attraction", [entry("2024-06-15", "10:00", "21:00")]),
    )


def test_fresh_schedule_fetched_once(store, venue, transport, now) -> None:
    transport.add_json(SCHEDULES, _good_payload())
    first = asyncio.run(store.ensure_fresh(venue, now))
    second = asyncio.run(store.ensure_fresh(venue, now + timedelta(hours=11)))

    assert first is second
    assert transport.count(SCHEDULES) == 1
    assert first.expires_at == now + timedelta(hours=12)


def test_schedule_refetched_after_twelve_hours(store, venue, transport, now) -> None:
    transport.add_json(SCHEDULES, _good_payload())
    first = asyncio.run(store.ensure_fresh(venue, now))
    second = asyncio.run(store.ensure_fresh(venue, now + timedelta(hours=12)))

    assert second is not first
    assert transport.count(SCHEDULES) == 2


def test_schedule_request_parameters(store, venue, transport, now) -> None:
    transport.add_json(SCHEDULES, _good_payload())
    asyncio.run(store.ensure_fresh(venue, now))

    call = transport.last(SCHEDULES)
    assert call["url"].endswith("dlp;entityType=destination")
    assert call["params"] == {
        "filters": "theme-park,Attraction",
        "startDate": "2024-06-15",
        "endDate": "2024-06-18",
        "region": "fr",
    }


def test_custom_request_builder(client, venue, transport, now) -> None:
    def builder(config, start, end):
        return ScheduleRequest(url=f"https://custom.test/{SCHEDULES}/{config.venue_id}", params={"from": str(start.date())})

    store = ScheduleStore(client, request_builder=builder)
    transport.add_json(SCHEDULES, _good_payload())
    asyncio.run(store.ensure_fresh(venue, now))

    call = transport.last(SCHEDULES)
    assert call["url"] == f"https://custom.test/{SCHEDULES}/dlp"
    assert call["params"] == {"from": "2024-06-15"}


def test_failed_refresh_keeps_previous_schedule(store, venue, transport, now) -> None:
    transport.add_json(SCHEDULES, _good_payload())
    original = asyncio.run(store.ensure_fresh(venue, now))

    transport.add_json(SCHEDULES, {"unexpected": True})
    with pytest.raises(ScheduleParseError):
        asyncio.run(store.ensure_fresh(venue, now + timedelta(hours=13)))
    assert store.get("dlp") is original

    # and the next call retries
    transport.add_json(SCHEDULES, _good_payload())
    refreshed = asyncio.run(store.ensure_fresh(venue, now + timedelta(hours=13)))
    assert refreshed is not original
    assert transport.count(SCHEDULES) == 3


def test_upstream_failure_is_fetch_error(store, venue, transport, now) -> None:
    transport.add_json(SCHEDULES, {"error": "down"}, status=500)
    with pytest.raises(ScheduleFetchError) as excinfo:
        asyncio.run(store.ensure_fresh(venue, now))
    assert "500" in str(excinfo.value.cause)
    assert store.get("dlp") is None


def test_concurrent_refresh_is_shared(store, venue, transport, now) -> None:
    transport.add_json(SCHEDULES, _good_payload())

    async def both():
        return await asyncio.gather(store.ensure_fresh(venue, now), store.ensure_fresh(venue, now))

    first, second = asyncio.run(both())
    assert first is second
    assert transport.count(SCHEDULES) == 1
