from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException, Request
from app.errors import ParkAPIError
from app.routers.common import get_connector, upstream_error

router = APIRouter()


@router.get("/rides", summary="Live wait times & attraction statuses")
async def get_rides(request: Request):
    """Live wait times for all attractions, each with its current operating window."""
    connector = get_connector(request)
    try:
        attractions = await connector.fetch_wait_times()
    except ParkAPIError as e:
        raise upstream_error(connector, e) from e

    context = connector.config.render_context()
    return {
        "park_id":      connector.park_id,
        "park_name":    connector.park_name,
        "last_updated": datetime.now(timezone.utc).isoformat(),
        "attractions":  [a.model_dump(mode="json", context=context) for a in attractions],
    }


@router.get("/rides/{ride_id}/schedule", summary="Operating calendar for one attraction")
async def get_ride_schedule(request: Request, ride_id: str):
    """
    One window per day from today to the end of the schedule range.
    Attractions without published hours are reported closed every day.
    """
    connector = get_connector(request)
    if not connector.supports_ride_schedules:
        raise HTTPException(status_code=404, detail=f"'{connector.park_id}' has no ride schedules.")
    try:
        windows = await connector.fetch_ride_schedule(ride_id)
    except ParkAPIError as e:
        raise upstream_error(connector, e) from e

    context = connector.config.render_context()
    return {
        "park_id":  connector.park_id,
        "ride_id":  ride_id,
        "schedule": [w.model_dump(mode="json", context=context) for w in windows],
    }
