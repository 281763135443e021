from fastapi import APIRouter, Request
from app.errors import ParkAPIError
from app.routers.common import get_connector, upstream_error

router = APIRouter()


@router.get("/opening-times", summary="Park opening calendar")
async def get_opening_times(request: Request):
    """
    Park opening hours for every day in the schedule range, with any
    special (extra hours) windows attached to the day they belong to.
    Served from the schedule cache, refreshed every 12 hours.
    """
    connector = get_connector(request)
    try:
        days = await connector.fetch_opening_times()
    except ParkAPIError as e:
        raise upstream_error(connector, e) from e

    context = connector.config.render_context()
    return {
        "park_id":   connector.park_id,
        "park_name": connector.park_name,
        "days":      [d.model_dump(mode="json", context=context) for d in days],
    }
