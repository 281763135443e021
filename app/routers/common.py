import logging
from fastapi import HTTPException, Request

from app.errors import ConfigurationError, ParkAPIError
from app.parks import get_park
from app.parks.base import BaseParkConnector

logger = logging.getLogger(__name__)


def get_connector(request: Request) -> BaseParkConnector:
    """Resolve the park connector from the first segment of the request path."""
    park_id = request.url.path.strip("/").split("/")[0]
    connector = get_park(park_id)
    if connector is None:
        raise HTTPException(status_code=404, detail=f"Park '{park_id}' not found.")
    return connector


def upstream_error(connector: BaseParkConnector, error: ParkAPIError) -> HTTPException:
    """Map connector failures: bad configuration is ours (500), the rest is upstream (502)."""
    logger.error(f"[{connector.park_id}] {type(error).__name__}: {error}")
    status = 500 if isinstance(error, ConfigurationError) else 502
    return HTTPException(status_code=status, detail=str(error))
