from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from app.config import VenueConfig
from app.models.schemas import AttractionRecord, DayWindow, VenueSchedule


class BaseParkConnector(ABC):
    """
    Interface every park connector exposes to the routers and scheduler.
    Connectors are built from a VenueConfig plus injected services rather
    than by subclassing a shared implementation.
    """
    park_id: str
    park_name: str
    config: VenueConfig
    supports_ride_schedules: bool = False

    @abstractmethod
    async def fetch_wait_times(self, now: Optional[datetime] = None) -> List[AttractionRecord]: ...

    @abstractmethod
    async def fetch_opening_times(self, now: Optional[datetime] = None) -> List[DayWindow]: ...

    @abstractmethod
    async def fetch_ride_schedule(self, ride_id: str, now: Optional[datetime] = None) -> List[DayWindow]: ...

    async def warm_schedule(self, now: Optional[datetime] = None) -> Optional[VenueSchedule]:
        """Refresh any cached schedule data if it has gone stale."""
