"""
Park registry — maps park_id to connector instance.

To add a new Disney park:
  1. Add its VenueConfig to VENUES
  2. It is picked up by build_registry() and served under /{park_key}

All connectors built by one registry share a single CredentialCache (one
operator account per process) and a single ScheduleStore keyed by resort.
"""

from typing import Dict, List

from app.config import VenueConfig
from app.parks.base import BaseParkConnector
from app.parks.disney import DisneyParkConnector
from app.services.credentials import CredentialCache
from app.services.schedule import ScheduleStore
from app.services.transport import HttpxTransport, Transport
from app.services.wdpro import WDProClient


# ── Venues ────────────────────────────────────
VENUES: List[VenueConfig] = [
    VenueConfig(park_key="disneylandparis",   name="Disneyland Park (Paris)",
                venue_id="dlp", attraction_api_id="P1", region="fr", timezone="Europe/Paris"),
    VenueConfig(park_key="waltdisneystudios", name="Walt Disney Studios Park",
                venue_id="dlp", attraction_api_id="P2", region="fr", timezone="Europe/Paris"),
    VenueConfig(park_key="magickingdom",      name="Magic Kingdom",
                venue_id="80007798", attraction_api_id="80007944", region="us", timezone="America/New_York"),
    VenueConfig(park_key="epcot",             name="Epcot",
                venue_id="80007798", attraction_api_id="80007838", region="us", timezone="America/New_York"),
    VenueConfig(park_key="hollywoodstudios",  name="Disney's Hollywood Studios",
                venue_id="80007798", attraction_api_id="80007998", region="us", timezone="America/New_York"),
    VenueConfig(park_key="animalkingdom",     name="Disney's Animal Kingdom",
                venue_id="80007798", attraction_api_id="80007823", region="us", timezone="America/New_York"),
]


def build_registry(transport: Transport, venues: List[VenueConfig] = VENUES) -> Dict[str, BaseParkConnector]:
    client = WDProClient(transport, CredentialCache(transport))
    schedules = ScheduleStore(client)
    return {
        venue.park_key: DisneyParkConnector(venue, client, schedules)
        for venue in venues
    }


# ── Registry ──────────────────────────────────
transport = HttpxTransport()
PARKS: Dict[str, BaseParkConnector] = build_registry(transport)


def get_park(park_id: str) -> BaseParkConnector | None:
    return PARKS.get(park_id)
