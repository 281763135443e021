from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.config import VenueConfig
from app.parks.disney import DisneyParkConnector
from app.services.credentials import CredentialCache
from app.services.schedule import ScheduleStore
from app.services.wdpro import WDProClient
from fakes import TOKEN_URL, FakeTransport, token_payload

# 12:00 in Paris (CEST)
NOW = datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def venue() -> VenueConfig:
    return VenueConfig(
        park_key="disneylandparis",
        name="Disneyland Park (Paris)",
        venue_id="dlp",
        attraction_api_id="P1",
        region="fr",
        timezone="Europe/Paris",
        max_days_ahead=3,
    )


@pytest.fixture
def transport() -> FakeTransport:
    fake = FakeTransport()
    fake.add_json("/token", token_payload())
    return fake


@pytest.fixture
def credentials(transport: FakeTransport) -> CredentialCache:
    return CredentialCache(transport, token_url=TOKEN_URL)


@pytest.fixture
def client(transport: FakeTransport, credentials: CredentialCache) -> WDProClient:
    return WDProClient(transport, credentials, app_id="TEST-APP")


@pytest.fixture
def store(client: WDProClient) -> ScheduleStore:
    return ScheduleStore(client)


@pytest.fixture
def connector(venue: VenueConfig, client: WDProClient, store: ScheduleStore) -> DisneyParkConnector:
    return DisneyParkConnector(venue, client, store, api_base="https://api.test/facility-service/")
