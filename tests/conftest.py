"""
Shared fixtures: in-memory SQLite for rides, a mocked openrouteservice, a
recording transport for notifications and an AsyncMock Redis for the driver index.
"""
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import ridehail.models  # noqa: F401
from ridehail.database import Base
from ridehail.middleware.auth import Principal
from ridehail.schemas.schemas import RoleEnum
from ridehail.services.geocoding import DIRECTIONS_PATH, GEOCODE_PATH, GeocodingGateway
from ridehail.services.lifecycle import RideLifecycleEngine
from ridehail.services.locator import DriverLocator
from ridehail.services.notifications import NotificationDispatcher, PresenceDirectory
from ridehail.services.pricing import FareCalculator
from ridehail.services.repository import RideRepository

PICKUP_ADDRESS = "MG Road, Bengaluru"
DEST_ADDRESS = "Koramangala, Bengaluru"

ADDRESSES = {
    PICKUP_ADDRESS: (12.97, 77.59),
    DEST_ADDRESS: (12.93, 77.62),
}

# Drivers in the index as (id, lat, lng). The last one sits ~2.2 km north of pickup.
NEARBY_DRIVERS = [
    ("driver-1", 12.975, 77.592),
    ("driver-2", 12.962, 77.585),
    ("driver-far", 12.99, 77.59),
]

RIDER = Principal(id="rider-1", role=RoleEnum.rider)
DRIVER = Principal(id="driver-1", role=RoleEnum.driver)
OTHER_DRIVER = Principal(id="driver-2", role=RoleEnum.driver)


class FakeOrs:
    """Stand-in for openrouteservice behind httpx.MockTransport."""

    def __init__(self, addresses=None, route=(5000, 900), route_status=200):
        self.addresses = dict(ADDRESSES if addresses is None else addresses)
        self.route = route
        self.route_status = route_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == GEOCODE_PATH:
            text = request.url.params.get("text")
            coords = self.addresses.get(text)
            features = []
            if coords:
                features.append({
                    "geometry": {"coordinates": [coords[1], coords[0]]},
                    "properties": {"label": text},
                })
            return httpx.Response(200, json={"features": features})
        if request.url.path == DIRECTIONS_PATH:
            if self.route_status != 200:
                return httpx.Response(self.route_status, json={"error": "unavailable"})
            distance, duration = self.route
            return httpx.Response(200, json={
                "features": [{"properties": {"segments": [{"distance": distance, "duration": duration}]}}]
            })
        return httpx.Response(404)


class RecordingTransport:
    """Transport double: handles in ``live`` are connected, every delivery is recorded."""

    def __init__(self, live=()):
        self.live = set(live)
        self.sent: list[tuple[str, dict]] = []

    async def send(self, handle, message):
        if handle not in self.live:
            return False
        self.sent.append((handle, message))
        return True

    def events_for(self, handle):
        return [message["event"] for h, message in self.sent if h == handle]


def make_geocoder(ors: FakeOrs, max_retries: int = 0) -> GeocodingGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(ors), base_url="https://ors.test")
    return GeocodingGateway(client, api_key="test-key", max_retries=max_retries, backoff_seconds=0)


def make_redis(drivers=NEARBY_DRIVERS, connected=None) -> AsyncMock:
    """AsyncMock Redis answering GEOSEARCH with ``drivers`` and presence MGET/GET with ``connected``."""
    connected = connected if connected is not None else {d[0]: f"ws-{d[0]}" for d in drivers}
    redis = AsyncMock()
    redis.geosearch = AsyncMock(return_value=[[d[0], (d[2], d[1])] for d in drivers])

    async def mget(keys):
        return [connected.get(key.rsplit(":", 1)[1]) if ":driver:" in key else None for key in keys]

    async def get(key):
        role, principal_id = key.split(":")[1:]
        if role == "rider":
            return f"ws-{principal_id}"
        return connected.get(principal_id)

    redis.mget = AsyncMock(side_effect=mget)
    redis.get = AsyncMock(side_effect=get)
    return redis


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def ors():
    return FakeOrs()


@pytest.fixture
def transport():
    live = {f"ws-{d[0]}" for d in NEARBY_DRIVERS} | {f"ws-{RIDER.id}"}
    return RecordingTransport(live=live)


@pytest.fixture
def redis():
    return make_redis()


@pytest.fixture
def ride_engine(db_session, ors, transport, redis):
    presence = PresenceDirectory(redis)
    return RideLifecycleEngine(
        repository=RideRepository(db_session),
        geocoder=make_geocoder(ors),
        fares=FareCalculator(),
        locator=DriverLocator(redis, presence),
        notifier=NotificationDispatcher(transport),
        presence=presence,
        search_radius_km=2.0,
    )
