"""
FastAPI dependency wiring: one engine per request, built from shared pools.
"""
import httpx
import redis.asyncio as aioredis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.config import get_settings
from ridehail.database import get_db
from ridehail.http_client import get_http_client
from ridehail.realtime.manager import connection_manager
from ridehail.redis_client import get_redis
from ridehail.services.geocoding import GeocodingGateway
from ridehail.services.lifecycle import RideLifecycleEngine
from ridehail.services.locator import DriverLocator
from ridehail.services.notifications import NotificationDispatcher, PresenceDirectory
from ridehail.services.pricing import FareCalculator
from ridehail.services.repository import RideRepository

settings = get_settings()

_fares = FareCalculator()
_notifier = NotificationDispatcher(connection_manager)


async def get_geocoder(client: httpx.AsyncClient = Depends(get_http_client)) -> GeocodingGateway:
    return GeocodingGateway.from_settings(client)


async def get_locator(redis: aioredis.Redis = Depends(get_redis)) -> DriverLocator:
    return DriverLocator(redis, PresenceDirectory(redis))


async def get_ride_engine(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
    geocoder: GeocodingGateway = Depends(get_geocoder),
    locator: DriverLocator = Depends(get_locator),
) -> RideLifecycleEngine:
    return RideLifecycleEngine(
        repository=RideRepository(db),
        geocoder=geocoder,
        fares=_fares,
        locator=locator,
        notifier=_notifier,
        presence=PresenceDirectory(redis),
        search_radius_km=settings.matching_radius_km,
    )
