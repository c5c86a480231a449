"""
Driver locator.

Flow:
  1. GEOSEARCH the driver index with a slightly padded radius (candidate set)
  2. Keep candidates whose great-circle angle to the centre is within
     radius / EARTH_RADIUS_KM (spherical cap, boundary inclusive)
  3. Collapse duplicates by driver id
  4. Attach each driver's live connection handle from the presence directory
"""
import logging
from dataclasses import dataclass

import redis.asyncio as aioredis

from ridehail.exceptions import InvalidInput
from ridehail.redis_client import geo_add_driver, geo_remove_driver, geo_search_drivers
from ridehail.schemas.schemas import RoleEnum
from ridehail.services.geo import Coordinate, central_angle, validate_radius, within_radius
from ridehail.services.notifications import PresenceDirectory

logger = logging.getLogger(__name__)

# Redis measures on a 6372.797 km sphere, so its distances run ~0.03% long.
SEARCH_RADIUS_PADDING = 1.01


@dataclass(frozen=True)
class DriverRef:
    id: str
    location: Coordinate
    connection_handle: str | None = None


class DriverLocator:
    def __init__(self, redis: aioredis.Redis, presence: PresenceDirectory):
        self.redis = redis
        self.presence = presence

    async def find_nearby(self, center: Coordinate, radius_km: float) -> list[DriverRef]:
        if not isinstance(center, Coordinate):
            raise InvalidInput("Search centre must be a coordinate")
        radius_km = validate_radius(radius_km)

        candidates = await geo_search_drivers(
            self.redis, center.lat, center.lng, radius_km * SEARCH_RADIUS_PADDING
        )

        matched: dict[str, Coordinate] = {}
        for driver_id, lat, lng in candidates:
            if driver_id in matched:
                continue
            try:
                location = Coordinate(lat=lat, lng=lng)
            except InvalidInput:
                logger.warning("Skipping driver %s with invalid indexed location (%s, %s)", driver_id, lat, lng)
                continue
            if within_radius(location, center, radius_km):
                matched[driver_id] = location

        if not matched:
            return []

        ordered = sorted(matched.items(), key=lambda item: central_angle(item[1], center))
        driver_ids = [driver_id for driver_id, _ in ordered]
        handles = await self.presence.handles_for(RoleEnum.driver, driver_ids)

        drivers = [
            DriverRef(id=driver_id, location=location, connection_handle=handle)
            for (driver_id, location), handle in zip(ordered, handles)
        ]
        logger.debug("Found %d drivers within %.2f km of %s", len(drivers), radius_km, center)
        return drivers

    async def update_location(self, driver_id: str, location: Coordinate) -> None:
        await geo_add_driver(self.redis, driver_id, location.lat, location.lng)

    async def remove(self, driver_id: str) -> None:
        await geo_remove_driver(self.redis, driver_id)
