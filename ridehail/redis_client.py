import redis.asyncio as aioredis
from ridehail.config import get_settings

settings = get_settings()

_redis_pool: aioredis.Redis | None = None

DRIVER_GEO_KEY = "drivers:geo"


async def get_redis() -> aioredis.Redis:
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=100,
        )
    return _redis_pool


async def close_redis() -> None:
    global _redis_pool
    if _redis_pool:
        await _redis_pool.aclose()
        _redis_pool = None


# ---------------------------------------------------------------------------
# GEO helpers
# ---------------------------------------------------------------------------

async def geo_add_driver(redis: aioredis.Redis, driver_id: str, lat: float, lng: float) -> None:
    """Add / update driver position in the geospatial index."""
    await redis.geoadd(DRIVER_GEO_KEY, [lng, lat, driver_id])


async def geo_remove_driver(redis: aioredis.Redis, driver_id: str) -> None:
    await redis.zrem(DRIVER_GEO_KEY, driver_id)


async def geo_search_drivers(
    redis: aioredis.Redis,
    lat: float,
    lng: float,
    radius_km: float,
) -> list[tuple[str, float, float]]:
    """Return ``(driver_id, lat, lng)`` for indexed drivers within ``radius_km``, nearest first."""
    results = await redis.geosearch(
        DRIVER_GEO_KEY,
        longitude=lng,
        latitude=lat,
        radius=radius_km,
        unit="km",
        sort="ASC",
        withcoord=True,
    )
    # Each entry is [member, (lng, lat)]
    return [(member, float(coord[1]), float(coord[0])) for member, coord in results]


# ---------------------------------------------------------------------------
# Presence helpers (live WebSocket handle per principal)
# ---------------------------------------------------------------------------

# Deletes KEYS[1] only while it still holds ARGV[1].
_CLEAR_IF_OWNER = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("DEL", KEYS[1])
end
return 0
"""


def _presence_key(role: str, principal_id: str) -> str:
    return f"presence:{role}:{principal_id}"


async def presence_set(redis: aioredis.Redis, role: str, principal_id: str, handle: str) -> None:
    await redis.set(_presence_key(role, principal_id), handle)


async def presence_get(redis: aioredis.Redis, role: str, principal_id: str) -> str | None:
    return await redis.get(_presence_key(role, principal_id))


async def presence_get_many(redis: aioredis.Redis, role: str, principal_ids: list[str]) -> list[str | None]:
    if not principal_ids:
        return []
    return await redis.mget([_presence_key(role, pid) for pid in principal_ids])


async def presence_clear(redis: aioredis.Redis, role: str, principal_id: str, handle: str) -> None:
    """Drop the presence entry, unless a newer connection has already replaced it."""
    await redis.eval(_CLEAR_IF_OWNER, 1, _presence_key(role, principal_id), handle)
