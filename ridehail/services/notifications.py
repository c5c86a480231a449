"""
Real-time notifications to riders and drivers.

Delivery is best-effort: a party without a live connection is skipped silently
and a failed send is logged, never raised to the caller.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Protocol

import redis.asyncio as aioredis

from ridehail.redis_client import presence_get, presence_get_many
from ridehail.schemas.schemas import RoleEnum

logger = logging.getLogger(__name__)

NEW_RIDE = "new-ride"
RIDE_CONFIRMED = "ride-confirmed"
RIDE_STARTED = "ride-started"
RIDE_ENDED = "ride-ended"


class Transport(Protocol):
    async def send(self, handle: str, message: dict[str, Any]) -> bool: ...


class PresenceDirectory:
    """Maps a principal to the handle of its live WebSocket, if any."""

    def __init__(self, redis: aioredis.Redis):
        self.redis = redis

    async def handle_for(self, role: RoleEnum | str, principal_id: str) -> str | None:
        return await presence_get(self.redis, RoleEnum(role).value, principal_id)

    async def handles_for(self, role: RoleEnum | str, principal_ids: list[str]) -> list[str | None]:
        return await presence_get_many(self.redis, RoleEnum(role).value, principal_ids)


class NotificationDispatcher:
    def __init__(self, transport: Transport):
        self.transport = transport

    async def notify(self, handle: str | None, event_type: str, payload: dict[str, Any]) -> None:
        if not handle:
            return
        message = {"event": event_type, "data": payload}
        try:
            delivered = await self.transport.send(handle, message)
        except Exception as exc:
            logger.error("Failed to deliver %s to %s: %s", event_type, handle, exc)
            return
        if not delivered:
            logger.debug("No live connection for %s, dropped %s", handle, event_type)

    async def broadcast(self, handles: Iterable[str | None], event_type: str, payload: dict[str, Any]) -> None:
        await asyncio.gather(*(self.notify(handle, event_type, payload) for handle in handles))
