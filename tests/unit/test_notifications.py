"""
Unit tests for notification dispatch, presence lookups and the connection manager.
"""
import pytest
from unittest.mock import AsyncMock

from conftest import RecordingTransport
from ridehail.realtime.manager import ConnectionManager
from ridehail.redis_client import presence_clear
from ridehail.schemas.schemas import RoleEnum
from ridehail.services.notifications import NEW_RIDE, RIDE_STARTED, NotificationDispatcher, PresenceDirectory


@pytest.mark.asyncio
class TestNotificationDispatcher:
    async def test_delivers_event_envelope(self):
        transport = RecordingTransport(live={"h1"})
        await NotificationDispatcher(transport).notify("h1", RIDE_STARTED, {"id": "r1"})
        assert transport.sent == [("h1", {"event": "ride-started", "data": {"id": "r1"}})]

    async def test_absent_handle_is_noop(self):
        transport = AsyncMock()
        await NotificationDispatcher(transport).notify(None, RIDE_STARTED, {})
        transport.send.assert_not_called()

    async def test_disconnected_handle_is_noop(self):
        transport = RecordingTransport(live=set())
        await NotificationDispatcher(transport).notify("gone", RIDE_STARTED, {})
        assert transport.sent == []

    async def test_send_failure_is_swallowed(self):
        transport = AsyncMock()
        transport.send.side_effect = RuntimeError("socket closed")
        await NotificationDispatcher(transport).notify("h1", RIDE_STARTED, {})
        transport.send.assert_awaited_once()

    async def test_broadcast_fans_out_and_skips_missing(self):
        transport = RecordingTransport(live={"a", "b"})
        await NotificationDispatcher(transport).broadcast(["a", None, "b", "c"], NEW_RIDE, {"id": "r1"})
        assert sorted(h for h, _ in transport.sent) == ["a", "b"]


@pytest.mark.asyncio
class TestPresence:
    async def test_handle_for_uses_role_key(self):
        redis = AsyncMock()
        redis.get.return_value = "ws-1"
        assert await PresenceDirectory(redis).handle_for(RoleEnum.rider, "r1") == "ws-1"
        redis.get.assert_awaited_once_with("presence:rider:r1")

    async def test_handles_for_empty(self):
        redis = AsyncMock()
        assert await PresenceDirectory(redis).handles_for("driver", []) == []
        redis.mget.assert_not_called()

    async def test_clear_is_one_atomic_compare_and_delete(self):
        redis = AsyncMock()
        await presence_clear(redis, "driver", "d1", "mine")
        redis.eval.assert_awaited_once()
        script, numkeys, key, handle = redis.eval.call_args.args
        assert (numkeys, key, handle) == (1, "presence:driver:d1", "mine")
        assert "GET" in script and "DEL" in script
        redis.get.assert_not_called()
        redis.delete.assert_not_called()


@pytest.mark.asyncio
class TestConnectionManager:
    async def test_send_to_live_socket(self):
        manager = ConnectionManager()
        websocket = AsyncMock()
        manager.connect("h1", websocket)
        assert await manager.send("h1", {"event": "x"}) is True
        websocket.send_json.assert_awaited_once_with({"event": "x"})

    async def test_send_after_disconnect(self):
        manager = ConnectionManager()
        manager.connect("h1", AsyncMock())
        manager.disconnect("h1")
        assert await manager.send("h1", {"event": "x"}) is False

    async def test_failed_send_unregisters_socket(self):
        manager = ConnectionManager()
        websocket = AsyncMock()
        websocket.send_json.side_effect = RuntimeError("socket closed")
        manager.connect("h1", websocket)

        with pytest.raises(RuntimeError):
            await manager.send("h1", {"event": "x"})
        assert await manager.send("h1", {"event": "y"}) is False
        websocket.send_json.assert_awaited_once_with({"event": "x"})
