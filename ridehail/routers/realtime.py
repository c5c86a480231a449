"""
Realtime router — WS /v1/ws?token=<jwt>

A connected client gets a fresh connection handle, published in the presence
directory so ride events can find it. Inbound frames are ignored apart from
keeping the socket open.
"""
import logging
import uuid

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from jose import JWTError

from ridehail.middleware.auth import decode_access_token
from ridehail.realtime.manager import connection_manager
from ridehail.redis_client import get_redis, presence_clear, presence_set

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1", tags=["Realtime"])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str = Query(...)):
    try:
        principal = decode_access_token(token)
    except (JWTError, ValueError):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    handle = uuid.uuid4().hex
    redis = await get_redis()
    connection_manager.connect(handle, websocket)

    try:
        await presence_set(redis, principal.role.value, principal.id, handle)
        await websocket.send_json({"event": "connected", "data": {"handle": handle}})
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("%s %s disconnected", principal.role.value, principal.id)
    finally:
        connection_manager.disconnect(handle)
        await presence_clear(redis, principal.role.value, principal.id, handle)
