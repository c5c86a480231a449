"""
In-process registry of live WebSocket connections, keyed by connection handle.
"""
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self._connections: dict[str, WebSocket] = {}

    def connect(self, handle: str, websocket: WebSocket) -> None:
        self._connections[handle] = websocket
        logger.info("Connection %s registered (%d live)", handle, len(self._connections))

    def disconnect(self, handle: str) -> None:
        if self._connections.pop(handle, None) is not None:
            logger.info("Connection %s closed (%d live)", handle, len(self._connections))

    async def send(self, handle: str, message: dict[str, Any]) -> bool:
        """
        Send to one connection. Returns False when the handle has no live socket.
        A socket that fails to send is unregistered before the error propagates.
        """
        websocket = self._connections.get(handle)
        if websocket is None:
            return False
        try:
            await websocket.send_json(message)
        except Exception:
            self.disconnect(handle)
            raise
        return True


connection_manager = ConnectionManager()
