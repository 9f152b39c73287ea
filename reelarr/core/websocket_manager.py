"""WebSocket fan-out for live refresh progress."""

from typing import Dict, Set

import structlog
from fastapi import WebSocket

from reelarr.utils.constants import WEBSOCKET

logger = structlog.get_logger(__name__)


class WebSocketManager:
    """Tracks connected clients per channel and pushes JSON messages to them."""

    def __init__(self):
        self._connections: Dict[str, Set[WebSocket]] = {WEBSOCKET.SCAN_CHANNEL: set()}

    async def connect(self, websocket: WebSocket, channel: str = WEBSOCKET.SCAN_CHANNEL):
        """Accept and register a WebSocket connection."""
        await websocket.accept()
        self._connections.setdefault(channel, set()).add(websocket)
        logger.info("WebSocket connected", channel=channel, total=len(self._connections[channel]))

    def disconnect(self, websocket: WebSocket, channel: str = WEBSOCKET.SCAN_CHANNEL):
        """Remove a WebSocket connection."""
        if channel in self._connections:
            self._connections[channel].discard(websocket)
            logger.info("WebSocket disconnected", channel=channel, total=len(self._connections[channel]))

    async def broadcast(self, channel: str, message: dict):
        """Send ``message`` to every client on ``channel``, dropping dead sockets."""
        dead_connections = set()

        for websocket in list(self._connections.get(channel, ())):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning("Failed to send WebSocket message", channel=channel, error=str(e))
                dead_connections.add(websocket)

        for ws in dead_connections:
            self._connections[channel].discard(ws)

    def get_connection_count(self, channel: str = None) -> int:
        """Get number of active connections."""
        if channel:
            return len(self._connections.get(channel, set()))
        return sum(len(conns) for conns in self._connections.values())
