"""WebSocket endpoint for live refresh progress."""

import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from reelarr.utils.constants import WEBSOCKET

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.websocket("/scan")
async def scan_websocket(websocket: WebSocket):
    """Stream scan_progress and scan_complete messages to the client."""
    ws_manager = websocket.scope["app"].state.ws_manager
    channel = WEBSOCKET.SCAN_CHANNEL

    await ws_manager.connect(websocket, channel)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON in WebSocket message", channel=channel)
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        ws_manager.disconnect(websocket, channel)
    except Exception as e:
        logger.error("WebSocket error", channel=channel, error=str(e))
        ws_manager.disconnect(websocket, channel)
