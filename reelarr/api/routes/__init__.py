"""API Routes package."""

from . import (
    health,
    openlist,
    websocket_routes,
)

__all__ = [
    "health",
    "openlist",
    "websocket_routes",
]
