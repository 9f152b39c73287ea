"""Health check endpoint."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from reelarr.utils.config import get_config
from reelarr.utils.version import VERSION

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    openlist_configured: bool
    tmdb_configured: bool
    active_refreshes: int


@router.get("/health", response_model=HealthResponse)
async def health_check(http_request: Request):
    """Check application health status."""
    config = get_config()
    orchestrator = http_request.app.state.scan_orchestrator

    return HealthResponse(
        status="healthy",
        version=VERSION,
        openlist_configured=config.openlist.is_configured,
        tmdb_configured=config.site.has_tmdb,
        active_refreshes=len(orchestrator.active_tasks),
    )
