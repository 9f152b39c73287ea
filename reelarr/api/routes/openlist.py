"""OpenList catalog refresh endpoints."""

from datetime import datetime, timedelta
from typing import Optional

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from reelarr.core.cache import MetaInfoCache
from reelarr.core.errors import ConfigurationError
from reelarr.core.integrations import OpenListClient, TMDBClient
from reelarr.core.models import MetaInfo
from reelarr.core.tasks import ScanResultSummary, TaskProgress, TaskRegistry
from reelarr.db.store import ResultStore
from reelarr.utils.config import AppConfig, get_config

logger = structlog.get_logger(__name__)

router = APIRouter()


class RefreshStartResponse(BaseModel):
    """Returned as soon as a refresh task is queued."""
    success: bool
    task_id: str
    message: str


class RefreshStatusResponse(BaseModel):
    """Snapshot of a refresh task for pollers."""
    task_id: str
    status: str
    progress: TaskProgress
    result: Optional[ScanResultSummary] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


def validate_refresh_config(config: AppConfig) -> None:
    """Raise ConfigurationError unless OpenList and TMDB are both usable."""
    if not config.openlist.is_configured:
        raise ConfigurationError("OpenList is not configured")
    if not config.site.has_tmdb:
        raise ConfigurationError("TMDB API key is not configured")


@router.post("/refresh", response_model=RefreshStartResponse)
async def start_refresh(http_request: Request):
    """Start a background metainfo refresh for the configured catalog root."""
    config = get_config()

    try:
        validate_refresh_config(config)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    registry: TaskRegistry = http_request.app.state.task_registry
    orchestrator = http_request.app.state.scan_orchestrator

    registry.cleanup_old(timedelta(seconds=config.scan.task_max_age_seconds))
    task_id = registry.create()

    lister = OpenListClient(
        config.openlist.url,
        config.openlist.username,
        config.openlist.password,
    )
    resolver = TMDBClient(
        config.site.tmdb_api_key,
        proxy=config.site.tmdb_proxy,
        language=config.site.tmdb_language,
        base_url=config.site.tmdb_base_url,
    )
    orchestrator.start(task_id, config.openlist.root_path or "/", lister, resolver)

    return RefreshStartResponse(
        success=True,
        task_id=task_id,
        message="Refresh task started",
    )


@router.get("/refresh/{task_id}", response_model=RefreshStatusResponse)
async def get_refresh_status(task_id: str, http_request: Request):
    """Get progress and outcome of a refresh task."""
    registry: TaskRegistry = http_request.app.state.task_registry

    task = registry.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")

    return RefreshStatusResponse(
        task_id=task.id,
        status=task.status.value,
        progress=task.progress,
        result=task.result,
        error_message=task.error_message,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


@router.get("/metainfo", response_model=MetaInfo)
async def get_metainfo(http_request: Request):
    """Get the consolidated metainfo, served from cache when possible."""
    cache: MetaInfoCache = http_request.app.state.metainfo_cache
    store: ResultStore = http_request.app.state.result_store
    root_path = get_config().openlist.root_path or "/"

    metainfo = cache.get(root_path)
    if metainfo is None:
        metainfo = await store.load_metainfo()
        if metainfo is None:
            raise HTTPException(status_code=404, detail="Catalog has not been refreshed yet")
        cache.set(root_path, metainfo)
        logger.debug("Metainfo loaded from store", root=root_path, folders=len(metainfo.folders))

    return metainfo
