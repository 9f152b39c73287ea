"""Reelarr - OpenList media catalog refresher."""

import os
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reelarr.api.routes import health, openlist, websocket_routes
from reelarr.core.cache import MetaInfoCache
from reelarr.core.scanner import ScanOrchestrator
from reelarr.core.tasks import TaskRegistry
from reelarr.core.websocket_manager import WebSocketManager
from reelarr.db.database import close_db, init_db
from reelarr.db.store import ResultStore
from reelarr.utils.config import get_config
from reelarr.utils.logging import setup_logging
from reelarr.utils.version import VERSION, get_version_info

# Setup logging first
setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Reelarr", **get_version_info())

    await init_db()

    config = get_config()

    app.state.ws_manager = WebSocketManager()
    app.state.task_registry = TaskRegistry()
    app.state.metainfo_cache = MetaInfoCache(ttl_seconds=config.scan.metainfo_cache_ttl_seconds)
    app.state.result_store = ResultStore()
    app.state.scan_orchestrator = ScanOrchestrator(
        registry=app.state.task_registry,
        store=app.state.result_store,
        cache=app.state.metainfo_cache,
        ws_manager=app.state.ws_manager,
        page_size=config.scan.page_size,
        request_delay=config.scan.request_delay_seconds,
    )

    logger.info("Configuration loaded",
                openlist_configured=config.openlist.is_configured,
                tmdb_configured=config.site.has_tmdb,
                root=config.openlist.root_path)

    yield

    logger.info("Shutting down Reelarr")
    await close_db()


app = FastAPI(
    title="Reelarr",
    description="OpenList media catalog refresher",
    version=VERSION,
    lifespan=lifespan,
)

# CORS_ORIGINS="*" or unset allows every origin
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "").split(",") if os.environ.get("CORS_ORIGINS") else []
allow_all_origins = os.environ.get("CORS_ORIGINS") == "*" or not CORS_ORIGINS

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api")
app.include_router(openlist.router, prefix="/api/openlist")
app.include_router(websocket_routes.router, prefix="/ws")
