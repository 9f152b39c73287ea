"""Durable storage for refresh results."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reelarr.core.models import MetaInfo
from reelarr.db.database import get_db_session
from reelarr.db.models import GlobalValue
from reelarr.utils.config import update_config
from reelarr.utils.constants import STORAGE

logger = structlog.get_logger(__name__)


class ResultStore:
    """Key/value persistence plus the refresh stats kept in the app config."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session_factory is None:
            async with get_db_session() as db:
                yield db
        else:
            async with self._session_factory() as db:
                try:
                    yield db
                except Exception:
                    await db.rollback()
                    raise

    async def set_global_value(self, key: str, value: str) -> None:
        """Insert or replace ``key`` in a single commit."""
        async with self._session() as db:
            await db.merge(GlobalValue(key=key, value=value))
            await db.commit()
        logger.debug("Global value stored", key=key, size=len(value))

    async def get_global_value(self, key: str) -> Optional[str]:
        async with self._session() as db:
            row = await db.get(GlobalValue, key)
            return row.value if row else None

    async def load_metainfo(self) -> Optional[MetaInfo]:
        """Read the last persisted metainfo, if any."""
        raw = await self.get_global_value(STORAGE.METAINFO_KEY)
        if raw is None:
            return None
        return MetaInfo.model_validate_json(raw)

    async def save_refresh_stats(self, last_refresh_time: int, resource_count: int) -> None:
        """Record when the catalog was last refreshed and how many folders it holds."""
        update_config({
            "openlist": {
                "last_refresh_time": last_refresh_time,
                "resource_count": resource_count,
            }
        })
        logger.debug("Refresh stats saved", last_refresh_time=last_refresh_time, resource_count=resource_count)
