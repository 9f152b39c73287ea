"""Tests for ResultStore against a throwaway SQLite database."""

from __future__ import annotations

import json

import pytest

from reelarr.core.models import FolderMeta, MetaInfo
from reelarr.db.database import create_engine, create_session_factory
from reelarr.db.models import Base
from reelarr.db.store import ResultStore
from reelarr.utils.config import get_config, get_config_path


async def _store(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine, ResultStore(create_session_factory(engine))


@pytest.mark.asyncio
async def test_set_and_overwrite_global_value(tmp_path):
    engine, store = await _store(tmp_path)
    try:
        assert await store.get_global_value("video.metainfo") is None

        await store.set_global_value("video.metainfo", "first")
        await store.set_global_value("video.metainfo", "second")

        assert await store.get_global_value("video.metainfo") == "second"
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_load_metainfo(tmp_path):
    engine, store = await _store(tmp_path)
    try:
        assert await store.load_metainfo() is None

        metainfo = MetaInfo(
            folders={
                "Heat": FolderMeta(tmdb_id=949, title="Heat", release_date="1995-12-15"),
                "???": FolderMeta.degraded("???"),
            },
            last_refresh=1700000000000,
        )
        await store.set_global_value("video.metainfo", metainfo.model_dump_json())

        loaded = await store.load_metainfo()
        assert loaded == metainfo
        assert loaded.folders["???"].failed is True
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_save_refresh_stats_updates_config_file():
    store = ResultStore()

    await store.save_refresh_stats(last_refresh_time=1700000000123, resource_count=42)

    assert get_config().openlist.last_refresh_time == 1700000000123
    assert get_config().openlist.resource_count == 42
    saved = json.loads(get_config_path().read_text())
    assert saved["openlist"]["resource_count"] == 42
