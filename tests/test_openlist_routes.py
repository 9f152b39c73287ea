"""Tests for the refresh trigger, polling and metainfo endpoints."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi import FastAPI

from helpers import FakeLister, FakeResolver, FakeStore, make_page, match
from reelarr.api.routes import openlist as openlist_routes
from reelarr.core.cache import MetaInfoCache
from reelarr.core.errors import ConfigurationError
from reelarr.core.models import FolderMeta, MetaInfo
from reelarr.core.scanner import ScanOrchestrator
from reelarr.core.tasks import TaskRegistry
from reelarr.utils.config import AppConfig, OpenListConfig, SiteConfig


def _config(**site) -> AppConfig:
    return AppConfig(
        openlist=OpenListConfig(url="http://openlist.local", username="admin", password="secret", root_path="/media"),
        site=SiteConfig(tmdb_api_key="key", **site),
    )


def _app(store=None) -> FastAPI:
    app = FastAPI()
    app.include_router(openlist_routes.router, prefix="/api/openlist")
    app.state.task_registry = TaskRegistry()
    app.state.metainfo_cache = MetaInfoCache()
    app.state.result_store = store or FakeStore()
    app.state.scan_orchestrator = ScanOrchestrator(
        registry=app.state.task_registry,
        store=app.state.result_store,
        cache=app.state.metainfo_cache,
        request_delay=0,
    )
    return app


def _client(app: FastAPI) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


@pytest.fixture
def fake_clients(monkeypatch):
    """Swap the real integration clients for in-memory fakes."""
    created = {}

    def _lister(url, username, password):
        created["lister"] = FakeLister([make_page([("Heat", True), ("notes.txt", False), ("Zzz", True)], 3)])
        created["lister_args"] = (url, username, password)
        return created["lister"]

    def _resolver(api_key, proxy=None, language=None, base_url=None):
        created["resolver"] = FakeResolver({"Heat": match(949, title="Heat")})
        created["resolver_args"] = (api_key, proxy, language)
        return created["resolver"]

    monkeypatch.setattr(openlist_routes, "OpenListClient", _lister)
    monkeypatch.setattr(openlist_routes, "TMDBClient", _resolver)
    return created


@pytest.mark.asyncio
async def test_refresh_returns_task_id_and_runs_in_background(monkeypatch, fake_clients):
    monkeypatch.setattr(openlist_routes, "get_config", lambda: _config(tmdb_proxy="http://proxy:8080"))
    app = _app()

    async with _client(app) as client:
        response = await client.post("/api/openlist/refresh")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        task_id = body["task_id"]

        await asyncio.gather(*app.state.scan_orchestrator.active_tasks)

        status = await client.get(f"/api/openlist/refresh/{task_id}")

    assert status.status_code == 200
    payload = status.json()
    assert payload["status"] == "completed"
    assert payload["result"] == {"total": 2, "new": 1, "existing": 0, "errors": 1}
    assert payload["progress"]["current"] == payload["progress"]["total"] == 2
    assert payload["error_message"] is None
    assert fake_clients["lister"].calls[0][0] == "/media"
    assert fake_clients["lister_args"] == ("http://openlist.local", "admin", "secret")
    assert fake_clients["resolver_args"] == ("key", "http://proxy:8080", "zh-CN")


@pytest.mark.asyncio
async def test_failed_refresh_is_visible_to_pollers(monkeypatch, fake_clients):
    monkeypatch.setattr(openlist_routes, "get_config", _config)

    def _broken_lister(url, username, password):
        return FakeLister([make_page([], 0, code=500, message="storage offline")])

    monkeypatch.setattr(openlist_routes, "OpenListClient", _broken_lister)
    app = _app()

    async with _client(app) as client:
        response = await client.post("/api/openlist/refresh")
        task_id = response.json()["task_id"]
        await asyncio.gather(*app.state.scan_orchestrator.active_tasks, return_exceptions=True)
        status = await client.get(f"/api/openlist/refresh/{task_id}")

    assert response.status_code == 200
    payload = status.json()
    assert payload["status"] == "failed"
    assert "storage offline" in payload["error_message"]
    assert payload["result"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("config", [
    AppConfig(site=SiteConfig(tmdb_api_key="key")),
    AppConfig(openlist=OpenListConfig(url="http://openlist.local", username="admin", password="")),
    AppConfig(openlist=OpenListConfig(url="http://openlist.local", username="admin", password="secret")),
])
async def test_missing_configuration_is_rejected_without_task(monkeypatch, fake_clients, config):
    monkeypatch.setattr(openlist_routes, "get_config", lambda: config)
    app = _app()

    async with _client(app) as client:
        response = await client.post("/api/openlist/refresh")

    assert response.status_code == 400
    assert "not configured" in response.json()["detail"]
    assert len(app.state.task_registry) == 0
    assert "lister" not in fake_clients


def test_validate_refresh_config():
    openlist_routes.validate_refresh_config(_config())

    with pytest.raises(ConfigurationError, match="TMDB"):
        openlist_routes.validate_refresh_config(AppConfig(openlist=_config().openlist))


@pytest.mark.asyncio
async def test_unknown_task_is_404():
    app = _app()

    async with _client(app) as client:
        response = await client.get("/api/openlist/refresh/does-not-exist")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_pending_task_snapshot():
    app = _app()
    task_id = app.state.task_registry.create()

    async with _client(app) as client:
        response = await client.get(f"/api/openlist/refresh/{task_id}")

    payload = response.json()
    assert payload["status"] == "pending"
    assert payload["progress"] == {"current": 0, "total": 0, "current_item": None}


@pytest.mark.asyncio
async def test_metainfo_reads_through_cache(monkeypatch):
    monkeypatch.setattr(openlist_routes, "get_config", _config)
    store = FakeStore()
    stored = MetaInfo(folders={"Heat": FolderMeta(tmdb_id=949, title="Heat")}, last_refresh=1)
    await store.set_global_value("video.metainfo", stored.model_dump_json())
    app = _app(store=store)

    async with _client(app) as client:
        first = await client.get("/api/openlist/metainfo")
        store.values.clear()
        second = await client.get("/api/openlist/metainfo")

    assert first.status_code == 200
    assert first.json()["folders"]["Heat"]["tmdb_id"] == 949
    assert second.json() == first.json()
    assert app.state.metainfo_cache.get("/media") == stored


@pytest.mark.asyncio
async def test_metainfo_missing_is_404(monkeypatch):
    monkeypatch.setattr(openlist_routes, "get_config", _config)
    app = _app()

    async with _client(app) as client:
        response = await client.get("/api/openlist/metainfo")

    assert response.status_code == 404
