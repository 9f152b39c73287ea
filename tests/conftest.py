"""Shared pytest configuration for Reelarr tests."""

from __future__ import annotations

import os
import tempfile

# Settings read DATA_DIR on first use; point it somewhere writable before imports
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="reelarr-tests-"))

import pytest

from reelarr.utils import config as config_module

_SERVICE_ENV_VARS = (
    "OPENLIST_URL",
    "OPENLIST_USERNAME",
    "OPENLIST_PASSWORD",
    "OPENLIST_ROOT_PATH",
    "TMDB_API_KEY",
    "TMDB_PROXY",
    "DATABASE_URL",
    "LOG_DIR",
    "LOG_LEVEL",
    "DEV_MODE",
)


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Give every test its own data dir and fresh config singletons."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    for var in _SERVICE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    config_module.reset_settings()
    yield
    config_module.reset_settings()
