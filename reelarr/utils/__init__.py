"""Reelarr utilities module."""

from reelarr.utils.config import (
    get_settings,
    get_config,
    load_config,
    save_config,
    update_config,
    reload_config,
    AppConfig,
    Settings,
)

__all__ = [
    "get_settings",
    "get_config",
    "load_config",
    "save_config",
    "update_config",
    "reload_config",
    "AppConfig",
    "Settings",
]
