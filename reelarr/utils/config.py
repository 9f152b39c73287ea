"""
Reelarr Configuration Management
Handles all application settings and environment variables
"""

import json
import threading
from pathlib import Path
from typing import Optional, Dict, Any

import structlog
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

logger = structlog.get_logger(__name__)


class OpenListConfig(BaseModel):
    """OpenList server configuration."""
    url: str = ""
    username: str = ""
    password: str = ""
    root_path: str = "/"

    # Written back after every successful refresh
    last_refresh_time: Optional[int] = None
    resource_count: int = 0

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.username and self.password)


class SiteConfig(BaseModel):
    """Site-wide settings, including the TMDB lookup."""
    tmdb_api_key: str = ""
    tmdb_proxy: str = ""
    tmdb_language: str = "zh-CN"
    tmdb_base_url: str = "https://api.themoviedb.org/3"

    @property
    def has_tmdb(self) -> bool:
        return bool(self.tmdb_api_key)


class ScanConfig(BaseModel):
    """Refresh scan tuning."""
    page_size: int = 100
    request_delay_seconds: float = 0.3
    task_max_age_seconds: int = 3600
    metainfo_cache_ttl_seconds: int = 3600


class Settings(BaseSettings):
    """Main application settings from environment."""
    data_dir: Path = Path("/app/data")
    log_dir: Optional[Path] = None
    log_level: str = "INFO"
    dev_mode: bool = False  # console renderer instead of JSON
    database_url: str = ""

    # Service configurations (from environment)
    openlist_url: str = ""
    openlist_username: str = ""
    openlist_password: str = ""
    openlist_root_path: str = "/"
    tmdb_api_key: str = ""
    tmdb_proxy: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def resolved_log_dir(self) -> Path:
        return self.log_dir or self.data_dir / "logs"


class AppConfig(BaseModel):
    """Complete application configuration (stored in JSON)."""
    openlist: OpenListConfig = Field(default_factory=OpenListConfig)
    site: SiteConfig = Field(default_factory=SiteConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)


# Thread-safe singleton
_settings_instance: Optional[Settings] = None
_settings_lock = threading.Lock()

_config_instance: Optional[AppConfig] = None
_config_lock = threading.RLock()


def get_settings() -> Settings:
    """Get cached application settings from environment (thread-safe)."""
    global _settings_instance

    if _settings_instance is None:
        with _settings_lock:
            if _settings_instance is None:
                _settings_instance = Settings()

    return _settings_instance


def get_config_path() -> Path:
    """Get path to config file."""
    settings = get_settings()
    return settings.data_dir / "config.json"


def load_config() -> AppConfig:
    """Load application configuration from file."""
    config_path = get_config_path()

    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                data = json.load(f)
            return AppConfig(**data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Ignoring unreadable config file", path=str(config_path), error=str(e))

    # Return default config with environment values applied
    settings = get_settings()
    config = AppConfig()

    config.openlist.url = settings.openlist_url
    config.openlist.username = settings.openlist_username
    config.openlist.password = settings.openlist_password
    config.openlist.root_path = settings.openlist_root_path
    config.site.tmdb_api_key = settings.tmdb_api_key
    config.site.tmdb_proxy = settings.tmdb_proxy

    return config


def save_config(config: AppConfig) -> None:
    """Save application configuration to file."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        json.dump(config.model_dump(), f, indent=2, default=str)


def get_config() -> AppConfig:
    """Get current application configuration (thread-safe)."""
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = load_config()

    return _config_instance


def update_config(updates: Dict[str, Any]) -> AppConfig:
    """Update configuration with new values (thread-safe)."""
    global _config_instance

    with _config_lock:
        config = get_config()

        config_dict = config.model_dump()
        _deep_merge(config_dict, updates)

        _config_instance = AppConfig(**config_dict)
        save_config(_config_instance)

    return _config_instance


def reload_config() -> AppConfig:
    """Force reload configuration from disk."""
    global _config_instance

    with _config_lock:
        _config_instance = load_config()

    return _config_instance


def reset_settings() -> None:
    """Drop cached settings and config so the next access re-reads them."""
    global _settings_instance, _config_instance

    with _settings_lock:
        _settings_instance = None
    with _config_lock:
        _config_instance = None


def _deep_merge(base: dict, updates: dict) -> None:
    """Deep merge updates into base dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
