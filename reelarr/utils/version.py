"""
Centralized version management for Reelarr.

The version is read from the VERSION file at the project root so the API,
logs and package metadata all report the same string.

Usage:
    from reelarr.utils.version import VERSION
"""

import os
from pathlib import Path
from datetime import datetime

_PROJECT_ROOT = Path(__file__).parent.parent.parent

_VERSION_FILE = _PROJECT_ROOT / "VERSION"

_FALLBACK_VERSION = "2610.1.0"


def _read_version() -> str:
    """Read version from VERSION file, with fallback."""
    for candidate in (_VERSION_FILE, Path("/app/VERSION")):
        try:
            if candidate.exists():
                return candidate.read_text().strip()
        except OSError:
            continue

    return _FALLBACK_VERSION


# Public API - single source of truth for version
VERSION = _read_version()

# Build date - can be set via environment variable during Docker build
BUILD_DATE = os.environ.get("BUILD_DATE", datetime.now().strftime("%Y-%m-%d"))


def get_version_info() -> dict:
    """Get version, build date and the file the version came from."""
    return {
        "version": VERSION,
        "build_date": BUILD_DATE,
        "version_file": str(_VERSION_FILE) if _VERSION_FILE.exists() else None,
    }
