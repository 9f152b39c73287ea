"""
Centralized constants for Reelarr.

Usage:
    from reelarr.utils.constants import TIMEOUTS, OPENLIST
"""


# ============================================================================
# Timeout Configuration (in seconds)
# ============================================================================

class TIMEOUTS:
    """HTTP timeout values, in seconds."""

    HTTP_DEFAULT = 10.0          # TMDB lookups
    HTTP_EXTENDED = 30.0         # OpenList listings (refresh=True walks storage)


# ============================================================================
# OpenList Configuration
# ============================================================================

class OPENLIST:
    """OpenList API constants."""

    SUCCESS_CODE = 200
    UNAUTHORIZED_CODE = 401

    LOGIN_ENDPOINT = "/api/auth/login"
    LIST_ENDPOINT = "/api/fs/list"

    DEFAULT_PAGE_SIZE = 100


# ============================================================================
# TMDB Configuration
# ============================================================================

class TMDB:
    """TMDB API constants."""

    SEARCH_ENDPOINT = "/search/multi"
    SEARCHABLE_MEDIA_TYPES = ("movie", "tv")
    NOT_FOUND_CODE = 404


# ============================================================================
# Storage Keys
# ============================================================================

class STORAGE:
    """Keys used in the global value table."""

    METAINFO_KEY = "video.metainfo"


# ============================================================================
# WebSocket Configuration
# ============================================================================

class WEBSOCKET:
    """WebSocket channel names."""

    SCAN_CHANNEL = "scan"
