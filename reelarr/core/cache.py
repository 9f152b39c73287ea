"""In-memory cache of consolidated metainfo, keyed by catalog root."""

import threading
import time
from typing import Dict, Optional, Tuple

import structlog

from reelarr.core.models import MetaInfo

logger = structlog.get_logger(__name__)


def normalize_root(root_path: str) -> str:
    """Map equivalent spellings of a root ("/media/", "/media") to one key."""
    path = (root_path or "").strip()
    if not path:
        return "/"
    if not path.startswith("/"):
        path = "/" + path
    return path.rstrip("/") or "/"


class MetaInfoCache:
    """Thread-safe TTL cache in front of the stored metainfo."""

    def __init__(self, ttl_seconds: float = 3600):
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[str, Tuple[float, MetaInfo]] = {}
        self._lock = threading.Lock()

    def get(self, root_path: str) -> Optional[MetaInfo]:
        key = normalize_root(root_path)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if time.monotonic() - stored_at > self.ttl_seconds:
                del self._entries[key]
                logger.debug("Metainfo cache expired", root=key)
                return None
            return value

    def set(self, root_path: str, value: MetaInfo) -> None:
        key = normalize_root(root_path)
        with self._lock:
            self._entries[key] = (time.monotonic(), value)
        logger.debug("Metainfo cached", root=key, folders=len(value.folders))

    def invalidate(self, root_path: str) -> None:
        key = normalize_root(root_path)
        with self._lock:
            self._entries.pop(key, None)
        logger.debug("Metainfo cache invalidated", root=key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
