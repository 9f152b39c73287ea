"""Test doubles for the refresh pipeline collaborators."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple, Union

from reelarr.core.integrations.openlist import FsListResponse
from reelarr.core.integrations.tmdb import TMDBMatch, TMDBSearchResponse
from reelarr.core.models import MetaInfo


def make_page(entries: Sequence[Tuple[str, bool]], total: int, code: int = 200, message: str = "success") -> FsListResponse:
    """Build a listing page from (name, is_dir) pairs."""
    return FsListResponse.model_validate({
        "code": code,
        "message": message,
        "data": {
            "content": [{"name": name, "is_dir": is_dir} for name, is_dir in entries],
            "total": total,
        },
    })


def paginate(entries: Sequence[Tuple[str, bool]], page_size: int) -> List[FsListResponse]:
    """Split entries into the pages OpenList would return."""
    total = len(entries)
    if not entries:
        return [make_page([], 0)]
    return [
        make_page(entries[start:start + page_size], total)
        for start in range(0, total, page_size)
    ]


def match(tmdb_id: int, title: Optional[str] = None, name: Optional[str] = None, media_type: str = "movie", **extra) -> TMDBSearchResponse:
    return TMDBSearchResponse(
        code=200,
        result=TMDBMatch(id=tmdb_id, title=title, name=name, media_type=media_type, **extra),
    )


class FakeLister:
    """Serves pre-built listing pages and records every request."""

    def __init__(self, pages: List[FsListResponse]):
        self.pages = pages
        self.calls: List[Tuple[str, int, int, bool]] = []
        self.closed = False

    async def list_directory(self, path: str, page: int = 1, per_page: int = 100, refresh: bool = False) -> FsListResponse:
        self.calls.append((path, page, per_page, refresh))
        if page > len(self.pages):
            return make_page([], self.pages[-1].total if self.pages else 0)
        return self.pages[page - 1]

    async def close(self):
        self.closed = True


Outcome = Union[TMDBSearchResponse, Exception]


class FakeResolver:
    """Returns a configured outcome per folder name; unknown names get no match."""

    def __init__(self, outcomes: Optional[Dict[str, Outcome]] = None, on_search=None):
        self.outcomes = outcomes or {}
        self.on_search = on_search
        self.queries: List[str] = []
        self.closed = False

    async def search(self, query: str) -> TMDBSearchResponse:
        self.queries.append(query)
        if self.on_search:
            self.on_search(query)
        outcome = self.outcomes.get(query, TMDBSearchResponse(code=404))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


class FakeStore:
    """In-memory ResultStore stand-in."""

    def __init__(self, fail_on_set: Optional[Exception] = None, fail_on_stats: Optional[Exception] = None):
        self.values: Dict[str, str] = {}
        self.stats: List[Tuple[int, int]] = []
        self.fail_on_set = fail_on_set
        self.fail_on_stats = fail_on_stats

    async def set_global_value(self, key: str, value: str) -> None:
        if self.fail_on_set:
            raise self.fail_on_set
        self.values[key] = value

    async def get_global_value(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def load_metainfo(self) -> Optional[MetaInfo]:
        raw = self.values.get("video.metainfo")
        return MetaInfo.model_validate_json(raw) if raw else None

    async def save_refresh_stats(self, last_refresh_time: int, resource_count: int) -> None:
        if self.fail_on_stats:
            raise self.fail_on_stats
        self.stats.append((last_refresh_time, resource_count))


class FakeWebSocketManager:
    def __init__(self):
        self.messages: List[Tuple[str, dict]] = []

    async def broadcast(self, channel: str, message: dict):
        self.messages.append((channel, message))
