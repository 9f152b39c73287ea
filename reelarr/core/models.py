"""Metainfo produced by a catalog refresh."""

import time
from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class FolderMeta(BaseModel):
    """TMDB metadata for one folder under the catalog root."""
    tmdb_id: int = 0  # 0 means no match
    title: str
    poster_path: Optional[str] = None
    release_date: str = ""
    overview: str = ""
    vote_average: float = 0.0
    media_type: str = "movie"
    last_updated: int = Field(default_factory=now_ms)
    failed: bool = False

    @model_validator(mode="after")
    def _failed_has_no_match(self) -> "FolderMeta":
        if self.failed and self.tmdb_id != 0:
            raise ValueError("A failed folder cannot carry a TMDB id")
        return self

    @classmethod
    def degraded(cls, folder_name: str) -> "FolderMeta":
        """Placeholder for a folder TMDB could not match."""
        return cls(tmdb_id=0, title=folder_name, failed=True)


class MetaInfo(BaseModel):
    """Consolidated folder map for one catalog root."""
    folders: Dict[str, FolderMeta] = Field(default_factory=dict)
    last_refresh: int = Field(default_factory=now_ms)
