"""TMDB search client."""

from typing import Optional, List, Dict, Any

import httpx
import structlog
from pydantic import BaseModel

from reelarr.utils.constants import TMDB, TIMEOUTS

logger = structlog.get_logger(__name__)


class TMDBMatch(BaseModel):
    """A movie or TV result from ``/search/multi``."""
    id: int
    media_type: str
    title: Optional[str] = None  # movies
    name: Optional[str] = None  # tv
    poster_path: Optional[str] = None
    release_date: Optional[str] = None  # movies
    first_air_date: Optional[str] = None  # tv
    overview: Optional[str] = ""
    vote_average: Optional[float] = 0.0

    @property
    def display_title(self) -> Optional[str]:
        return self.title or self.name

    @property
    def air_date(self) -> str:
        return self.release_date or self.first_air_date or ""


class TMDBSearchResponse(BaseModel):
    """Outcome of a search; ``result`` is None when nothing matched."""
    code: int
    result: Optional[TMDBMatch] = None

    @property
    def matched(self) -> bool:
        return self.code == 200 and self.result is not None


class TMDBClient:
    """Client for looking up folder names on TMDB."""

    def __init__(
        self,
        api_key: str,
        proxy: Optional[str] = None,
        language: str = "zh-CN",
        base_url: str = "https://api.themoviedb.org/3",
        timeout: float = TIMEOUTS.HTTP_DEFAULT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.proxy = proxy or None
        self.language = language
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client, routed through the proxy if one is set."""
        if self._client is None or self._client.is_closed:
            kwargs: Dict[str, Any] = {"timeout": self.timeout}
            if self._transport is not None:
                kwargs["transport"] = self._transport
            elif self.proxy:
                kwargs["proxy"] = self.proxy
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def search(self, query: str) -> TMDBSearchResponse:
        """Return the best movie or TV match for ``query``."""
        client = await self._get_client()
        response = await client.get(
            f"{self.base_url}{TMDB.SEARCH_ENDPOINT}",
            params={
                "api_key": self.api_key,
                "query": query,
                "language": self.language,
                "page": 1,
                "include_adult": "false",
            },
        )

        if response.status_code != 200:
            logger.debug("TMDB search rejected", query=query, status=response.status_code)
            return TMDBSearchResponse(code=response.status_code)

        results: List[Dict[str, Any]] = response.json().get("results") or []
        for item in results:
            if item.get("media_type") in TMDB.SEARCHABLE_MEDIA_TYPES:
                return TMDBSearchResponse(code=200, result=TMDBMatch.model_validate(item))

        return TMDBSearchResponse(code=TMDB.NOT_FOUND_CODE)
