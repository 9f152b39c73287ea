"""OpenList (AList-compatible) API client."""

from typing import Optional, List, Dict, Any

import httpx
import structlog
from pydantic import BaseModel

from reelarr.core.errors import ListingFailure
from reelarr.utils.constants import OPENLIST, TIMEOUTS

logger = structlog.get_logger(__name__)


class FsEntry(BaseModel):
    """One entry of a directory listing."""
    name: str
    is_dir: bool = False
    size: int = 0
    modified: Optional[str] = None


class FsListData(BaseModel):
    content: Optional[List[Optional[FsEntry]]] = None
    total: int = 0


class FsListResponse(BaseModel):
    """Body of ``POST /api/fs/list``."""
    code: int
    message: str = ""
    data: Optional[FsListData] = None

    @property
    def ok(self) -> bool:
        return self.code == OPENLIST.SUCCESS_CODE

    @property
    def items(self) -> List[FsEntry]:
        if not self.data or not self.data.content:
            return []
        return [entry for entry in self.data.content if entry is not None]

    @property
    def total(self) -> int:
        return self.data.total if self.data else 0


class OpenListClient:
    """Client for listing folders on an OpenList server."""

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        timeout: float = TIMEOUTS.HTTP_EXTENDED,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self._transport = transport
        self._token: Optional[str] = None
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def login(self) -> str:
        """Exchange username and password for an API token."""
        client = await self._get_client()
        response = await client.post(
            f"{self.base_url}{OPENLIST.LOGIN_ENDPOINT}",
            json={"username": self.username, "password": self.password},
        )
        body = self._decode(response, "login")

        token = (body.get("data") or {}).get("token")
        if body.get("code") != OPENLIST.SUCCESS_CODE or not token:
            raise ListingFailure(
                f"OpenList login failed: {body.get('message') or 'no token returned'}",
                code=body.get("code"),
            )

        self._token = token
        logger.info("Logged in to OpenList", url=self.base_url, username=self.username)
        return token

    async def _send(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self._token is None:
            await self.login()

        client = await self._get_client()
        response = await client.post(
            f"{self.base_url}{endpoint}",
            json=payload,
            headers={"Authorization": self._token},
        )
        if response.status_code == OPENLIST.UNAUTHORIZED_CODE:
            return {"code": OPENLIST.UNAUTHORIZED_CODE, "message": "unauthorized"}
        return self._decode(response, endpoint)

    @staticmethod
    def _decode(response: httpx.Response, action: str) -> Dict[str, Any]:
        """Return the JSON body, raising ListingFailure for HTTP errors and non-JSON bodies."""
        try:
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise ListingFailure(
                f"OpenList {action} failed with HTTP {response.status_code}",
                code=response.status_code,
            ) from e
        except ValueError as e:
            raise ListingFailure(
                f"OpenList {action} returned an unreadable body",
                code=response.status_code,
            ) from e

        if not isinstance(body, dict):
            raise ListingFailure(f"OpenList {action} returned an unexpected body", code=response.status_code)
        return body

    async def _post_authed(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST with the API token, logging in again once if it was rejected."""
        body = await self._send(endpoint, payload)
        if body.get("code") == OPENLIST.UNAUTHORIZED_CODE:
            logger.info("OpenList token rejected, logging in again", endpoint=endpoint)
            self._token = None
            body = await self._send(endpoint, payload)
        return body

    async def list_directory(
        self,
        path: str,
        page: int = 1,
        per_page: int = OPENLIST.DEFAULT_PAGE_SIZE,
        refresh: bool = False,
    ) -> FsListResponse:
        """List one page of a directory; ``refresh`` bypasses OpenList's own cache."""
        body = await self._post_authed(OPENLIST.LIST_ENDPOINT, {
            "path": path,
            "password": "",
            "page": page,
            "per_page": per_page,
            "refresh": refresh,
        })

        listing = FsListResponse.model_validate(body)
        logger.debug(
            "OpenList page listed",
            path=path, page=page, code=listing.code,
            batch_size=len(listing.items), total=listing.total,
        )
        return listing
