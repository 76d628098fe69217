"""
Async client for the Google Photos Library API listing endpoint.
"""

import logging
import time
from typing import Any, Dict, Optional

import aiohttp
from pydantic import ValidationError

from photos_backup_cli.exceptions import ApiError, AuthenticationError
from photos_backup_cli.models.media_item import MediaPage, RemoteItem

from .auth import OAuthTokenProvider

log = logging.getLogger(__name__)


class PhotosLibraryClient:
    """
    Minimal async client for the Photos Library API (v1).

    Only paginated search is needed: every failure is surfaced as an
    `ApiError` or `AuthenticationError` and is fatal to the run.
    """

    BASE_URL = "https://photoslibrary.googleapis.com/v1/"

    def __init__(
        self,
        token_provider: OAuthTokenProvider,
        base_url: Optional[str] = None,
    ):
        self.token_provider = token_provider
        self.base_url = base_url or self.BASE_URL
        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Accept": "application/json",
                    "Accept-Encoding": "gzip, deflate",
                },
                timeout=aiohttp.ClientTimeout(total=60, connect=15, sock_read=30),
            )
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def api_call(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Makes an authenticated POST call and returns the decoded JSON body."""
        session = await self._initialize_session()
        token = await self.token_provider.get_access_token(session)
        start_time = time.monotonic()
        try:
            async with session.post(
                self.base_url + endpoint,
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
            ) as r:
                duration_ms = (time.monotonic() - start_time) * 1000
                log.debug(f"API call to {endpoint} -> {r.status} ({duration_ms:.0f} ms)")

                if r.status in (401, 403):
                    raise AuthenticationError(
                        f"The Photos Library API rejected the credentials "
                        f"(HTTP {r.status})."
                    )
                if r.status >= 400:
                    body = await r.text()
                    raise ApiError(
                        f"API call to {endpoint} failed with HTTP {r.status}: "
                        f"{body[:200]}",
                        status=r.status,
                    )
                return await r.json()
        except aiohttp.ClientError as e:
            raise ApiError(f"API call to {endpoint} failed: {e}") from e

    async def search_media_items(
        self, page_size: int, page_token: str = "", album_id: str = ""
    ) -> MediaPage:
        """
        Fetches one page of the library (or of one album).

        An empty `page_token` requests the first page; an empty
        `next_page_token` in the result means there are no more pages.
        """
        payload: Dict[str, Any] = {"pageSize": page_size}
        if page_token:
            payload["pageToken"] = page_token
        if album_id:
            payload["albumId"] = album_id

        response = await self.api_call("mediaItems:search", payload)
        try:
            items = [
                RemoteItem.model_validate(raw)
                for raw in response.get("mediaItems", [])
            ]
        except ValidationError as e:
            raise ApiError(f"Unexpected media item in listing response: {e}") from e
        return MediaPage(items=items, next_page_token=response.get("nextPageToken", ""))
