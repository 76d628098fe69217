"""Shared fixtures for the test suite."""

import asyncio
from collections import Counter
from typing import Any, Optional

from aiohttp import web
from aiohttp.test_utils import TestServer

from photos_backup_cli.models.media_item import MediaPage, RemoteItem


def make_item(
    item_id: str = "12345678901234567890",
    filename: str = "IMG_1234.jpg",
    mime_type: str = "image/jpeg",
    creation_time: Optional[str] = "2019-10-13T17:33:43Z",
    width: Optional[str] = "4032",
    height: Optional[str] = "3024",
    base_url: str = "https://lh3.googleusercontent.com/1234",
) -> RemoteItem:
    """Builds an item from the same JSON shape the API returns."""
    metadata: dict[str, Any] = {}
    if creation_time is not None:
        metadata["creationTime"] = creation_time
    if width is not None:
        metadata["width"] = width
    if height is not None:
        metadata["height"] = height
    return RemoteItem.model_validate(
        {
            "id": item_id,
            "baseUrl": base_url,
            "mimeType": mime_type,
            "filename": filename,
            "mediaMetadata": metadata,
        }
    )


class MediaServer:
    """A local HTTP server standing in for the photo CDN."""

    def __init__(self, body: bytes = b"\xff\xd8image-bytes\xff\xd9"):
        self.body = body
        self.requests: Counter = Counter()
        self.failing: dict[str, int] = {}
        self.delay = 0.0
        self._server: Optional[TestServer] = None

    async def _handle(self, request: web.Request) -> web.Response:
        item_path = request.match_info["tail"]
        self.requests[item_path] += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        for prefix, status in self.failing.items():
            if item_path.startswith(prefix):
                return web.Response(status=status)
        return web.Response(body=self.body, content_type="application/octet-stream")

    async def start(self) -> None:
        app = web.Application()
        app.router.add_get("/media/{tail:.*}", self._handle)
        self._server = TestServer(app)
        await self._server.start_server()

    async def close(self) -> None:
        if self._server:
            await self._server.close()

    def base_url(self, item_id: str) -> str:
        return str(self._server.make_url(f"/media/{item_id}"))

    @property
    def total_requests(self) -> int:
        return sum(self.requests.values())


class FakeLibrary:
    """Stands in for PhotosLibraryClient, serving fixed pages and logging calls."""

    def __init__(self, pages: list[list[RemoteItem]]):
        self.pages = pages
        self.calls: list[dict[str, Any]] = []
        self.on_request = None

    async def search_media_items(
        self, page_size: int, page_token: str = "", album_id: str = ""
    ) -> MediaPage:
        self.calls.append(
            {"page_size": page_size, "page_token": page_token, "album_id": album_id}
        )
        if self.on_request:
            self.on_request(page_token)
        index = int(page_token) if page_token else 0
        next_token = str(index + 1) if index + 1 < len(self.pages) else ""
        return MediaPage(items=self.pages[index], next_page_token=next_token)
