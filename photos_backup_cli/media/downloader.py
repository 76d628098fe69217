"""
Handles the low-level downloading of media content over HTTP with retries,
bandwidth shaping and restoration of the original capture time.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import aiofiles
import aiohttp

from photos_backup_cli.exceptions import DownloadError
from photos_backup_cli.models.config import BackupOptions
from photos_backup_cli.models.media_item import LocalLibraryItem
from photos_backup_cli.models.stats import RunStats
from photos_backup_cli.utils.formatting import format_size

from .throttle import RateLimiter

log = logging.getLogger(__name__)

# Statuses worth retrying; anything else from the CDN is final for this run
RETRYABLE_STATUSES = {408, 429, 500, 502, 503, 504}


def build_download_url(item: LocalLibraryItem, include_exif: bool) -> str:
    """
    Chooses the content URL for an item.

    Videos use the full download suffix. Photos either keep their embedded
    metadata (full download) or are requested at their recorded dimensions,
    which strips EXIF.
    """
    media = item.media_item
    if media.is_video:
        return f"{media.base_url}=dv"
    width = media.media_metadata.width
    height = media.media_metadata.height
    if include_exif or not (width and height):
        return f"{media.base_url}=d"
    return f"{media.base_url}=w{width}-h{height}"


def restore_timestamp(path: Path, item: LocalLibraryItem) -> bool:
    """
    Sets the file's mtime to the item's creation time and its atime to now.

    Returns False when the item has no usable creation time.
    """
    created = item.media_item.created_at
    if created is None:
        return False
    os.utime(path, (time.time(), created.timestamp()))
    return True


class MediaDownloader:
    """Fetches item content into reserved placeholder files."""

    def __init__(
        self,
        options: BackupOptions,
        stats: RunStats,
        session: aiohttp.ClientSession | None = None,
        max_attempts: int = 3,
        base_delay: float = 1.5,
    ):
        self.options = options
        self.stats = stats
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Gets or lazily creates the session shared by all download tasks."""
        if self._session is None or self._session.closed:
            workers = self.options.concurrent_downloads
            connector = aiohttp.TCPConnector(
                limit=workers * 2,
                limit_per_host=workers,
                ttl_dns_cache=600,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )
            timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
            self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
            self._owns_session = True
            log.debug(f"Created download pool with limit_per_host={workers}")
        return self._session

    async def close(self) -> None:
        """Closes the session if this downloader created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            log.debug("Download connection pool closed.")

    @staticmethod
    def _reserve_sync(path: Path) -> bool:
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, "xb"):
                pass
        except FileExistsError:
            return False
        return True

    async def reserve(self, path: Path) -> bool:
        """
        Atomically creates an empty placeholder at `path`.

        The placeholder claims the name before any network I/O starts, so the
        next item's name resolution sees it as taken.

        Returns:
            False if the path already exists and the item should be skipped.
        """
        return await asyncio.to_thread(self._reserve_sync, path)

    @staticmethod
    def _release_sync(path: Path) -> None:
        """Removes a placeholder that never received content."""
        try:
            if path.stat().st_size == 0:
                path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            log.debug(f"Could not remove placeholder '{path}': {e}")

    async def _fetch_to(self, url: str, part_path: Path, name: str) -> int:
        """Streams the response body to `part_path` and returns the byte count."""
        session = await self._get_session()
        limiter = RateLimiter.for_task(
            self.options.download_throttle, self.options.concurrent_downloads
        )
        async with session.get(url, allow_redirects=True) as response:
            if response.status >= 400 and response.status not in RETRYABLE_STATUSES:
                raise DownloadError(
                    f"Server returned HTTP {response.status} for '{name}'"
                )
            response.raise_for_status()
            bytes_downloaded = 0
            async with aiofiles.open(part_path, "wb") as f:
                async for chunk in limiter.iter_chunks(response.content):
                    await f.write(chunk)
                    bytes_downloaded += len(chunk)
        return bytes_downloaded

    async def download(self, item: LocalLibraryItem, path: Path) -> int:
        """
        Downloads the item's content over the placeholder at `path`.

        The body is written to a sibling `.part` file which replaces the
        placeholder only once complete and closed.

        Returns:
            The number of bytes written.
        """
        url = build_download_url(item, self.options.include_exif)
        part_path = path.with_name(f"{path.name}.{item.id[-8:]}.part")
        last_exception: Exception | None = None
        try:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    size = await self._fetch_to(url, part_path, item.used_file_name)
                    break
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    last_exception = e
                    log.debug(
                        f"Download attempt {attempt}/{self.max_attempts} for "
                        f"'{path.name}' failed: {e}. Retrying..."
                    )
                    if attempt < self.max_attempts:
                        await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))
            else:
                raise last_exception
            await asyncio.to_thread(os.replace, part_path, path)
        except Exception:
            # Free the name so the next run retries the item
            self._release_sync(path)
            raise
        finally:
            if part_path.exists():
                try:
                    os.remove(part_path)
                except OSError:
                    log.debug(f"Could not remove partial file '{part_path}'")

        try:
            await asyncio.to_thread(restore_timestamp, path, item)
        except OSError as e:
            log.warning(
                f"[yellow]Failed writing timestamp to '{path.name}': {e}[/yellow]"
            )

        log.info(
            f"Downloaded '{item.media_item.filename}' [saved as "
            f"'{item.used_file_name}'] ({format_size(size)})"
        )
        self.stats.record_download(size)
        return size
