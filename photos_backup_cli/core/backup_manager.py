"""
The main orchestrator: walks the paginated library listing and feeds every item
through naming, resume checks and the bounded download pipeline.
"""

import asyncio
import logging

from rich.markup import escape

from photos_backup_cli.api.client import PhotosLibraryClient
from photos_backup_cli.exceptions import PhotosBackupError
from photos_backup_cli.media.downloader import MediaDownloader
from photos_backup_cli.models.config import BackupOptions
from photos_backup_cli.models.media_item import MediaPage
from photos_backup_cli.models.stats import RunStats, StatsSnapshot
from photos_backup_cli.storage.sidecar import SidecarStore
from photos_backup_cli.utils.formatting import format_progress
from photos_backup_cli.utils.path import NamingResolver

from .item_processor import ItemProcessor
from .task_group import DownloadTaskGroup

log = logging.getLogger(__name__)


class BackupManager:
    """
    Drives one full pass over the library.

    Pages are handled strictly one after another: every download started for
    a page finishes (successfully or not) before the next page is requested.
    """

    def __init__(
        self,
        options: BackupOptions,
        api_client: PhotosLibraryClient,
        downloader: MediaDownloader | None = None,
        stats: RunStats | None = None,
    ):
        self.options = options
        self.api_client = api_client
        self.stats = stats or RunStats()
        self.downloader = downloader or MediaDownloader(options, self.stats)
        self.processor = ItemProcessor(
            NamingResolver(options),
            SidecarStore(),
            self.downloader,
            self.stats,
        )

    def _cap_reached(self) -> bool:
        return self.stats.total >= self.options.max_items

    async def _fetch_page(self, page_token: str) -> MediaPage:
        log.debug(f"Requesting page (token={page_token or '<first>'})")
        return await self.api_client.search_media_items(
            self.options.page_size, page_token, self.options.album_id
        )

    async def _dispatch_page(
        self, page: MediaPage, group: DownloadTaskGroup
    ) -> Exception | None:
        """
        Runs every item of a page up to the point its download is queued.

        Returns:
            The item error that stopped dispatch in fail-fast mode, if any.
        """
        for item in page.items:
            self.stats.record_seen()
            try:
                await self.processor.process(item, group)
            except (PhotosBackupError, OSError) as e:
                self.stats.record_error()
                log.error(
                    f"[red]✗ Failed to process[/] '{escape(item.filename)}' "
                    f"[id {item.id}]: {escape(str(e))}"
                )
                if self.options.fail_fast:
                    return e

            if self._cap_reached():
                log.info(f"Reached the limit of {self.options.max_items} items.")
                break
        return None

    async def run(self) -> StatsSnapshot:
        """
        Mirrors the library into the backup folder.

        Raises:
            ApiError, AuthenticationError: If a page cannot be listed.
            PhotosBackupError, OSError: The first item failure, in fail-fast mode.
        """
        group = DownloadTaskGroup(
            self.options.concurrent_downloads, fail_fast=self.options.fail_fast
        )
        page_token = ""
        log.info(
            f"Backing up to [cyan]{escape(self.options.backup_folder)}[/cyan] "
            f"with {self.options.concurrent_downloads} concurrent downloads"
        )

        while True:
            page = await self._fetch_page(page_token)
            dispatch_error = await self._dispatch_page(page, group)

            # Barrier: nothing from this page may still be running past here
            await group.wait()
            if dispatch_error is not None:
                raise dispatch_error

            page_token = page.next_page_token
            if not page_token or self._cap_reached():
                break

            log.info(format_progress(self.stats.snapshot()))
            await asyncio.sleep(self.options.page_delay)

        snapshot = self.stats.snapshot()
        log.info(format_progress(snapshot, label="Finished"))
        return snapshot

    async def close(self) -> None:
        await self.downloader.close()
