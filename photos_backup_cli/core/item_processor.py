"""
Handles the processing of a single media item, from naming to download dispatch.
"""

import logging
from pathlib import Path

from rich.markup import escape

from photos_backup_cli.media.downloader import MediaDownloader
from photos_backup_cli.models.media_item import LocalLibraryItem, RemoteItem
from photos_backup_cli.models.stats import RunStats
from photos_backup_cli.storage.sidecar import SidecarStore
from photos_backup_cli.utils.path import NamingResolver

from .task_group import DownloadTaskGroup

log = logging.getLogger(__name__)


class ItemProcessor:
    """
    Decides what to do with one listed item and hands its download to the task group.

    Everything up to and including the placeholder reservation runs
    sequentially in the caller; only the network fetch runs as a task.
    """

    def __init__(
        self,
        resolver: NamingResolver,
        sidecars: SidecarStore,
        downloader: MediaDownloader,
        stats: RunStats,
    ):
        self.resolver = resolver
        self.sidecars = sidecars
        self.downloader = downloader
        self.stats = stats

    async def prepare(self, item: RemoteItem) -> tuple[LocalLibraryItem, Path]:
        """
        Returns the local record for an item and where its content belongs.

        An existing sidecar wins: its recorded file name is reused as-is and
        no conflict resolution happens. Otherwise a free name is resolved and a
        new sidecar is written.
        """
        sidecar_path = self.resolver.sidecar_path(item)
        local_item = await self.sidecars.load_for(sidecar_path, item.id)
        if local_item is None:
            local_item = self.resolver.resolve(item)
            await self.sidecars.save(local_item, sidecar_path)
        elif not local_item.used_file_name:
            # Older sidecars carry no file name; use the unsuffixed candidate
            local_item = LocalLibraryItem(
                local_item.media_item, self.resolver.candidate_name(item, 0)
            )
        return local_item, self.resolver.content_path(local_item)

    async def process(self, item: RemoteItem, group: DownloadTaskGroup) -> bool:
        """
        Prepares an item and, if its content is missing, queues the download.

        Returns:
            True if a download was queued, False if the item was skipped.
        """
        local_item, content_path = await self.prepare(item)

        if not await self.downloader.reserve(content_path):
            self.stats.record_skip()
            log.info(
                f"[yellow]○ Skipping[/] '{escape(item.filename)}' "
                f"[dim][saved as '{escape(local_item.used_file_name)}'][/dim]"
            )
            return False

        await group.spawn(self._fetch, local_item, content_path)
        return True

    async def _fetch(self, local_item: LocalLibraryItem, content_path: Path) -> None:
        try:
            await self.downloader.download(local_item, content_path)
        except Exception as e:
            self.stats.record_error()
            log.error(
                f"[red]✗ Failed to download[/] '{escape(local_item.media_item.filename)}' "
                f"[id {local_item.id}]: {escape(str(e))}",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            raise
