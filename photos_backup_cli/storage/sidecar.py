"""
Reads and writes the per-item JSON sidecars that record what has been backed up.

A sidecar's presence on disk is the resume checkpoint: once written it is never
rewritten, and the file name recorded in it is reused verbatim on later runs.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from photos_backup_cli.exceptions import SidecarConflictError, SidecarCorruptError
from photos_backup_cli.models.media_item import LocalLibraryItem

log = logging.getLogger(__name__)


class SidecarStore:
    """Write-once storage of LocalLibraryItem records."""

    def _load_sync(self, path: Path) -> Optional[LocalLibraryItem]:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return LocalLibraryItem.from_json(text)
        except (json.JSONDecodeError, ValidationError, ValueError) as e:
            raise SidecarCorruptError(f"Corrupt sidecar '{path}': {e}") from e

    def _save_sync(self, item: LocalLibraryItem, path: Path) -> bool:
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, "x", encoding="utf-8") as f:
                f.write(item.to_json())
        except FileExistsError:
            return False
        return True

    async def load(self, path: Path) -> Optional[LocalLibraryItem]:
        """
        Loads the sidecar at `path`.

        Returns:
            The stored item, or None if no sidecar exists.

        Raises:
            SidecarCorruptError: If the file exists but is not a valid record.
            OSError: If the file exists but cannot be read.
        """
        return await asyncio.to_thread(self._load_sync, path)

    async def load_for(
        self, path: Path, item_id: str
    ) -> Optional[LocalLibraryItem]:
        """Loads a sidecar and checks it belongs to the given item."""
        stored = await self.load(path)
        if stored is not None and stored.id != item_id:
            raise SidecarConflictError(
                f"Sidecar '{path}' belongs to item {stored.id}, not {item_id}"
            )
        return stored

    async def save(self, item: LocalLibraryItem, path: Path) -> bool:
        """
        Writes the sidecar unless one already exists at `path`.

        Returns:
            True if a new sidecar was written, False if one was already present.
        """
        written = await asyncio.to_thread(self._save_sync, item, path)
        if written:
            log.info(f"Creating JSON for '{item.used_file_name}'")
        return written
