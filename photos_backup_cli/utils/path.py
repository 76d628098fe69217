"""
Utilities for computing where items and their sidecars live on disk.
"""

import hashlib
import mimetypes
import os
from pathlib import Path
from typing import Optional

from pathvalidate import sanitize_filename

from photos_backup_cli.models.config import BackupOptions
from photos_backup_cli.models.media_item import EPOCH, LocalLibraryItem, RemoteItem

# Built-in table only, so host mime.types files cannot reorder extensions
_MIME_TYPES = mimetypes.MimeTypes(filenames=())


def extension_for_mime_type(mime_type: str) -> str:
    """Returns the canonical extension (with the dot) for a MIME type, or ''."""
    if not mime_type:
        return ""
    return _MIME_TYPES.guess_extension(mime_type.lower()) or ""


def add_conflict_suffix(file_name: str, conflict: int) -> str:
    """Inserts ' (n)' before the extension, e.g. 'a.jpg' -> 'a (1).jpg'."""
    if conflict <= 0:
        return file_name
    stem, ext = os.path.splitext(file_name)
    return f"{stem} ({conflict}){ext}"


class NamingResolver:
    """
    Maps media items to their sidecar and content paths under the backup folder.

    Two layouts are supported. With `use_file_name` the remote file name is
    kept and the sidecar is a hidden `.<id>.json` beside it. Otherwise the
    legacy layout derives names from the creation day and item id, or from an
    MD5 of the id when no creation time is known.
    """

    def __init__(self, options: BackupOptions) -> None:
        self.options = options
        self.root = Path(options.backup_folder)

    def folder_for(self, item: RemoteItem) -> Path:
        """Dated folder for an item; unknown creation times land in 1970."""
        created = item.created_at or EPOCH
        return self.root / created.strftime(self.options.folder_format)

    def legacy_prefix(self, item: RemoteItem) -> Path:
        """Extensionless legacy path shared by the content file and its sidecar."""
        created = item.created_at
        if created is not None:
            return self.folder_for(item) / f"{created.day}_{item.id[-8:]}"
        digest = hashlib.md5(item.id.encode("utf-8")).hexdigest()  # noqa: S324
        return self.root / digest[:4] / digest[4:8] / digest[8:]

    def content_dir(self, item: RemoteItem) -> Path:
        if self.options.use_file_name:
            return self.folder_for(item)
        return self.legacy_prefix(item).parent

    def sidecar_path(self, item: RemoteItem) -> Path:
        if self.options.use_file_name:
            return self.folder_for(item) / f".{item.id}.json"
        prefix = self.legacy_prefix(item)
        return prefix.with_name(prefix.name + ".json")

    def base_name(self, item: RemoteItem) -> str:
        if self.options.use_file_name:
            return sanitize_filename(item.filename, platform="auto") or item.id
        return self.legacy_prefix(item).name + extension_for_mime_type(
            item.mime_type
        )

    def candidate_name(self, item: RemoteItem, conflict: int) -> str:
        """The file name to try for the given conflict index."""
        return add_conflict_suffix(self.base_name(item), conflict)

    def content_path(self, item: LocalLibraryItem) -> Path:
        return self.content_dir(item.media_item) / item.used_file_name

    def resolve(
        self, item: RemoteItem, max_conflicts: Optional[int] = None
    ) -> LocalLibraryItem:
        """
        Picks the smallest conflict index whose content path is still free.

        Must run sequentially with the placeholder reservation of the previous
        item, otherwise two items could be handed the same name.
        """
        directory = self.content_dir(item)
        conflict = 0
        while True:
            name = self.candidate_name(item, conflict)
            if not (directory / name).exists():
                return LocalLibraryItem(item, name)
            conflict += 1
            if max_conflicts is not None and conflict > max_conflicts:
                raise FileExistsError(
                    f"No free file name for item {item.id} in '{directory}'"
                )
