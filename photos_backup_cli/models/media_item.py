"""
Models for items listed by the Photos Library API and their local records.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

USED_FILE_NAME_KEY = "UsedFileName"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_rfc3339(value: Optional[str]) -> Optional[datetime]:
    """
    Parses an RFC 3339 timestamp as sent by the API.

    Returns None when the value is missing or cannot be parsed, never the
    current time.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


class _ApiModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True
        extra = "allow"


class MediaMetadata(_ApiModel):
    """Capture metadata; photo and video detail blocks pass through untouched."""

    creation_time: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class RemoteItem(_ApiModel):
    """A media item exactly as returned by mediaItems:search."""

    id: str
    base_url: str = ""
    mime_type: str = ""
    filename: str = ""
    product_url: Optional[str] = None
    description: Optional[str] = None
    media_metadata: MediaMetadata = Field(default_factory=MediaMetadata)

    @property
    def created_at(self) -> Optional[datetime]:
        return parse_rfc3339(self.media_metadata.creation_time)

    @property
    def is_video(self) -> bool:
        return self.mime_type.lower().startswith("video")

    def to_api_dict(self) -> dict[str, Any]:
        """Serializes back to the API's camelCase shape."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class MediaPage(BaseModel):
    """One page of listing results."""

    items: list[RemoteItem] = Field(default_factory=list)
    next_page_token: str = ""


@dataclass(frozen=True)
class LocalLibraryItem:
    """
    A remote item paired with the file name actually used on disk.

    The remote record is held as a field rather than inherited, and `to_json`
    flattens both into the single sidecar document.
    """

    media_item: RemoteItem
    used_file_name: str = ""

    @property
    def id(self) -> str:
        return self.media_item.id

    def to_dict(self) -> dict[str, Any]:
        document = self.media_item.to_api_dict()
        document[USED_FILE_NAME_KEY] = self.used_file_name
        return document

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, document: dict[str, Any]) -> "LocalLibraryItem":
        """
        Rebuilds an item from a sidecar document.

        Raises:
            ValueError: If the document is not a valid item record.
        """
        if not isinstance(document, dict):
            raise ValueError("Sidecar document must be a JSON object.")
        fields = dict(document)
        used_file_name = fields.pop(USED_FILE_NAME_KEY, "")
        if not isinstance(used_file_name, str):
            raise ValueError(f"'{USED_FILE_NAME_KEY}' must be a string.")
        return cls(RemoteItem.model_validate(fields), used_file_name)

    @classmethod
    def from_json(cls, text: str) -> "LocalLibraryItem":
        return cls.from_dict(json.loads(text))
