"""
Pydantic model for application configuration.
Provides robust validation for all settings of a backup run.
"""

import os

from pydantic import BaseModel, Field, field_validator

DEFAULT_FOLDER_FORMAT = os.path.join("%Y", "%B")

# Google caps mediaItems:search at 100 items per page
MAX_PAGE_SIZE = 100


class BackupOptions(BaseModel):
    """A validated, immutable configuration for one backup run."""

    # Credentials
    credentials_file: str = "credentials.json"
    token_file: str = "token.json"

    # Layout
    backup_folder: str = Field(default_factory=os.getcwd)
    folder_format: str = DEFAULT_FOLDER_FORMAT
    use_file_name: bool = False
    include_exif: bool = False

    # Listing
    album_id: str = ""
    max_items: int = 2**31 - 1
    page_size: int = 50
    page_delay: float = 5.0

    # Downloading
    download_throttle: float = 0.0  # KB/sec across all downloads, 0 = unlimited
    concurrent_downloads: int = 5
    fail_fast: bool = True

    class Config:
        """Pydantic model configuration."""

        frozen = True
        str_strip_whitespace = True

    @field_validator("concurrent_downloads")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Ensures a reasonable number of concurrent downloads."""
        if v < 1 or v > 32:
            raise ValueError("Concurrent downloads must be between 1 and 32.")
        return v

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v < 1 or v > MAX_PAGE_SIZE:
            raise ValueError(f"Page size must be between 1 and {MAX_PAGE_SIZE}.")
        return v

    @field_validator("max_items")
    @classmethod
    def validate_max_items(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Max items must be at least 1.")
        return v

    @field_validator("page_delay", "download_throttle")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Delays and throttles cannot be negative.")
        return v

    @field_validator("backup_folder")
    @classmethod
    def validate_backup_folder(cls, v: str) -> str:
        if not v:
            raise ValueError("Backup folder cannot be empty.")
        return os.path.expanduser(v)

    @field_validator("folder_format")
    @classmethod
    def validate_folder_format(cls, v: str) -> str:
        """Validates the strftime pattern used for the dated folder layout."""
        if not v:
            raise ValueError("Folder format cannot be empty.")
        if ".." in v or v.startswith(("/", "\\")):
            raise ValueError(
                "Folder format cannot contain relative '..' or absolute paths."
            )
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        return set(cls.model_fields)
