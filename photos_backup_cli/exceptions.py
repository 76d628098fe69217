"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class PhotosBackupError(Exception):
    """Base exception for all application-specific errors."""


class AuthenticationError(PhotosBackupError):
    """Raised when the OAuth token is missing, expired or rejected by the API."""


class ApiError(PhotosBackupError):
    """Raised when a call to the Photos Library listing API fails."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class ConfigurationError(PhotosBackupError):
    """Raised for issues related to configuration loading or validation."""


class SidecarCorruptError(PhotosBackupError):
    """Raised when a metadata sidecar exists but cannot be decoded."""


class SidecarConflictError(PhotosBackupError):
    """
    Raised when the sidecar found at an item's path belongs to a different item.
    """


class DownloadError(PhotosBackupError):
    """Raised when media content cannot be fetched for a non-transient reason."""
