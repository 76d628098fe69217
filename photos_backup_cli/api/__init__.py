"""
Photos Library API Layer.

This package handles all communication with the Google Photos Library API.
"""

from .auth import OAuthTokenProvider
from .client import PhotosLibraryClient

__all__ = ["OAuthTokenProvider", "PhotosLibraryClient"]
