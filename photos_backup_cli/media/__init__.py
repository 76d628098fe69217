"""
Media Transfer Layer.

This package is responsible for fetching media content: bandwidth shaping,
placeholder reservation, streaming to disk and timestamp restoration.
"""

from .downloader import MediaDownloader
from .throttle import RateLimiter

__all__ = ["MediaDownloader", "RateLimiter"]
