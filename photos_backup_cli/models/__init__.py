"""
Data Models Layer.

This package contains the models that define the core data structures
used throughout the application: run configuration, statistics, and the
remote and local representations of media items.
"""

from .config import BackupOptions
from .media_item import LocalLibraryItem, MediaPage, RemoteItem
from .stats import RunStats, StatsSnapshot

__all__ = [
    "BackupOptions",
    "LocalLibraryItem",
    "MediaPage",
    "RemoteItem",
    "RunStats",
    "StatsSnapshot",
]
