"""
Core application engine for orchestrating the backup process.

This package contains the primary logic. The `BackupManager` walks the
library page by page, delegating each item to the `ItemProcessor`, whose
downloads run inside a bounded `DownloadTaskGroup`.
"""
