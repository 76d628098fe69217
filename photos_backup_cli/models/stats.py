"""
Run statistics shared by the page driver and every fetch task.
"""

import threading
import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class StatsSnapshot:
    """A consistent, read-only view of the counters at one point in time."""

    total: int
    downloaded: int
    skipped: int
    errors: int
    total_size: int
    elapsed: float


@dataclass
class RunStats:
    """
    Tracks statistics for a backup run.

    Counters only ever grow. Every mutation and every snapshot happens under the
    same lock, so fetch tasks may update from worker threads as well as from the
    event loop.
    """

    total: int = 0
    downloaded: int = 0
    skipped: int = 0
    errors: int = 0
    total_size: int = 0
    _started_at: float = field(default_factory=time.monotonic, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_seen(self, count: int = 1) -> None:
        with self._lock:
            self.total += count

    def record_download(self, size: int, count: int = 1) -> None:
        """Adds a completed download and the number of bytes it transferred."""
        with self._lock:
            self.total_size += size
            self.downloaded += count

    def record_skip(self, count: int = 1) -> None:
        with self._lock:
            self.skipped += count

    def record_error(self, count: int = 1) -> None:
        with self._lock:
            self.errors += count

    def snapshot(self) -> StatsSnapshot:
        """Returns all counters read under a single lock acquisition."""
        with self._lock:
            return StatsSnapshot(
                total=self.total,
                downloaded=self.downloaded,
                skipped=self.skipped,
                errors=self.errors,
                total_size=self.total_size,
                elapsed=time.monotonic() - self._started_at,
            )
