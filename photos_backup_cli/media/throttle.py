"""
Provides a token-bucket rate limiter that shapes download throughput.
"""

import asyncio
import logging
import time
from typing import AsyncIterator

import aiohttp

log = logging.getLogger(__name__)


class RateLimiter:
    """
    Throttles a byte stream to a fixed rate using a token bucket.

    Tokens are bytes. The bucket holds at most one second of budget, so a task
    may burst briefly and is then held to `bytes_per_second`. A rate of zero
    or less disables throttling.
    """

    DEFAULT_CHUNK_SIZE = 65536  # 64 KB

    def __init__(self, bytes_per_second: float = 0.0):
        self.rate = bytes_per_second
        self.capacity = bytes_per_second
        self._tokens = bytes_per_second
        self._last_refill = time.monotonic()

    @classmethod
    def for_task(cls, throttle_kbps: float, concurrency: int) -> "RateLimiter":
        """
        Builds the limiter for one download task.

        The aggregate KB/sec budget is split evenly across the concurrency
        level so the sum of per-task limits approximates the configured ceiling.
        """
        if throttle_kbps <= 0:
            return cls()
        return cls((throttle_kbps * 1024) / max(1, concurrency))

    @property
    def enabled(self) -> bool:
        return self.rate > 0

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
            self._last_refill = now

    async def consume(self, amount: int) -> None:
        """Takes `amount` tokens, sleeping off any resulting debt."""
        if not self.enabled or amount <= 0:
            return
        self._refill()
        self._tokens -= amount
        if self._tokens < 0:
            await asyncio.sleep(-self._tokens / self.rate)

    def chunk_size(self) -> int:
        if not self.enabled:
            return self.DEFAULT_CHUNK_SIZE
        return max(1024, min(self.DEFAULT_CHUNK_SIZE, int(self.rate)))

    async def iter_chunks(
        self, stream: aiohttp.StreamReader
    ) -> AsyncIterator[bytes]:
        """Yields chunks from a response body no faster than the configured rate."""
        async for chunk in stream.iter_chunked(self.chunk_size()):
            await self.consume(len(chunk))
            yield chunk
