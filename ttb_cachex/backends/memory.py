import asyncio
import time
from collections.abc import Callable
from logging import getLogger
from typing import Any
from typing import Optional

from ttb_cachex.types import CacheItem

from .base import BaseCacheBackend

logger = getLogger(__name__)


class MemoryBackend(BaseCacheBackend):
    """In-memory cache backend implementation."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.cache: dict[str, CacheItem] = {}
        self.lock = asyncio.Lock()
        self.cleanup_interval = 60
        self.clock = clock
        self.hits = 0
        self.misses = 0
        self._cleanup_handle: Optional[asyncio.Task[None]] = None

    async def connect(self) -> None:
        self.start_cleanup()

    async def close(self) -> None:
        self.stop_cleanup()

    def start_cleanup(self) -> None:
        """Start the periodic expired-entry sweep on the running loop."""
        if self._cleanup_handle is None:
            self._cleanup_handle = asyncio.get_running_loop().create_task(
                self._cleanup_task()
            )

    def stop_cleanup(self) -> None:
        if self._cleanup_handle is not None:
            self._cleanup_handle.cancel()
            self._cleanup_handle = None

    async def get(self, key: str) -> Optional[str]:
        async with self.lock:
            cached_item = self.cache.get(key)
            if cached_item and (
                cached_item.expiry is None or cached_item.expiry > self.clock()
            ):
                self.hits += 1
                return cached_item.value
            self.misses += 1
            return None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        async with self.lock:
            expiry = self.clock() + ttl if ttl is not None else None
            self.cache[key] = CacheItem(value=value, expiry=expiry)

    async def delete(self, key: str) -> None:
        async with self.lock:
            self.cache.pop(key, None)

    async def clear(self) -> None:
        async with self.lock:
            self.cache.clear()

    async def stats(self) -> dict[str, Any]:
        async with self.lock:
            return {
                "memory_stats": {
                    "keys": len(self.cache),
                    "keyspace_hits": self.hits,
                    "keyspace_misses": self.misses,
                }
            }

    async def _cleanup_task(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            await self.cleanup()

    async def cleanup(self) -> None:
        async with self.lock:
            now = self.clock()
            expired_keys = [
                k
                for k, v in self.cache.items()
                if v.expiry is not None and v.expiry <= now
            ]
            for key in expired_keys:
                self.cache.pop(key, None)
        if expired_keys:
            logger.debug("Removed %d expired cache entries", len(expired_keys))
