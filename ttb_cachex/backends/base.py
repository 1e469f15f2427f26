from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Optional


class BaseCacheBackend(ABC):
    """Base class for all cache backends.

    Implementations raise :class:`~ttb_cachex.exceptions.CacheError` when the
    underlying store fails; callers decide whether that is fatal.
    """

    async def connect(self) -> None:
        """Prepare the backend before the service accepts traffic."""

    async def close(self) -> None:
        """Release connections held by the backend."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Retrieve a cached response body."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store a response body, expiring after ``ttl`` seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a response body from the cache."""

    @abstractmethod
    async def clear(self) -> None:
        """Clear all cached response bodies."""

    @abstractmethod
    async def stats(self) -> dict[str, Any]:
        """Return backend statistics for diagnostics."""
