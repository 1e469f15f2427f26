"""Redis cache backend built on ``redis.asyncio``."""

from logging import getLogger
from typing import Any
from typing import Optional

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ttb_cachex.exceptions import CacheError

from .base import BaseCacheBackend

logger = getLogger(__name__)


class AsyncRedisCacheBackend(BaseCacheBackend):
    """Redis cache backend sharing one client across all requests.

    The client reconnects on its own: connection and timeout errors are
    retried with exponential backoff before being reported, and idle
    connections are health-checked. Any error that survives the retries is
    raised as :class:`CacheError`.

    Args:
        host: Redis host
        port: Redis port
        db: Redis database number
        password: Optional Redis password
        socket_timeout: Seconds to wait for a reply to any command
        socket_connect_timeout: Seconds to wait for a connection
        retries: Number of retries on connection or timeout errors
        key_prefix: Prefix applied to every key in Redis
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        socket_timeout: float = 2.0,
        socket_connect_timeout: float = 2.0,
        retries: int = 2,
        key_prefix: str = "",
    ) -> None:
        self.key_prefix = key_prefix
        self.client = Redis(
            host=host,
            port=port,
            db=db,
            password=password,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
            retry=Retry(ExponentialBackoff(cap=1.0, base=0.05), retries),
            retry_on_error=[RedisConnectionError, RedisTimeoutError],
            health_check_interval=30,
            decode_responses=True,
        )
        self._address = f"{host}:{port}"

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def connect(self) -> None:
        """Ping Redis once at startup.

        A failed ping is logged, not raised: the service still starts and the
        client keeps reconnecting on later commands.
        """
        try:
            await self.client.ping()
        except RedisError as exc:
            logger.error("Could not reach Redis at %s: %s", self._address, exc)
        else:
            logger.info("Connected to Redis at %s", self._address)

    async def close(self) -> None:
        await self.client.aclose()

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(self._make_key(key))
        except RedisError as exc:
            raise CacheError(f"Redis GET failed for {key!r}: {exc}") from exc

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        try:
            if ttl is None:
                await self.client.set(self._make_key(key), value)
            else:
                await self.client.setex(self._make_key(key), ttl, value)
        except RedisError as exc:
            raise CacheError(f"Redis SETEX failed for {key!r}: {exc}") from exc

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(self._make_key(key))
        except RedisError as exc:
            raise CacheError(f"Redis DEL failed for {key!r}: {exc}") from exc

    async def clear(self) -> None:
        """Remove every key under the prefix, or flush the database without one."""
        try:
            if not self.key_prefix:
                await self.client.flushdb()
                return
            keys = [k async for k in self.client.scan_iter(match=f"{self.key_prefix}*")]
            if keys:
                await self.client.delete(*keys)
        except RedisError as exc:
            raise CacheError(f"Redis clear failed: {exc}") from exc

    async def stats(self) -> dict[str, Any]:
        try:
            info = await self.client.info("stats")
        except RedisError as exc:
            raise CacheError(f"Redis INFO failed: {exc}") from exc
        return {"redis_stats": info}
