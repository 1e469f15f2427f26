"""Caching forwarder between the public API namespace and the upstream API."""

import asyncio
import json
from logging import getLogger
from typing import Optional

from fastapi import Response
from fastapi.responses import JSONResponse
from starlette.status import HTTP_200_OK
from starlette.status import HTTP_502_BAD_GATEWAY

from ttb_cachex.backends import BaseCacheBackend
from ttb_cachex.exceptions import CacheError
from ttb_cachex.exceptions import UpstreamUnavailableError
from ttb_cachex.keys import derive_key
from ttb_cachex.types import CACHED_CONTENT_TYPE
from ttb_cachex.types import DEFAULT_CONTENT_TYPE
from ttb_cachex.types import CacheStatus
from ttb_cachex.types import ProxyRequest
from ttb_cachex.upstream import UpstreamClient

logger = getLogger(__name__)

DEFAULT_CACHE_TTL = 28800
DEFAULT_USER_AGENT = "ttb-cachex-proxy"
CACHE_HEADER = "X-Cache"

_BODYLESS_METHODS = frozenset({"GET", "HEAD"})
_VERBOSE_METHODS = frozenset({"POST", "PUT", "PATCH"})


class CachingForwarder:
    """Serve API requests from the cache, falling back to the upstream API.

    Each call looks up the derived cache key, makes at most one upstream call
    on a miss, and stores 2xx bodies for ``ttl`` seconds. Cache failures are
    logged and treated as misses; they never reach the caller.

    Args:
        backend: Cache store shared by every request
        upstream: Client for the upstream API
        ttl: Seconds a stored response stays valid
        upstream_prefix: Namespace the upstream serves the API under
        cache_timeout: Seconds allowed for a single cache lookup or store
        verbose: Log forwarded headers and bodies for requests that carry one
    """

    def __init__(
        self,
        backend: BaseCacheBackend,
        upstream: UpstreamClient,
        *,
        ttl: int = DEFAULT_CACHE_TTL,
        upstream_prefix: str = "/ttb",
        cache_timeout: float = 2.0,
        verbose: bool = False,
    ) -> None:
        self.backend = backend
        self.upstream = upstream
        self.ttl = ttl
        self.upstream_prefix = "/" + upstream_prefix.strip("/")
        self.cache_timeout = cache_timeout
        self.verbose = verbose

    def upstream_path(self, path: str) -> str:
        """Map a prefix-stripped public path onto the upstream namespace."""
        return f"{self.upstream_prefix}/{path.lstrip('/')}"

    @staticmethod
    def upstream_headers(request: ProxyRequest) -> dict[str, str]:
        headers = {
            "Accept": request.headers.get("accept") or "*/*",
            "User-Agent": request.headers.get("user-agent") or DEFAULT_USER_AGENT,
        }
        if request.headers.get("content-type"):
            headers["Content-Type"] = request.headers["content-type"]
        return headers

    async def lookup(self, key: str) -> Optional[str]:
        try:
            return await asyncio.wait_for(self.backend.get(key), self.cache_timeout)
        except (CacheError, asyncio.TimeoutError) as exc:
            logger.warning("Cache lookup failed for %s, treating as miss: %s", key, exc)
            return None

    async def store(self, key: str, value: str) -> bool:
        try:
            await asyncio.wait_for(
                self.backend.set(key, value, ttl=self.ttl), self.cache_timeout
            )
        except (CacheError, asyncio.TimeoutError) as exc:
            logger.error("Failed to store %s in cache: %s", key, exc)
            return False
        logger.info("Stored in cache: %s (TTL: %ss)", key, self.ttl)
        return True

    def _log_forward(self, request: ProxyRequest, headers: dict[str, str], url: str) -> None:
        logger.info("[Proxy] %s -> %s", request.method, url)
        if self.verbose and request.method in _VERBOSE_METHODS:
            logger.info("  Headers: %s", json.dumps(headers))
            logger.info("  Body: %s", request.body.decode("utf-8", errors="replace"))

    async def handle(self, request: ProxyRequest) -> Response:
        key = derive_key(request)

        if key is not None:
            cached = await self.lookup(key)
            if cached is not None:
                logger.debug("Cache hit: %s", key)
                return Response(
                    content=cached,
                    status_code=HTTP_200_OK,
                    media_type=CACHED_CONTENT_TYPE,
                    headers={CACHE_HEADER: CacheStatus.HIT.value},
                )

        path = self.upstream_path(request.path)
        headers = self.upstream_headers(request)
        self._log_forward(
            request, headers, self.upstream.build_url(path, request.query_string)
        )

        try:
            upstream = await self.upstream.send(
                request.method,
                path,
                query_string=request.query_string,
                headers=headers,
                content=None if request.method in _BODYLESS_METHODS else request.body,
            )
        except UpstreamUnavailableError as exc:
            logger.error("Backend request error: %s", exc)
            return JSONResponse(
                status_code=HTTP_502_BAD_GATEWAY,
                content={"error": "Failed to connect to backend", "message": str(exc)},
                headers={CACHE_HEADER: CacheStatus.BYPASS.value},
            )

        status = CacheStatus.BYPASS
        if key is not None and upstream.is_success and await self.store(key, upstream.text):
            status = CacheStatus.MISS

        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            headers={
                CACHE_HEADER: status.value,
                "Content-Type": upstream.content_type or DEFAULT_CONTENT_TYPE,
            },
        )
