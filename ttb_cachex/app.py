"""Application factory wiring settings, cache backend and upstream client."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging import getLogger
from typing import Optional

from fastapi import FastAPI

from ttb_cachex.backends import AsyncRedisCacheBackend
from ttb_cachex.backends import BaseCacheBackend
from ttb_cachex.backends import MemoryBackend
from ttb_cachex.config import Settings
from ttb_cachex.proxy import CachingForwarder
from ttb_cachex.routes import add_routes
from ttb_cachex.upstream import UpstreamClient

logger = getLogger(__name__)


def build_backend(settings: Settings) -> BaseCacheBackend:
    """Create the cache backend selected by ``settings.cache_backend``."""
    if settings.cache_backend == "memory":
        return MemoryBackend()
    return AsyncRedisCacheBackend(
        host=settings.redis_host,
        port=settings.redis_port,
        socket_timeout=settings.cache_timeout,
        socket_connect_timeout=settings.cache_timeout,
        key_prefix=settings.redis_key_prefix,
    )


def create_app(
    settings: Settings,
    *,
    backend: Optional[BaseCacheBackend] = None,
    upstream: Optional[UpstreamClient] = None,
) -> FastAPI:
    """Build the proxy application.

    Args:
        settings: Service configuration
        backend: Cache backend to use instead of the configured one
        upstream: Upstream client to use instead of one built from settings

    Returns:
        A FastAPI app whose lifespan connects the cache before serving
    """
    backend = backend if backend is not None else build_backend(settings)
    upstream = (
        upstream
        if upstream is not None
        else UpstreamClient(settings.backend_url, timeout=settings.upstream_timeout)
    )
    forwarder = CachingForwarder(
        backend,
        upstream,
        ttl=settings.cache_ttl,
        upstream_prefix=settings.upstream_prefix,
        cache_timeout=settings.cache_timeout,
        verbose=settings.verbose_proxy_logging,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Setting backend to: <%s>",
            backend.__class__.__name__,
        )
        await backend.connect()
        logger.info("Backend URL: %s", settings.backend_url)
        logger.info("Cache TTL: %s seconds", settings.cache_ttl)
        try:
            yield
        finally:
            await upstream.aclose()
            await backend.close()

    app = FastAPI(title="TTB-CacheX", lifespan=lifespan)
    app.state.settings = settings
    app.state.backend = backend
    app.state.forwarder = forwarder
    app.state.allowed_origins = frozenset(settings.allowed_origins)
    app.state.max_body_size = settings.max_body_size

    add_routes(app, settings.api_prefix)
    return app
