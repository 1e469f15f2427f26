"""HTTP routes: the proxied API namespace plus health and cache diagnostics."""

from datetime import datetime
from datetime import timezone
from logging import getLogger
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI
from fastapi import Request
from fastapi import Response
from fastapi.responses import JSONResponse
from starlette.status import HTTP_204_NO_CONTENT
from starlette.status import HTTP_403_FORBIDDEN
from starlette.status import HTTP_413_REQUEST_ENTITY_TOO_LARGE
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from ttb_cachex.backends import BaseCacheBackend
from ttb_cachex.cors import cors_headers
from ttb_cachex.cors import is_allowed_origin
from ttb_cachex.cors import preflight_headers
from ttb_cachex.exceptions import CacheError
from ttb_cachex.proxy import CachingForwarder
from ttb_cachex.types import ProxyRequest

logger = getLogger(__name__)

PROXIED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD"]
FORWARDED_HEADERS = ("content-type", "accept", "user-agent", "origin")


def api_path(request: Request, api_prefix: str) -> str:
    """Return the request path, still percent-encoded, with the API prefix stripped."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.decode("latin-1").split("?", 1)[0]
    else:
        path = quote(request.scope["path"])
    if path == api_prefix:
        return ""
    if path.startswith(api_prefix + "/"):
        return path[len(api_prefix) + 1 :]
    return path.lstrip("/")


async def read_body(request: Request, limit: int) -> Optional[bytes]:
    """Read the request body, or return None once it grows past ``limit`` bytes."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        return None

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            return None
    return bytes(body)


def to_proxy_request(request: Request, path: str, body: bytes) -> ProxyRequest:
    """Capture the parts of an inbound request the forwarder needs."""
    return ProxyRequest(
        method=request.method.upper(),
        path=path,
        query_string=request.url.query,
        query_params=list(request.query_params.multi_items()),
        body=body,
        headers={
            name: request.headers[name]
            for name in FORWARDED_HEADERS
            if name in request.headers
        },
    )


def _forbidden_origin(origin: str) -> JSONResponse:
    logger.warning("Rejected request from origin %s", origin)
    return JSONResponse(
        status_code=HTTP_403_FORBIDDEN,
        content={"error": "Not allowed by CORS"},
    )


def add_routes(app: FastAPI, api_prefix: str = "/api") -> None:
    """Register the proxy, health and cache statistics routes.

    The forwarder, cache backend, origin allow-list and body size limit are
    read from ``app.state`` at request time.
    """
    api_prefix = "/" + api_prefix.strip("/")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/cache/stats")
    async def cache_stats(request: Request) -> JSONResponse:
        backend: BaseCacheBackend = request.app.state.backend
        try:
            stats = await backend.stats()
        except CacheError as exc:
            logger.error("Failed to get cache stats: %s", exc)
            return JSONResponse(
                status_code=HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Failed to get cache stats"},
            )
        return JSONResponse(content=stats)

    @app.options(api_prefix + "/{path:path}")
    async def preflight(request: Request, path: str) -> Response:
        origin = request.headers.get("origin")
        if not is_allowed_origin(origin, request.app.state.allowed_origins):
            return _forbidden_origin(origin)
        return Response(status_code=HTTP_204_NO_CONTENT, headers=preflight_headers(origin))

    @app.api_route(api_prefix + "/{path:path}", methods=PROXIED_METHODS)
    async def forward(request: Request) -> Response:
        origin = request.headers.get("origin")
        if not is_allowed_origin(origin, request.app.state.allowed_origins):
            return _forbidden_origin(origin)

        body = await read_body(request, request.app.state.max_body_size)
        if body is None:
            return JSONResponse(
                status_code=HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"error": "Request body too large"},
                headers=cors_headers(origin),
            )

        forwarder: CachingForwarder = request.app.state.forwarder
        proxy_request = to_proxy_request(request, api_path(request, api_prefix), body)
        response = await forwarder.handle(proxy_request)
        response.headers.update(cors_headers(origin))
        return response
