"""Type definitions and type aliases for TTB-CacheX."""

import json
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any

# Separator between the namespace and the fields of a cache key
CACHE_KEY_SEPARATOR = ":"

DEFAULT_CONTENT_TYPE = "application/xml"

# Cached bodies are stored as text and served re-encoded as UTF-8
CACHED_CONTENT_TYPE = "application/xml; charset=utf-8"


class CacheStatus(str, Enum):
    """Value of the ``X-Cache`` marker header."""

    HIT = "HIT"
    MISS = "MISS"
    BYPASS = "BYPASS"


@dataclass
class ProxyRequest:
    """An inbound request on the public API namespace.

    Args:
        method: Upper-case HTTP method
        path: Request path with the public prefix stripped (e.g. ``getPageableCourses``)
        query_string: Raw query string, forwarded upstream unmodified
        query_params: Ordered query pairs; keys may repeat
        body: Raw request body
        headers: Lower-case header names to values
    """

    method: str
    path: str
    query_string: str = ""
    query_params: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    def get_all(self, name: str) -> list[str]:
        """Return every value of a query parameter, in order."""
        return [value for key, value in self.query_params if key == name]

    def get_last(self, name: str) -> str | None:
        """Return the last value of a query parameter."""
        values = self.get_all(name)
        return values[-1] if values else None

    def json(self) -> Any:
        """Return the body parsed as JSON, or None if it is empty or not JSON."""
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except (ValueError, RecursionError):
            return None


@dataclass
class UpstreamResponse:
    """Status, content type and body captured from the upstream API.

    ``content`` holds the raw bytes forwarded to the caller; ``text`` is the
    same body decoded with the upstream charset, used for cache storage.
    """

    status_code: int
    content_type: str | None
    content: bytes
    text: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass
class CacheItem:
    """Cache item with optional expiry time.

    Args:
        value: The cached response body
        expiry: Clock reading when this cache item expires (None = never expires)
    """

    value: str
    expiry: float | None = None
