"""CORS allow-list handling for the API namespace."""

from collections.abc import Iterable
from typing import Optional

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type", "Authorization", "Accept")
PREFLIGHT_MAX_AGE = 86400


def is_allowed_origin(origin: Optional[str], allow_list: Iterable[str]) -> bool:
    """Return True if a request from ``origin`` may be served.

    Requests without an Origin header (curl, server-to-server) are allowed.
    """
    if not origin:
        return True
    return origin in allow_list


def cors_headers(origin: Optional[str]) -> dict[str, str]:
    """CORS headers for a response to an allowed origin."""
    headers = {
        "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
        "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
        "Vary": "Origin",
    }
    if origin:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Access-Control-Allow-Credentials"] = "true"
    else:
        headers["Access-Control-Allow-Origin"] = "*"
    return headers


def preflight_headers(origin: Optional[str]) -> dict[str, str]:
    headers = cors_headers(origin)
    headers["Access-Control-Max-Age"] = str(PREFLIGHT_MAX_AGE)
    return headers
