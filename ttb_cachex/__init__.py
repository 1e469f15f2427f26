"""TTB-CacheX: a caching reverse proxy for the university timetable API."""

from .app import create_app as create_app
from .backends import AsyncRedisCacheBackend as AsyncRedisCacheBackend
from .backends import MemoryBackend as MemoryBackend
from .config import Settings as Settings
from .keys import derive_key as derive_key
from .proxy import CachingForwarder as CachingForwarder
from .routes import add_routes as add_routes

__all__ = [
    "AsyncRedisCacheBackend",
    "CachingForwarder",
    "MemoryBackend",
    "Settings",
    "add_routes",
    "create_app",
    "derive_key",
]
