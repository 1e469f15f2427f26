class CacheXError(Exception):
    """Base class for all exceptions in TTB-CacheX."""


class ConfigurationError(CacheXError):
    """Exception raised when the process environment is missing or invalid."""


class CacheError(CacheXError):
    """Exception raised for cache-related errors."""


class UpstreamUnavailableError(CacheXError):
    """Exception raised when the upstream timetable API cannot be reached."""
