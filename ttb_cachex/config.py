"""Service configuration settings."""

import os
from collections.abc import Mapping
from typing import Literal
from typing import Optional

from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator

from ttb_cachex.exceptions import ConfigurationError

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:4200",
    "http://angular-frontend:4200",
]

# Environment variable -> settings field
_ENV_FIELDS = {
    "BACKEND_URL": "backend_url",
    "CACHE_TTL": "cache_ttl",
    "ALLOWED_ORIGINS": "allowed_origins",
    "CACHE_BACKEND": "cache_backend",
    "REDIS_HOST": "redis_host",
    "REDIS_PORT": "redis_port",
    "REDIS_KEY_PREFIX": "redis_key_prefix",
    "CACHE_TIMEOUT": "cache_timeout",
    "UPSTREAM_TIMEOUT": "upstream_timeout",
    "API_PREFIX": "api_prefix",
    "UPSTREAM_PREFIX": "upstream_prefix",
    "MAX_BODY_SIZE": "max_body_size",
    "HOST": "host",
    "PORT": "port",
    "LOG_LEVEL": "log_level",
    "VERBOSE_PROXY_LOGGING": "verbose_proxy_logging",
}


class Settings(BaseModel):
    """Service configuration settings."""

    # Upstream
    backend_url: str = Field(
        ...,
        min_length=1,
        description="Base URL of the upstream timetable API (required)",
    )
    upstream_prefix: str = Field(
        default="/ttb",
        description="Path prefix the upstream serves the API under",
    )
    upstream_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds allowed for one upstream call",
    )

    # Public surface
    api_prefix: str = Field(
        default="/api",
        description="Path prefix of the public API namespace",
    )
    allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS),
        description="Origins allowed to call the API from a browser",
    )
    max_body_size: int = Field(
        default=1024 * 1024,
        gt=0,
        description="Largest request body forwarded upstream, in bytes (default: 1 MiB)",
    )
    host: str = Field(default="0.0.0.0", description="Interface to listen on")
    port: int = Field(default=3000, ge=1, le=65535, description="Port to listen on")

    # Cache
    cache_ttl: int = Field(
        default=28800,
        gt=0,
        description="Cache time-to-live in seconds (default: 8 hours)",
    )
    cache_backend: Literal["redis", "memory"] = Field(
        default="redis",
        description="Cache store implementation",
    )
    redis_host: str = Field(default="redis", description="Redis host")
    redis_port: int = Field(default=6379, ge=1, le=65535, description="Redis port")
    redis_key_prefix: str = Field(
        default="",
        description="Prefix for cache keys in Redis",
    )
    cache_timeout: float = Field(
        default=2.0,
        gt=0,
        description="Seconds allowed for one cache lookup or store",
    )

    # Logging
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = Field(
        default="INFO",
        description="Root log level",
    )
    verbose_proxy_logging: bool = Field(
        default=False,
        description="Whether to log forwarded headers and bodies",
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("api_prefix", "upstream_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        return "/" + value.strip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Load settings from environment variables.

        Raises:
            ConfigurationError: If BACKEND_URL is missing or a value is invalid
        """
        env = os.environ if environ is None else environ
        if not env.get("BACKEND_URL"):
            raise ConfigurationError("BACKEND_URL environment variable is required")

        values = {
            field: env[name] for name, field in _ENV_FIELDS.items() if env.get(name)
        }
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc
