import logging

import pytest

from ttb_cachex.__main__ import main
from ttb_cachex.config import DEFAULT_ALLOWED_ORIGINS
from ttb_cachex.config import Settings
from ttb_cachex.exceptions import ConfigurationError


def test_defaults():
    settings = Settings.from_env({"BACKEND_URL": "https://api.example.edu"})

    assert settings.backend_url == "https://api.example.edu"
    assert settings.cache_ttl == 28800
    assert settings.allowed_origins == DEFAULT_ALLOWED_ORIGINS
    assert settings.cache_backend == "redis"
    assert settings.redis_host == "redis"
    assert settings.redis_port == 6379
    assert settings.api_prefix == "/api"
    assert settings.upstream_prefix == "/ttb"
    assert settings.verbose_proxy_logging is False


def test_values_from_environment():
    settings = Settings.from_env(
        {
            "BACKEND_URL": "https://api.example.edu",
            "CACHE_TTL": "600",
            "ALLOWED_ORIGINS": "https://courses.example.edu, http://localhost:4200,",
            "REDIS_HOST": "cache",
            "REDIS_PORT": "6380",
            "CACHE_BACKEND": "memory",
            "API_PREFIX": "api/",
            "LOG_LEVEL": "debug",
            "VERBOSE_PROXY_LOGGING": "true",
        }
    )

    assert settings.cache_ttl == 600
    assert settings.allowed_origins == [
        "https://courses.example.edu",
        "http://localhost:4200",
    ]
    assert settings.redis_host == "cache"
    assert settings.redis_port == 6380
    assert settings.cache_backend == "memory"
    assert settings.api_prefix == "/api"
    assert settings.log_level == "DEBUG"
    assert settings.verbose_proxy_logging is True


@pytest.mark.parametrize("environ", [{}, {"BACKEND_URL": ""}])
def test_missing_backend_url(environ):
    with pytest.raises(ConfigurationError, match="BACKEND_URL"):
        Settings.from_env(environ)


@pytest.mark.parametrize(
    "name, value",
    [("CACHE_TTL", "eight hours"), ("CACHE_TTL", "0"), ("CACHE_BACKEND", "memcached")],
)
def test_invalid_values(name, value):
    with pytest.raises(ConfigurationError):
        Settings.from_env({"BACKEND_URL": "https://api.example.edu", name: value})


def test_main_exits_nonzero_without_backend_url(monkeypatch, caplog):
    monkeypatch.delenv("BACKEND_URL", raising=False)

    with caplog.at_level(logging.ERROR):
        assert main() == 1
    assert "BACKEND_URL environment variable is required" in caplog.text


def test_invalid_log_level():
    with pytest.raises(ConfigurationError):
        Settings.from_env({"BACKEND_URL": "https://api.example.edu", "LOG_LEVEL": "FOO"})


def test_main_exits_nonzero_on_invalid_log_level(monkeypatch):
    monkeypatch.setenv("BACKEND_URL", "https://api.example.edu")
    monkeypatch.setenv("LOG_LEVEL", "FOO")

    assert main() == 1


def test_max_body_size_from_environment():
    settings = Settings.from_env(
        {"BACKEND_URL": "https://api.example.edu", "MAX_BODY_SIZE": "2048"}
    )

    assert settings.max_body_size == 2048
    assert Settings(backend_url="https://api.example.edu").max_body_size == 1024 * 1024
