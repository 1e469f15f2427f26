from collections.abc import Callable
from collections.abc import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from ttb_cachex.app import create_app
from ttb_cachex.backends.memory import MemoryBackend
from ttb_cachex.config import Settings
from ttb_cachex.upstream import UpstreamClient

BACKEND_URL = "https://timetable.example.edu"


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """Records upstream requests and answers them with a configurable reply."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.text = "<payload>CSC108H1</payload>"
        self.content_type: str | None = "application/xml"
        self.encoding = "utf-8"
        self.error: Callable[[httpx.Request], Exception] | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(request)
        headers = {"content-type": self.content_type} if self.content_type else {}
        return httpx.Response(
            self.status_code, content=self.text.encode(self.encoding), headers=headers
        )

    @property
    def calls(self) -> int:
        return len(self.requests)

    def client(self) -> UpstreamClient:
        return UpstreamClient(BACKEND_URL, transport=httpx.MockTransport(self))


@pytest.fixture
def settings() -> Settings:
    return Settings(backend_url=BACKEND_URL, cache_backend="memory", cache_ttl=60)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_backend(clock: FakeClock) -> MemoryBackend:
    return MemoryBackend(clock=clock)


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(
    settings: Settings, memory_backend: MemoryBackend, fake_upstream: FakeUpstream
) -> Iterator[TestClient]:
    app = create_app(settings, backend=memory_backend, upstream=fake_upstream.client())
    with TestClient(app) as test_client:
        yield test_client
