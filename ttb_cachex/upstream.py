"""HTTP client for the upstream timetable API."""

from logging import getLogger
from typing import Optional

import httpx

from ttb_cachex.exceptions import UpstreamUnavailableError
from ttb_cachex.types import UpstreamResponse

logger = getLogger(__name__)


class UpstreamClient:
    """Thin wrapper over one shared :class:`httpx.AsyncClient`.

    Non-2xx statuses are returned as ordinary responses. Only transport
    failures (connect errors, timeouts, malformed responses) and URLs httpx
    refuses to send are raised, as :class:`UpstreamUnavailableError`.

    Args:
        base_url: Scheme and host of the upstream API, e.g. ``https://api.example.edu``
        timeout: Seconds allowed for the whole exchange
        transport: Optional transport, used by tests to stub the upstream
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    def build_url(self, path: str, query_string: str = "") -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        if query_string:
            url = f"{url}?{query_string}"
        return url

    async def send(
        self,
        method: str,
        path: str,
        *,
        query_string: str = "",
        headers: Optional[dict[str, str]] = None,
        content: Optional[bytes] = None,
    ) -> UpstreamResponse:
        try:
            response = await self._client.request(
                method,
                self.build_url(path, query_string),
                headers=headers,
                content=content,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise UpstreamUnavailableError(str(exc) or exc.__class__.__name__) from exc

        return UpstreamResponse(
            status_code=response.status_code,
            content_type=response.headers.get("content-type"),
            content=response.content,
            text=response.text,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
