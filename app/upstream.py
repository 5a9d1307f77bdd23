import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)


@dataclass
class UpstreamResponse:
    status_code: int
    body: bytes = b""
    content_type: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class Upstream(Protocol):
    async def post(
        self,
        url: str,
        *,
        headers: dict[str, str],
        json: Any = None,
        data: Optional[dict[str, str]] = None,
        files: Optional[dict[str, tuple[str, bytes, str]]] = None,
    ) -> UpstreamResponse: ...


class HttpxUpstream:
    """Upstream backed by one shared httpx.AsyncClient.

    Transport failures (DNS, TLS, resets, timeouts) propagate as
    ``httpx.HTTPError``; any completed response, whatever its status,
    is returned.
    """

    def __init__(self, timeout: float = 60.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        # built on first use so importing the app opens no connections
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def post(self, url, *, headers, json=None, data=None, files=None) -> UpstreamResponse:
        resp = await self.client.post(url, headers=headers, json=json, data=data, files=files)
        # webhook paths carry secrets, log the host only
        logger.info(f"POST {resp.request.url.host} -> {resp.status_code} ({len(resp.content)} bytes)")
        return UpstreamResponse(
            status_code=resp.status_code,
            body=resp.content,
            content_type=resp.headers.get("content-type", ""),
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
