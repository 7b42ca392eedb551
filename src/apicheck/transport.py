"""HTTP transport used by the request normalizer."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from .cache import CachedResponse
from .errors import TransportError
from .options import RequestOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Tiny response wrapper with a stable surface area used by the harness."""

    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)
    url: str = ""
    from_cache: bool = False

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        # Raw bytes: invalid UTF-8 must fail instead of decoding to U+FFFD.
        if not self.content:
            return None
        return json.loads(self.content)


class Transport(ABC):
    """Performs one HTTP request.

    Returns the response on 2xx and raises ``TransportError`` otherwise.
    """

    @abstractmethod
    async def request(self, url: str, options: RequestOptions) -> TransportResponse:
        pass


class HttpxTransport(Transport):
    """Transport backed by a short-lived ``httpx.AsyncClient`` per request.

    A client per call keeps the transport independent of any event loop, so a
    session-wide context can be shared by tests running on different loops.
    ``mount`` replaces the network layer (``httpx.ASGITransport``,
    ``httpx.MockTransport``) and must tolerate being closed after each call.
    """

    def __init__(
        self,
        mount: Optional[httpx.AsyncBaseTransport] = None,
        *,
        follow_redirects: bool = True,
    ) -> None:
        self._mount = mount
        self._follow_redirects = follow_redirects

    async def request(self, url: str, options: RequestOptions) -> TransportResponse:
        method = options.method
        headers = httpx.Headers(options.headers)

        cached: Optional[CachedResponse] = None
        if options.cache is not None and method == "GET":
            cached = await options.cache.get(url)
            if cached is not None:
                for key, value in cached.validators().items():
                    headers.setdefault(key, value)

        logger.debug("%s %s", method, url)
        try:
            async with httpx.AsyncClient(
                transport=self._mount,
                cookies=options.cookie_jar,
                timeout=options.timeout,
                follow_redirects=self._follow_redirects,
            ) as client:
                resp = await client.request(
                    method, url, headers=headers, content=options.content
                )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Timeout awaiting '{method} {url}' for {options.timeout}s",
                method=method,
                url=url,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"Request error for '{method} {url}': {e}", method=method, url=url
            ) from e

        logger.debug("%s %s -> %s", method, url, resp.status_code)

        if resp.status_code == 304 and cached is not None:
            logger.debug("Revalidated %s from cache", url)
            return TransportResponse(
                status_code=cached.status_code,
                content=cached.content,
                headers=dict(cached.headers),
                url=url,
                from_cache=True,
            )

        response = TransportResponse(
            status_code=resp.status_code,
            content=resp.content,
            headers=dict(resp.headers.items()),
            url=str(resp.url),
        )
        if not resp.is_success:
            raise TransportError(
                f"Response code {resp.status_code} ({resp.reason_phrase})",
                method=method,
                url=url,
                status_code=resp.status_code,
                response=response,
            )

        if options.cache is not None and method == "GET":
            await _store(options, url, resp)
        return response


async def _store(options: RequestOptions, url: str, resp: httpx.Response) -> None:
    etag = resp.headers.get("etag")
    last_modified = resp.headers.get("last-modified")
    if not (etag or last_modified):
        return
    if "no-store" in resp.headers.get("cache-control", "").lower():
        return
    assert options.cache is not None
    await options.cache.set(
        url,
        CachedResponse(
            status_code=resp.status_code,
            content=resp.content,
            headers=dict(resp.headers.items()),
            etag=etag,
            last_modified=last_modified,
        ),
    )
