"""Request/response normalization.

Every call goes through the same steps: merge the per-call overrides onto the
shared defaults, resolve the body to exactly one representation, encode it,
send it through the transport and parse the response body as JSON. Transport
and parse errors are never caught here.
"""

from __future__ import annotations

import dataclasses
import inspect
import json as jsonlib
import logging
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel

from .cookies import CookieJar
from .errors import ParseError
from .options import (
    BODY_METHODS,
    UNSET,
    CacheFlag,
    DefaultOptions,
    DeferredBody,
    LiteralBody,
    MultipartBody,
    RequestOptions,
    classify_body,
    merge_headers,
)
from .transport import HttpxTransport, Transport, TransportResponse

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


def parse_json(response: TransportResponse) -> Any:
    """Parse a response body; an empty body means no document."""
    try:
        return response.json()
    except ValueError as e:
        raise ParseError(
            f"Invalid JSON in response from {response.url or 'server'}: {e}",
            body=response.text,
        ) from e


async def resolve_body(body: Any) -> Union[LiteralBody, MultipartBody]:
    """Resolve a deferred body by calling its producer exactly once."""
    body = classify_body(body)
    if not isinstance(body, DeferredBody):
        return body
    value = body.producer()
    if inspect.isawaitable(value):
        value = await value
    resolved = classify_body(value)
    if isinstance(resolved, DeferredBody):
        raise TypeError("A deferred body producer must not return another callable")
    return resolved


def encode_json(value: Any) -> str:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    return jsonlib.dumps(value)


class RequestNormalizer:
    """Turns ``(path, options)`` pairs into parsed JSON results."""

    def __init__(
        self,
        base_url: str,
        defaults: Optional[DefaultOptions] = None,
        transport: Optional[Transport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.defaults = defaults or DefaultOptions()
        self.transport = transport or HttpxTransport()

    def url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path}"

    async def get(
        self,
        path: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        cache: CacheFlag = UNSET,
        timeout: Optional[float] = None,
        cookie_jar: Optional[CookieJar] = None,
    ) -> TransportResponse:
        """Issue a body-less request and return the raw response."""
        options = self.defaults.merge(
            method=method,
            headers=headers,
            cache=cache,
            timeout=timeout,
            cookie_jar=cookie_jar,
        )
        return await self.transport.request(self.url(path), options)

    async def json(self, path: str, **options: Any) -> Any:
        return parse_json(await self.get(path, **options))

    async def with_body(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        json: bool = True,
        cache: CacheFlag = None,
        timeout: Optional[float] = None,
        cookie_jar: Optional[CookieJar] = None,
    ) -> Any:
        """Send a request with a body and return the parsed JSON response.

        ``cache`` defaults to no cache for body-bearing calls. A multipart body
        always takes precedence over JSON encoding, whatever ``json`` says.
        With ``json=False`` the body must already be ``str`` or ``bytes``.
        Only POST and PUT carry a body.
        """
        if method.upper() not in BODY_METHODS:
            raise ValueError(f"{method.upper()} requests do not carry a body")
        options = self.defaults.merge(
            method=method,
            headers=headers,
            body=body,
            json=json,
            timeout=timeout,
            cookie_jar=cookie_jar,
            cache=cache,
            default_cache=False,
        )

        resolved = await resolve_body(options.body)
        if isinstance(resolved, MultipartBody):
            handle = resolved.handle
            content: Union[str, bytes, None] = await handle.buffer()
            final_headers = merge_headers(handle.get_headers(False), options.headers)
        elif options.json:
            value = resolved.value
            content = None if value is None else encode_json(value)
            final_headers = merge_headers(JSON_HEADERS, options.headers)
        else:
            value = resolved.value
            if value is not None and not isinstance(value, (str, bytes)):
                raise TypeError(
                    f"json=False requires a str or bytes body, got {type(value).__name__}"
                )
            content = value
            final_headers = options.headers

        options = dataclasses.replace(
            options, body=resolved, content=content, headers=final_headers
        )
        response = await self.transport.request(self.url(path), options)
        return parse_json(response)

    async def post(self, path: str, **options: Any) -> Any:
        return await self.with_body("POST", path, **options)

    async def put(self, path: str, **options: Any) -> Any:
        return await self.with_body("PUT", path, **options)

    async def delete(self, path: str, **options: Any) -> Any:
        """DELETE never carries a body."""
        return await self.json(path, method="DELETE", **options)

    async def get_cookie_string(self, url: Optional[str] = None) -> str:
        """Cookies the shared jar would send to ``url`` (default: the base URL)."""
        return await self.defaults.cookie_jar.get_cookie_string(
            self.url(url) if url else self.base_url
        )
