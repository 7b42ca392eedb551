"""Request options, default options and request body variants."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

import httpx

from .cache import InMemoryResponseCache, ResponseCache
from .cookies import CookieJar
from .multipart import Multipart

METHODS = ("GET", "POST", "PUT", "DELETE")
BODY_METHODS = ("POST", "PUT")


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

CacheFlag = Union[bool, ResponseCache, None]


@dataclass(frozen=True)
class LiteralBody:
    """A JSON-serializable value (``None`` means no body)."""

    value: Any


@dataclass(frozen=True)
class DeferredBody:
    """A zero-argument producer resolved only when the request fires."""

    producer: Callable[[], Any]


@dataclass(frozen=True)
class MultipartBody:
    handle: Multipart


Body = Union[LiteralBody, DeferredBody, MultipartBody]


def classify_body(raw: Any) -> Body:
    """Wrap a raw ``body`` argument into its variant."""
    if isinstance(raw, (LiteralBody, DeferredBody, MultipartBody)):
        return raw
    if isinstance(raw, Multipart):
        return MultipartBody(raw)
    if callable(raw):
        return DeferredBody(raw)
    return LiteralBody(raw)


@dataclass(frozen=True)
class RequestOptions:
    """Options of a single call, as handed to the transport.

    ``body`` is the unresolved body variant; ``content`` is what actually goes
    on the wire once the normalizer has resolved and encoded it.
    """

    method: str = "GET"
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Body = field(default_factory=lambda: LiteralBody(None))
    content: Optional[Union[str, bytes]] = None
    json: bool = True
    timeout: Optional[float] = None
    cookie_jar: Optional[CookieJar] = None
    cache: Optional[ResponseCache] = None

    def __post_init__(self) -> None:
        method = self.method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported method {self.method!r}")
        object.__setattr__(self, "method", method)


@dataclass(frozen=True)
class DefaultOptions:
    """Options shared by every call of a test run.

    Built once per context; ``merge`` returns a new ``RequestOptions`` and never
    touches the shared values, except that the cache and cookie jar objects
    themselves are passed by reference.
    """

    timeout: float = 10.0
    cache: ResponseCache = field(default_factory=InMemoryResponseCache)
    cookie_jar: CookieJar = field(default_factory=CookieJar)

    def merge(
        self,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        json: bool = True,
        timeout: Optional[float] = None,
        cookie_jar: Optional[CookieJar] = None,
        cache: CacheFlag = UNSET,
        default_cache: bool = True,
    ) -> RequestOptions:
        """Overlay call-specific overrides on the defaults.

        ``cache`` left unset keeps the shared cache only when ``default_cache``
        is true. ``True`` selects the shared cache, a ``ResponseCache`` is used
        as given and any other falsy value leaves the call without a cache.
        """
        if cache is UNSET:
            resolved_cache = self.cache if default_cache else None
        elif isinstance(cache, ResponseCache):
            resolved_cache = cache
        elif cache:
            resolved_cache = self.cache
        else:
            resolved_cache = None

        return RequestOptions(
            method=method,
            headers=httpx.Headers(headers or {}),
            body=classify_body(body),
            json=json,
            timeout=self.timeout if timeout is None else timeout,
            cookie_jar=self.cookie_jar if cookie_jar is None else cookie_jar,
            cache=resolved_cache,
        )


def merge_headers(
    base: Mapping[str, str], explicit: Mapping[str, str]
) -> httpx.Headers:
    """Headers from ``base`` overridden case-insensitively by ``explicit``."""
    merged = httpx.Headers(base)
    merged.update(explicit)
    return merged
