"""Cookie jar shared by every request of a test run."""

from __future__ import annotations

import http.cookiejar

import httpx


class CookieJar(http.cookiejar.CookieJar):
    """Standard library cookie jar with an awaitable string lookup.

    httpx uses a plain ``http.cookiejar.CookieJar`` passed to a client as-is,
    so cookies received by any request land in this instance.
    """

    async def get_cookie_string(self, url: str) -> str:
        """Return the ``Cookie`` header value the jar would send to ``url``."""
        request = httpx.Request("GET", url)
        httpx.Cookies(self).set_cookie_header(request)
        return request.headers.get("Cookie", "")
