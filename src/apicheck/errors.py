"""Harness exceptions."""

from __future__ import annotations

from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .transport import TransportResponse


class ApiCheckError(Exception):
    """Base class for errors raised by the harness itself."""


class TransportError(ApiCheckError):
    """Raised when a request does not produce a 2xx response.

    The message always embeds the status code (``Response code 404 (Not Found)``)
    so failure assertions can classify it by pattern. Connection failures and
    timeouts carry ``status_code=None``.
    """

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        response: Optional["TransportResponse"] = None,
    ) -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response = response
        super().__init__(message)


class ParseError(ApiCheckError, ValueError):
    """Raised when a response body is not a valid JSON document."""

    def __init__(self, message: str, *, body: str) -> None:
        self.body = body
        super().__init__(message)


class UnknownClassificationError(ApiCheckError, KeyError):
    """Raised when a failure assertion names an unregistered status code."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class HarnessStateError(ApiCheckError, RuntimeError):
    """Raised on an invalid lifecycle transition."""


class AssertionFailure(AssertionError):
    """A failed API assertion, carrying the message and reporting metadata."""

    def __init__(
        self,
        message: str,
        *,
        details: Optional[list[str]] = None,
        extra: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or []
        self.extra = extra
        text = message
        if self.details:
            text += "\n" + "\n".join(f"  {line}" for line in self.details)
        super().__init__(text)


class ClassificationMiss(AssertionFailure):
    """The call did not fail with the expected classified transport error."""
