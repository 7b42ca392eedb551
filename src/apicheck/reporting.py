"""Comparison and failure primitives used by assertion implementations."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Optional, Pattern

import pytest

from .compare import match_diff, strict_diff
from .context import TestContext
from .errors import AssertionFailure, ClassificationMiss, TransportError

logger = logging.getLogger(__name__)


class AssertionScope:
    """What an assertion sees while it runs: the shared context and the
    primitives that pass or fail the current test.

    ``extra`` metadata is appended to the test item's ``user_properties`` (so
    it shows up in JUnit XML) and attached to any raised failure.
    """

    def __init__(self, context: TestContext, node: Optional[pytest.Item] = None) -> None:
        self.context = context
        self.node = node

    @property
    def http(self):
        return self.context.http

    def report(self, message: str, extra: Optional[dict[str, Any]]) -> None:
        if extra is not None and self.node is not None:
            self.node.user_properties.append((message, extra))

    def strict_same(
        self,
        actual: Any,
        expected: Any,
        message: str,
        extra: Optional[dict[str, Any]] = None,
    ) -> None:
        self.report(message, extra)
        diffs = strict_diff(actual, expected)
        if diffs:
            raise AssertionFailure(message, details=diffs, extra=extra)

    def match(
        self,
        actual: Any,
        pattern: Any,
        message: str,
        extra: Optional[dict[str, Any]] = None,
    ) -> None:
        self.report(message, extra)
        diffs = match_diff(actual, pattern)
        if diffs:
            raise AssertionFailure(message, details=diffs, extra=extra)

    async def rejects(
        self,
        call: Awaitable[Any],
        pattern: Pattern[str],
        message: str,
        extra: Optional[dict[str, Any]] = None,
    ) -> None:
        """Pass only if ``call`` raises a ``TransportError`` matching ``pattern``."""
        self.report(message, extra)
        try:
            result = await call
        except TransportError as e:
            if pattern.search(str(e)):
                return
            raise ClassificationMiss(
                message,
                details=[f"expected error matching {pattern.pattern!r}, got {str(e)!r}"],
                extra=extra,
            ) from e
        except Exception as e:
            raise ClassificationMiss(
                message,
                details=[
                    f"expected error matching {pattern.pattern!r}, "
                    f"got {type(e).__name__}: {e}"
                ],
                extra=extra,
            ) from e
        raise ClassificationMiss(
            message,
            details=[
                f"expected error matching {pattern.pattern!r}, "
                f"but the call succeeded with {result!r}"
            ],
            extra=extra,
        )

    def error(
        self,
        exc: BaseException,
        message: str,
        extra: Optional[dict[str, Any]] = None,
    ) -> None:
        """Fail with an unexpected exception raised while making the call."""
        logger.debug("%s raised %r", message, exc)
        raise AssertionFailure(
            message, details=[f"{type(exc).__name__}: {exc}"], extra=extra
        ) from exc
