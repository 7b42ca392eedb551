"""Static map from HTTP status codes to transport error message patterns."""

from __future__ import annotations

import re
from typing import Iterator, Mapping, Optional, Pattern, Union

from .errors import UnknownClassificationError

DEFAULT_STATUS_CODES = (400, 401, 403, 404, 405, 409, 415, 422, 500)


def status_pattern(status_code: int) -> Pattern[str]:
    return re.compile(rf"Response code {status_code}\b")


class ErrorClassification(Mapping[int, Pattern[str]]):
    """Read-only mapping used by failure assertions to match errors.

    Patterns match messages such as ``Response code 404 (Not Found)``.
    """

    def __init__(
        self, patterns: Optional[Mapping[int, Union[str, Pattern[str]]]] = None
    ) -> None:
        if patterns is None:
            patterns = {code: status_pattern(code) for code in DEFAULT_STATUS_CODES}
        self._patterns = {int(code): re.compile(p) for code, p in patterns.items()}

    def __getitem__(self, status_code: int) -> Pattern[str]:
        try:
            return self._patterns[int(status_code)]
        except (KeyError, TypeError, ValueError):
            raise UnknownClassificationError(
                f"No error classification registered for {status_code!r}"
            ) from None

    def __iter__(self) -> Iterator[int]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def extend(
        self, patterns: Mapping[int, Union[str, Pattern[str]]]
    ) -> "ErrorClassification":
        """Return a new classification with ``patterns`` added or replaced."""
        merged: dict[int, Union[str, Pattern[str]]] = dict(self._patterns)
        merged.update(patterns)
        return ErrorClassification(merged)

    def matches(self, status_code: int, message: str) -> bool:
        return self[status_code].search(message) is not None


HTTP_ERRORS = ErrorClassification()
