"""Multipart/form-data payloads for body-bearing requests."""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any, Optional, Union

import httpx

FieldContent = Union[str, bytes, IO[bytes]]

# Only used to let httpx render the payload; never contacted.
_ENCODING_URL = "http://multipart.invalid/"
_PAYLOAD_HEADERS = ("content-type", "content-length", "transfer-encoding")


class Multipart:
    """A multipart form built field by field.

    The encoded payload is produced by httpx's multipart request encoding, so
    the boundary in ``get_headers()`` always belongs to the bytes returned by
    ``buffer()``.
    """

    def __init__(self) -> None:
        self._parts: list[tuple[str, tuple[Any, ...]]] = []
        self._request: Optional[httpx.Request] = None

    def append(
        self,
        name: str,
        value: Any,
        *,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> "Multipart":
        """Add a field. Non-string scalars are sent as their ``str()`` form."""
        if not isinstance(value, (str, bytes)) and not hasattr(value, "read"):
            value = str(value)
        if content_type is not None:
            part: tuple[Any, ...] = (filename, value, content_type)
        else:
            part = (filename, value)
        self._parts.append((name, part))
        self._request = None
        return self

    def append_file(
        self,
        name: str,
        path: Union[str, Path],
        *,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> "Multipart":
        path = Path(path)
        return self.append(
            name,
            path.read_bytes(),
            filename=filename or path.name,
            content_type=content_type,
        )

    def _encoded(self) -> httpx.Request:
        if self._request is None:
            if not self._parts:
                raise ValueError("Multipart payload has no fields")
            self._request = httpx.Request("POST", _ENCODING_URL, files=self._parts)
        return self._request

    async def buffer(self) -> bytes:
        """Return the complete encoded payload."""
        return await self._encoded().aread()

    def get_headers(self, include_chunked: bool = True) -> dict[str, str]:
        """Payload headers: ``Content-Type`` with boundary and length/encoding."""
        headers = {}
        for key, value in self._encoded().headers.items():
            if key not in _PAYLOAD_HEADERS:
                continue
            if key == "transfer-encoding" and not include_chunked:
                continue
            headers["-".join(p.capitalize() for p in key.split("-"))] = value
        return headers

    def __len__(self) -> int:
        return len(self._parts)
