"""Shared response cache used by the default request options."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CachedResponse:
    """A stored GET response plus the validators used to revalidate it."""

    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)
    etag: Optional[str] = None
    last_modified: Optional[str] = None

    def validators(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.etag:
            headers["If-None-Match"] = self.etag
        if self.last_modified:
            headers["If-Modified-Since"] = self.last_modified
        return headers


class ResponseCache(ABC):
    """Abstract key-value store keyed by request URL."""

    @abstractmethod
    async def get(self, key: str) -> Optional[CachedResponse]:
        pass

    @abstractmethod
    async def set(self, key: str, value: CachedResponse) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> int:
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass


class InMemoryResponseCache(ResponseCache):
    """Dict-backed cache with no eviction."""

    def __init__(self) -> None:
        self._data: dict[str, CachedResponse] = {}

    async def get(self, key: str) -> Optional[CachedResponse]:
        return self._data.get(key)

    async def set(self, key: str, value: CachedResponse) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> int:
        if key in self._data:
            del self._data[key]
            return 1
        return 0

    async def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data
