"""The context shared by every test of a run."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Union

from .classification import HTTP_ERRORS, ErrorClassification
from .instance import IntegrationInstance, SubInstance
from .normalizer import RequestNormalizer
from .options import DefaultOptions
from .transport import Transport


class TestContext:
    """One per test run: instance under test, shared options and helpers.

    Cookies and cached responses persist across tests because the defaults
    (and the jar and cache they reference) are created once here.
    """

    __test__ = False

    def __init__(
        self,
        instance: IntegrationInstance,
        *,
        defaults: Optional[DefaultOptions] = None,
        transport: Optional[Transport] = None,
        classification: ErrorClassification = HTTP_ERRORS,
    ) -> None:
        self.instance = instance
        self.defaults = defaults or DefaultOptions()
        self.classification = classification
        self._transport = transport
        self._http: Optional[RequestNormalizer] = None

    @property
    def base_url(self) -> str:
        return self.instance.base_url

    @property
    def http(self) -> RequestNormalizer:
        # Built lazily: some instances only know their URL once started.
        if self._http is None:
            self._http = RequestNormalizer(
                self.base_url, self.defaults, self._transport
            )
        return self._http

    def sub_instance(self, name: str) -> SubInstance:
        try:
            return self.instance.instances[name]
        except KeyError:
            raise KeyError(f"Unknown sub-instance {name!r}") from None

    @property
    def default_instance(self) -> SubInstance:
        default = self.instance.default_instance
        if default is None:
            raise LookupError("The instance under test has no default sub-instance")
        return default

    def run_path(self, *parts: Union[str, Path]) -> Path:
        return self.default_instance.run_path(*parts)

    async def read_file(self, filename: Union[str, Path]) -> bytes:
        return await asyncio.to_thread(self.run_path(filename).read_bytes)

    async def read_text(self, filename: Union[str, Path], encoding: str = "utf-8") -> str:
        return await asyncio.to_thread(self.run_path(filename).read_text, encoding)

    async def read_dir(self, directory: Union[str, Path] = ".") -> list[str]:
        path = self.run_path(directory)
        names = await asyncio.to_thread(lambda: [p.name for p in path.iterdir()])
        return sorted(names)
