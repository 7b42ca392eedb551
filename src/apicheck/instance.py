"""Instances under test.

An instance exposes the ``base_url`` requests are sent to, optional lifecycle
hooks (``start``, ``stop``, ``check_stopped``; no-ops by default) and named
sub-instances that resolve paths to their fixture files.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Union, runtime_checkable

import httpx
import uvicorn

logger = logging.getLogger(__name__)


@runtime_checkable
class SubInstance(Protocol):
    def run_path(self, *parts: Union[str, Path]) -> Path: ...


class DirectoryInstance:
    """Sub-instance whose files live under a root directory."""

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def run_path(self, *parts: Union[str, Path]) -> Path:
        return self.root.joinpath(*parts)

    def __repr__(self) -> str:
        return f"DirectoryInstance({str(self.root)!r})"


class IntegrationInstance(ABC):
    """Base class for a service driven by the harness."""

    def __init__(
        self,
        instances: Optional[Mapping[str, SubInstance]] = None,
        default_instance: Optional[str] = None,
    ) -> None:
        self.instances: dict[str, SubInstance] = dict(instances or {})
        if default_instance is not None and default_instance not in self.instances:
            raise ValueError(f"Unknown default instance {default_instance!r}")
        self._default_name = default_instance

    @property
    @abstractmethod
    def base_url(self) -> str:
        pass

    @property
    def default_instance(self) -> Optional[SubInstance]:
        if self._default_name is not None:
            return self.instances[self._default_name]
        if len(self.instances) == 1:
            return next(iter(self.instances.values()))
        return None

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def check_stopped(self) -> None:
        pass


class RemoteInstance(IntegrationInstance):
    """An already running service, optionally polled for health on start."""

    def __init__(
        self,
        base_url: str,
        *,
        health_path: Optional[str] = None,
        startup_timeout: float = 30.0,
        interval: float = 0.5,
        instances: Optional[Mapping[str, SubInstance]] = None,
        default_instance: Optional[str] = None,
    ) -> None:
        super().__init__(instances, default_instance)
        if not base_url:
            raise ValueError("RemoteInstance requires a non-empty base_url.")
        self._base_url = base_url.rstrip("/")
        self.health_path = health_path
        self.startup_timeout = startup_timeout
        self.interval = interval

    @property
    def base_url(self) -> str:
        return self._base_url

    async def start(self) -> None:
        if self.health_path:
            await wait_for_service(
                f"{self._base_url}{self.health_path}",
                timeout=self.startup_timeout,
                interval=self.interval,
            )


async def wait_for_service(url: str, timeout: float = 30.0, interval: float = 0.5) -> None:
    """Poll ``url`` until it answers 200 or ``timeout`` seconds elapse."""
    deadline = time.monotonic() + timeout
    async with httpx.AsyncClient(timeout=5.0) as client:
        while time.monotonic() < deadline:
            try:
                response = await client.get(url)
                if response.status_code == 200:
                    logger.info("Service at %s is healthy", url)
                    return
            except httpx.RequestError:
                pass
            await asyncio.sleep(interval)
    raise TimeoutError(f"Service at {url} did not become healthy within {timeout}s")


class AppInstance(IntegrationInstance):
    """Serves an ASGI application with uvicorn in a background thread.

    The server binds an ephemeral port unless ``port`` is given; ``base_url``
    is only known once ``start`` returned.
    """

    def __init__(
        self,
        app: Any,
        *,
        host: str = "127.0.0.1",
        port: int = 0,
        startup_timeout: float = 30.0,
        instances: Optional[Mapping[str, SubInstance]] = None,
        default_instance: Optional[str] = None,
    ) -> None:
        super().__init__(instances, default_instance)
        self.app = app
        self.host = host
        self.port = port
        self.startup_timeout = startup_timeout
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def base_url(self) -> str:
        if self._server is None or not self._server.started:
            raise RuntimeError("AppInstance has not been started")
        return f"http://{self.host}:{self.port}"

    async def start(self) -> None:
        config = uvicorn.Config(
            self.app, host=self.host, port=self.port, log_level="warning"
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run, name="apicheck-app", daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + self.startup_timeout
        while not self._server.started:
            if not self._thread.is_alive():
                raise RuntimeError("Application server exited during startup")
            if time.monotonic() > deadline:
                raise TimeoutError(
                    f"Application server did not start within {self.startup_timeout}s"
                )
            await asyncio.sleep(0.05)

        # Resolve the ephemeral port from the bound socket.
        sockets = self._server.servers[0].sockets
        self.port = sockets[0].getsockname()[1]
        logger.info("Application server listening on %s", self.base_url)

    async def stop(self) -> None:
        if self._server is None or self._thread is None:
            return
        self._server.should_exit = True
        await asyncio.to_thread(self._thread.join, self.startup_timeout)

    async def check_stopped(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Application server is still running")
