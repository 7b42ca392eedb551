"""pytest plugin binding the harness into a test session.

Installing the package registers it through the ``pytest11`` entry point.
Write tests against the ``api`` fixture::

    @pytest.mark.asyncio
    async def test_widget(api):
        await api.check_get("/widgets/1", {"id": 1, "name": "bolt"})

Override ``integration_instance`` to drive something other than the service
at ``--api-base-url`` / ``APICHECK_BASE_URL``.
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio

from .assertions import DEFAULT_ASSERTIONS, ApiAssertions, AssertionRegistry
from .context import TestContext
from .env import Settings, get_settings
from .harness import Harness
from .instance import IntegrationInstance, RemoteInstance
from .options import DefaultOptions
from .transport import Transport


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("apicheck", "API integration assertions")
    group.addoption(
        "--api-base-url",
        default=None,
        help="Base URL of the service under test (default: $APICHECK_BASE_URL)",
    )
    group.addoption(
        "--api-timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: $APICHECK_TIMEOUT or 10)",
    )


@pytest.fixture(scope="session")
def apicheck_settings(pytestconfig: pytest.Config) -> Settings:
    return get_settings(
        pytestconfig.getoption("--api-base-url"),
        pytestconfig.getoption("--api-timeout"),
    )


@pytest.fixture(scope="session")
def integration_instance(apicheck_settings: Settings) -> IntegrationInstance:
    """The service under test; a running remote service by default."""
    if not apicheck_settings.base_url:
        raise pytest.UsageError(
            "apicheck needs --api-base-url or APICHECK_BASE_URL, "
            "or an overridden integration_instance fixture"
        )
    return RemoteInstance(
        apicheck_settings.base_url,
        health_path=apicheck_settings.health_path,
        startup_timeout=apicheck_settings.startup_timeout,
    )


@pytest.fixture(scope="session")
def api_defaults(apicheck_settings: Settings) -> DefaultOptions:
    return DefaultOptions(timeout=apicheck_settings.timeout)


@pytest.fixture(scope="session")
def api_transport() -> Optional[Transport]:
    """Transport override; ``None`` sends requests over the network."""
    return None


@pytest.fixture(scope="session")
def api_registry() -> AssertionRegistry:
    """Assertions available to tests; add custom ones by overriding this."""
    return DEFAULT_ASSERTIONS.copy()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def api_harness(
    integration_instance: IntegrationInstance,
    api_defaults: DefaultOptions,
    api_transport: Optional[Transport],
    api_registry: AssertionRegistry,
) -> AsyncGenerator[Harness, None]:
    harness = Harness(
        integration_instance,
        registry=api_registry,
        defaults=api_defaults,
        transport=api_transport,
    )
    await harness.setup()
    yield harness
    await harness.teardown()


@pytest.fixture(scope="session")
def api_context(api_harness: Harness) -> TestContext:
    return api_harness.context


@pytest.fixture
def api(api_harness: Harness, request: pytest.FixtureRequest) -> ApiAssertions:
    """Assertions bound to the session-wide context."""
    return api_harness.attach(request.node)
