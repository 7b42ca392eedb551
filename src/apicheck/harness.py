"""Run lifecycle: one shared context, started once and stopped once."""

from __future__ import annotations

import enum
import logging
from typing import Optional

import pytest

from .assertions import DEFAULT_ASSERTIONS, ApiAssertions, AssertionRegistry
from .classification import HTTP_ERRORS, ErrorClassification
from .context import TestContext
from .errors import HarnessStateError
from .instance import IntegrationInstance
from .options import DefaultOptions
from .reporting import AssertionScope
from .transport import Transport

logger = logging.getLogger(__name__)


class HarnessState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    STARTED = "started"
    RUNNING = "running"
    STOPPED = "stopped"


class Harness:
    """Binds the assertion vocabulary to an instance under test.

    ``setup`` builds the shared ``TestContext`` and starts the instance,
    ``attach`` hands each test an ``ApiAssertions`` bound to that context and
    ``teardown`` stops the instance. Assertions registered on the harness
    registry before ``setup`` are available to every test; afterwards the
    registry is frozen.
    """

    def __init__(
        self,
        instance: IntegrationInstance,
        *,
        registry: Optional[AssertionRegistry] = None,
        defaults: Optional[DefaultOptions] = None,
        transport: Optional[Transport] = None,
        classification: ErrorClassification = HTTP_ERRORS,
    ) -> None:
        self.instance = instance
        self.registry = registry if registry is not None else DEFAULT_ASSERTIONS.copy()
        self._defaults = defaults
        self._transport = transport
        self._classification = classification
        self._context: Optional[TestContext] = None
        self.state = HarnessState.UNINITIALIZED

    @property
    def context(self) -> TestContext:
        if self._context is None:
            raise HarnessStateError("Harness has not been set up")
        return self._context

    async def setup(self) -> TestContext:
        if self.state is not HarnessState.UNINITIALIZED:
            raise HarnessStateError(f"Cannot set up a harness that is {self.state.value}")
        context = TestContext(
            self.instance,
            defaults=self._defaults,
            transport=self._transport,
            classification=self._classification,
        )
        await self.instance.start()
        self.registry.freeze()
        self._context = context
        self.state = HarnessState.STARTED
        logger.info("Harness started against %s", self.instance.base_url)
        return context

    def attach(self, node: Optional[pytest.Item] = None) -> ApiAssertions:
        """Give one test case access to the shared context."""
        if self.state not in (HarnessState.STARTED, HarnessState.RUNNING):
            raise HarnessStateError(f"Cannot attach a test to a harness that is {self.state.value}")
        self.state = HarnessState.RUNNING
        return ApiAssertions(AssertionScope(self.context, node), self.registry)

    async def teardown(self) -> None:
        if self.state not in (HarnessState.STARTED, HarnessState.RUNNING):
            raise HarnessStateError(f"Cannot tear down a harness that is {self.state.value}")
        try:
            await self.instance.stop()
            await self.instance.check_stopped()
        finally:
            self.state = HarnessState.STOPPED
            logger.info("Harness stopped")
