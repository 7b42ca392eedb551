"""Drive the sample service through the pytest plugin.

The session-wide harness serves the widgets app with uvicorn on an ephemeral
port; state (widgets, cookies, cache) is shared by every test in this package.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from apicheck.instance import AppInstance, DirectoryInstance, IntegrationInstance
from tests.fixtures import create_app

PAYLOADS = Path(__file__).parent / "payloads"


@pytest.fixture(scope="session")
def integration_instance() -> IntegrationInstance:
    return AppInstance(
        create_app(),
        instances={"payloads": DirectoryInstance(PAYLOADS)},
        default_instance="payloads",
    )
