"""Shared pytest fixtures."""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI

from apicheck.normalizer import RequestNormalizer
from apicheck.options import DefaultOptions
from apicheck.transport import HttpxTransport
from tests.fixtures import FakeInstance, RecordingTransport, create_app

TEST_BASE_URL = "http://testserver"


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def defaults() -> DefaultOptions:
    return DefaultOptions(timeout=5.0)


@pytest.fixture
def normalizer(
    recording_transport: RecordingTransport, defaults: DefaultOptions
) -> RequestNormalizer:
    """Normalizer whose transport records calls instead of sending them."""
    return RequestNormalizer(TEST_BASE_URL, defaults, recording_transport)


@pytest.fixture
def fake_instance() -> FakeInstance:
    return FakeInstance(TEST_BASE_URL)


@pytest.fixture
def widget_app() -> FastAPI:
    return create_app()


@pytest.fixture
def asgi_transport(widget_app: FastAPI) -> HttpxTransport:
    """Transport delivering requests straight to the sample app."""
    return HttpxTransport(httpx.ASGITransport(app=widget_app))


@pytest.fixture
def app_normalizer(
    asgi_transport: HttpxTransport, defaults: DefaultOptions
) -> RequestNormalizer:
    return RequestNormalizer(TEST_BASE_URL, defaults, asgi_transport)
