"""Test fixtures: sample service, fake instances and an in-memory transport."""

from .fake_instance import BareInstance, FakeInstance, FakeNode
from .recording_transport import RecordingTransport
from .widget_app import create_app

__all__ = [
    "BareInstance",
    "FakeInstance",
    "FakeNode",
    "RecordingTransport",
    "create_app",
]
