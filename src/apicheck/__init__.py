"""HTTP/JSON assertions for integration-testing a running service."""

from .assertions import DEFAULT_ASSERTIONS, ApiAssertions, AssertionRegistry, AssertionSpec
from .cache import InMemoryResponseCache, ResponseCache
from .classification import HTTP_ERRORS, ErrorClassification
from .context import TestContext
from .cookies import CookieJar
from .errors import (
    ApiCheckError,
    AssertionFailure,
    ClassificationMiss,
    HarnessStateError,
    ParseError,
    TransportError,
    UnknownClassificationError,
)
from .harness import Harness, HarnessState
from .instance import AppInstance, DirectoryInstance, IntegrationInstance, RemoteInstance
from .multipart import Multipart
from .normalizer import RequestNormalizer
from .options import DefaultOptions, DeferredBody, LiteralBody, MultipartBody, RequestOptions
from .transport import HttpxTransport, Transport, TransportResponse

__all__ = [
    "DEFAULT_ASSERTIONS",
    "HTTP_ERRORS",
    "ApiAssertions",
    "ApiCheckError",
    "AppInstance",
    "AssertionFailure",
    "AssertionRegistry",
    "AssertionSpec",
    "ClassificationMiss",
    "CookieJar",
    "DefaultOptions",
    "DeferredBody",
    "DirectoryInstance",
    "ErrorClassification",
    "Harness",
    "HarnessState",
    "HarnessStateError",
    "HttpxTransport",
    "InMemoryResponseCache",
    "IntegrationInstance",
    "LiteralBody",
    "Multipart",
    "MultipartBody",
    "ParseError",
    "RemoteInstance",
    "RequestNormalizer",
    "RequestOptions",
    "ResponseCache",
    "TestContext",
    "Transport",
    "TransportError",
    "TransportResponse",
    "UnknownClassificationError",
]
