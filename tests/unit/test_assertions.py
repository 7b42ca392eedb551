"""Unit tests for the assertion registry and the default vocabulary."""

from __future__ import annotations

import json
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from apicheck.assertions import DEFAULT_ASSERTIONS, ApiAssertions, AssertionRegistry
from apicheck.errors import (
    AssertionFailure,
    ClassificationMiss,
    TransportError,
    UnknownClassificationError,
)
from apicheck.harness import Harness
from tests.fixtures import FakeInstance, FakeNode, RecordingTransport


@pytest.fixture
def node() -> FakeNode:
    return FakeNode()


@pytest_asyncio.fixture
async def api(
    fake_instance: FakeInstance,
    recording_transport: RecordingTransport,
    node: FakeNode,
) -> AsyncGenerator[ApiAssertions, None]:
    harness = Harness(fake_instance, transport=recording_transport)
    await harness.setup()
    yield harness.attach(node)
    await harness.teardown()


# ============================================================================
# Registry
# ============================================================================


def test_default_vocabulary():
    assert set(DEFAULT_ASSERTIONS) == {
        "api_rejects",
        "check_get",
        "match_get",
        "check_get_error",
        "check_post",
        "match_post",
        "check_post_error",
        "check_put",
        "match_put",
        "check_put_error",
        "check_delete",
        "match_delete",
        "check_delete_error",
    }
    assert DEFAULT_ASSERTIONS["check_get"].arity == 2
    assert DEFAULT_ASSERTIONS["check_post"].arity == 3
    assert DEFAULT_ASSERTIONS["api_rejects"].arity == 3
    assert not DEFAULT_ASSERTIONS.frozen


def test_registry_rejects_duplicates_and_bad_names():
    registry = AssertionRegistry()

    async def impl(t, path):
        pass

    registry.add("check_thing", 1, impl)

    with pytest.raises(ValueError, match="already registered"):
        registry.add("check_thing", 1, impl)
    with pytest.raises(ValueError, match="Invalid assertion name"):
        registry.add("_private", 1, impl)
    with pytest.raises(ValueError, match="at least the request path"):
        registry.add("check_nothing", 0, impl)


def test_frozen_registry_refuses_new_assertions():
    registry = DEFAULT_ASSERTIONS.copy()
    registry.freeze()

    with pytest.raises(RuntimeError, match="frozen"):
        registry.add("check_extra", 1, lambda t, path: None)

    assert not registry.copy().frozen


@pytest.mark.asyncio
async def test_custom_assertion_is_exposed(
    fake_instance: FakeInstance, recording_transport: RecordingTransport
) -> None:
    registry = DEFAULT_ASSERTIONS.copy()

    @registry.assertion("check_health", 1)
    async def check_health(t, path, message=None, extra=None):
        t.match(await t.http.json(path), {"status": "ok"}, message or f"GET {path}", extra)

    recording_transport.default_body = {"status": "ok", "uptime": 3}
    harness = Harness(fake_instance, registry=registry, transport=recording_transport)
    await harness.setup()

    await harness.attach().check_health("/health")

    assert "check_health" not in DEFAULT_ASSERTIONS
    assert "check_health" in dir(harness.attach())


@pytest.mark.asyncio
async def test_arity_is_checked(api: ApiAssertions) -> None:
    with pytest.raises(TypeError, match=r"check_post\(\) requires 3 positional"):
        await api.check_post("/widgets", {"name": "bolt"})
    with pytest.raises(TypeError, match="at most 4"):
        await api.check_get("/widgets/1", {}, "msg", {}, "surplus")


@pytest.mark.asyncio
async def test_unknown_assertion_is_an_attribute_error(api: ApiAssertions) -> None:
    with pytest.raises(AttributeError, match="check_patch"):
        api.check_patch


# ============================================================================
# Success assertions
# ============================================================================


@pytest.mark.asyncio
async def test_check_get_passes_on_exact_document(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.respond({"id": 1, "name": "bolt"})

    await api.check_get("/widgets/1", {"id": 1, "name": "bolt"})

    assert recording_transport.last[0] == "http://testserver/widgets/1"


@pytest.mark.asyncio
async def test_check_get_failure_names_the_differing_field(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.respond({"id": 1, "name": "nut"})

    with pytest.raises(AssertionFailure) as exc_info:
        await api.check_get("/widgets/1", {"id": 1, "name": "bolt"})

    failure = exc_info.value
    assert failure.message == "GET /widgets/1"
    assert failure.details == ["$.name: expected 'bolt', got 'nut'"]
    assert "$.name" in str(failure)


@pytest.mark.asyncio
async def test_check_get_rejects_extra_fields(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.respond({"id": 1, "name": "bolt", "extra": True})

    with pytest.raises(AssertionFailure, match=r"\$\.extra: unexpected True"):
        await api.check_get("/widgets/1", {"id": 1, "name": "bolt"})


@pytest.mark.asyncio
async def test_match_get_allows_extra_fields(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.respond({"id": 1, "name": "bolt", "extra": True})

    await api.match_get("/widgets/1", {"name": "bolt"})


@pytest.mark.asyncio
async def test_match_get_fails_on_mismatch(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.respond({"name": "nut"})

    with pytest.raises(AssertionFailure, match="GET /widgets/1"):
        await api.match_get("/widgets/1", {"name": "bolt"})


@pytest.mark.asyncio
async def test_transport_failure_in_success_assertion_is_reported(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.fail(500)

    with pytest.raises(AssertionFailure) as exc_info:
        await api.check_post("/widgets", {"name": "bolt"}, {"id": 2}, "create widget")

    failure = exc_info.value
    assert not isinstance(failure, ClassificationMiss)
    assert failure.message == "create widget"
    assert failure.details == ["TransportError: Response code 500 (Error)"]
    assert isinstance(failure.__cause__, TransportError)


@pytest.mark.asyncio
async def test_parse_failure_in_success_assertion_is_reported(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.respond(raw=b"not json")

    with pytest.raises(AssertionFailure, match="ParseError"):
        await api.check_get("/widgets/1", {})


@pytest.mark.asyncio
async def test_check_post_and_put_send_the_body(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.respond({"id": 2, "name": "nut"})
    recording_transport.respond({"id": 1, "name": "washer"})

    await api.check_post("/widgets", {"name": "nut"}, {"id": 2, "name": "nut"})
    await api.match_put("/widgets/1", {"name": "washer"}, {"name": "washer"})

    (post_url, post), (put_url, put) = recording_transport.calls
    assert (post.method, json.loads(post.content)) == ("POST", {"name": "nut"})
    assert (put.method, put_url) == ("PUT", "http://testserver/widgets/1")


@pytest.mark.asyncio
async def test_check_delete(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.respond({"deleted": 1})
    recording_transport.respond({"deleted": 1, "at": "now"})

    await api.check_delete("/widgets/1", {"deleted": 1})
    await api.match_delete("/widgets/1", {"deleted": 1})

    assert [o.method for _, o in recording_transport.calls] == ["DELETE", "DELETE"]


@pytest.mark.asyncio
async def test_extra_metadata_is_forwarded_to_the_report(
    api: ApiAssertions, recording_transport: RecordingTransport, node: FakeNode
) -> None:
    recording_transport.respond({"id": 1})
    recording_transport.respond({"id": 2})

    await api.check_get("/widgets/1", {"id": 1}, None, {"ticket": "W-1"})
    with pytest.raises(AssertionFailure) as exc_info:
        await api.check_get("/widgets/1", {"id": 1}, "second read", {"ticket": "W-2"})

    assert node.user_properties == [
        ("GET /widgets/1", {"ticket": "W-1"}),
        ("second read", {"ticket": "W-2"}),
    ]
    assert exc_info.value.extra == {"ticket": "W-2"}


# ============================================================================
# Failure assertions
# ============================================================================


@pytest.mark.asyncio
async def test_check_get_error_passes_on_classified_status(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.fail(404)

    await api.check_get_error("/widgets/99", 404)


@pytest.mark.asyncio
async def test_check_get_error_fails_when_call_succeeds(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.respond({"id": 1})

    with pytest.raises(ClassificationMiss, match="succeeded"):
        await api.check_get_error("/widgets/1", 404)


@pytest.mark.asyncio
async def test_check_error_fails_on_other_status(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.fail(400)

    with pytest.raises(ClassificationMiss) as exc_info:
        await api.check_put_error("/widgets/1", {"name": ""}, 404)

    assert exc_info.value.message == "PUT /widgets/1"
    assert isinstance(exc_info.value.__cause__, TransportError)


@pytest.mark.asyncio
async def test_check_post_and_delete_errors(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.fail(405)
    recording_transport.fail(404)

    await api.check_post_error("/widgets/1", {}, 405)
    await api.check_delete_error("/widgets/99", 404)

    assert [o.method for _, o in recording_transport.calls] == ["POST", "DELETE"]


@pytest.mark.asyncio
async def test_unknown_classification_issues_no_request(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    with pytest.raises(UnknownClassificationError):
        await api.check_get_error("/teapot", 418)

    assert recording_transport.calls == []


@pytest.mark.asyncio
async def test_api_rejects_defaults_to_get(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.fail(404)

    await api.api_rejects("/widgets/99", None, 404)

    assert recording_transport.last[1].method == "GET"


@pytest.mark.asyncio
async def test_api_rejects_uses_method_and_body_from_options(
    api: ApiAssertions, recording_transport: RecordingTransport, node: FakeNode
) -> None:
    recording_transport.fail(422)

    await api.api_rejects(
        "/widgets", {"method": "post", "body": {"name": ""}}, 422, None, {"case": "empty"}
    )

    options = recording_transport.last[1]
    assert options.method == "POST"
    assert json.loads(options.content) == {"name": ""}
    assert node.user_properties == [("POST /widgets", {"case": "empty"})]


@pytest.mark.asyncio
async def test_api_rejects_with_method_only(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.fail(405)

    await api.api_rejects("/widgets", {"method": "DELETE"}, 405)

    options = recording_transport.last[1]
    assert options.method == "DELETE"
    assert options.content is None


@pytest.mark.asyncio
async def test_api_rejects_put_without_body_goes_through_with_body(
    api: ApiAssertions, recording_transport: RecordingTransport
) -> None:
    recording_transport.fail(422)

    await api.api_rejects("/widgets/1", {"method": "PUT"}, 422)

    options = recording_transport.last[1]
    assert options.method == "PUT"
    assert options.headers["content-type"] == "application/json"


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["DELETE", "GET"])
async def test_api_rejects_refuses_body_for_bodyless_methods(
    api: ApiAssertions, recording_transport: RecordingTransport, method: str
) -> None:
    with pytest.raises(ValueError, match="do not carry a body"):
        await api.api_rejects("/widgets/1", {"method": method, "body": {"a": 1}}, 404)

    assert recording_transport.calls == []
