"""Unit tests for the status code classification map."""

import pytest

from apicheck.classification import HTTP_ERRORS, ErrorClassification
from apicheck.errors import UnknownClassificationError


@pytest.mark.parametrize("code", [400, 404, 405])
def test_default_codes_match_transport_messages(code):
    assert HTTP_ERRORS.matches(code, f"Response code {code} (Whatever)")


def test_pattern_does_not_match_other_codes():
    assert not HTTP_ERRORS.matches(404, "Response code 405 (Method Not Allowed)")
    assert not HTTP_ERRORS.matches(400, "Response code 4000")


def test_unknown_code_raises():
    with pytest.raises(UnknownClassificationError, match="418"):
        HTTP_ERRORS[418]

    assert 418 not in HTTP_ERRORS
    assert isinstance(UnknownClassificationError("x"), KeyError)


def test_string_keys_are_accepted():
    assert HTTP_ERRORS["404"] is HTTP_ERRORS[404]


def test_extend_returns_new_mapping():
    extended = HTTP_ERRORS.extend({418: r"Response code 418", 404: "Not Found"})

    assert extended.matches(418, "Response code 418 (I'm a teapot)")
    assert extended.matches(404, "Response code 404 (Not Found)")
    assert not extended.matches(404, "Response code 404")
    assert 418 not in HTTP_ERRORS
    assert HTTP_ERRORS.matches(404, "Response code 404")


def test_custom_classification_only_has_given_codes():
    classification = ErrorClassification({404: "Response code 404"})

    assert list(classification) == [404]
    assert len(classification) == 1
