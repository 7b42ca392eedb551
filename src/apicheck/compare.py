"""Structural comparison of parsed JSON documents.

Both functions return a list of human-readable differences, each prefixed with
the JSON path where it occurs (``$.items[0].name``). An empty list means the
values agree.
"""

from __future__ import annotations

import re
from typing import Any, List

from pydantic import BaseModel


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, tuple):
        return list(value)
    return value


def _key_path(path: str, key: Any) -> str:
    if isinstance(key, str) and re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", key):
        return f"{path}.{key}"
    return f"{path}[{key!r}]"


def _same_kind(actual: Any, expected: Any) -> bool:
    # bool is an int subclass; JSON keeps them apart.
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool)
    if isinstance(actual, (int, float)) and isinstance(expected, (int, float)):
        return True
    return type(actual) is type(expected)


def strict_diff(actual: Any, expected: Any, path: str = "$") -> List[str]:
    """Differences under strict structural equality."""
    actual, expected = _plain(actual), _plain(expected)

    if not _same_kind(actual, expected):
        return [f"{path}: expected {expected!r}, got {actual!r}"]

    if isinstance(expected, dict):
        diffs: List[str] = []
        for key in expected:
            if key not in actual:
                diffs.append(f"{_key_path(path, key)}: missing, expected {expected[key]!r}")
            else:
                diffs.extend(strict_diff(actual[key], expected[key], _key_path(path, key)))
        for key in actual:
            if key not in expected:
                diffs.append(f"{_key_path(path, key)}: unexpected {actual[key]!r}")
        return diffs

    if isinstance(expected, list):
        diffs = []
        if len(actual) != len(expected):
            diffs.append(f"{path}: expected {len(expected)} items, got {len(actual)}")
        for i, (a, e) in enumerate(zip(actual, expected)):
            diffs.extend(strict_diff(a, e, f"{path}[{i}]"))
        return diffs

    if actual != expected:
        return [f"{path}: expected {expected!r}, got {actual!r}"]
    return []


def match_diff(actual: Any, pattern: Any, path: str = "$") -> List[str]:
    """Differences under a partial match.

    Only what ``pattern`` states is checked: dict keys it names, list items up
    to its length. A compiled regex matches strings and a type matches any
    instance of it; other leaves must be equal.
    """
    actual, pattern = _plain(actual), _plain(pattern)

    if isinstance(pattern, re.Pattern):
        if isinstance(actual, str) and pattern.search(actual):
            return []
        return [f"{path}: {actual!r} does not match {pattern.pattern!r}"]

    if isinstance(pattern, type):
        if isinstance(actual, pattern):
            return []
        return [f"{path}: expected a {pattern.__name__}, got {actual!r}"]

    if isinstance(pattern, dict):
        if not isinstance(actual, dict):
            return [f"{path}: expected an object, got {actual!r}"]
        diffs: List[str] = []
        for key, sub in pattern.items():
            if key not in actual:
                diffs.append(f"{_key_path(path, key)}: missing, expected {sub!r}")
            else:
                diffs.extend(match_diff(actual[key], sub, _key_path(path, key)))
        return diffs

    if isinstance(pattern, list):
        if not isinstance(actual, list):
            return [f"{path}: expected an array, got {actual!r}"]
        if len(actual) < len(pattern):
            return [f"{path}: expected at least {len(pattern)} items, got {len(actual)}"]
        diffs = []
        for i, sub in enumerate(pattern):
            diffs.extend(match_diff(actual[i], sub, f"{path}[{i}]"))
        return diffs

    return strict_diff(actual, pattern, path)
