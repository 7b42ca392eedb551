"""Named, arity-checked API assertions.

Each assertion performs one request/response cycle through the shared
``RequestNormalizer`` and compares the outcome with an expectation:

* ``check_<method>`` requires strict structural equality,
* ``match_<method>`` requires a partial match,
* ``check_<method>_error`` requires a transport error matching the pattern
  registered under a status code in the context's ``ErrorClassification``,
* ``api_rejects`` is the generic failure assertion, method taken from the
  options (GET when absent).

All of them take an optional ``message`` (default ``"<METHOD> <path>"``) and an
optional ``extra`` mapping forwarded to pytest's reporting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterator, Optional

from .errors import ApiCheckError
from .options import BODY_METHODS
from .reporting import AssertionScope

if TYPE_CHECKING:
    from .context import TestContext
    from .normalizer import RequestNormalizer

Implementation = Callable[..., Awaitable[None]]


@dataclass(frozen=True)
class AssertionSpec:
    name: str
    arity: int
    implementation: Implementation

    def bind(self, scope: AssertionScope) -> Callable[..., Awaitable[None]]:
        """Return the assertion as a coroutine function bound to ``scope``."""
        spec = self

        async def run(*args: Any, **kwargs: Any) -> None:
            if len(args) < spec.arity:
                raise TypeError(
                    f"{spec.name}() requires {spec.arity} positional arguments, "
                    f"got {len(args)}"
                )
            if len(args) > spec.arity + 2:
                raise TypeError(
                    f"{spec.name}() takes at most {spec.arity + 2} positional "
                    f"arguments, got {len(args)}"
                )
            await spec.implementation(scope, *args, **kwargs)

        run.__name__ = spec.name
        run.__doc__ = spec.implementation.__doc__
        return run


class AssertionRegistry:
    """Assertions known to a harness. Frozen once the harness is set up."""

    def __init__(self) -> None:
        self._specs: dict[str, AssertionSpec] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add(self, name: str, arity: int, implementation: Implementation) -> AssertionSpec:
        if self._frozen:
            raise RuntimeError(f"Cannot register {name!r}: assertions are frozen")
        if name in self._specs:
            raise ValueError(f"Assertion {name!r} is already registered")
        if not name.isidentifier() or name.startswith("_"):
            raise ValueError(f"Invalid assertion name {name!r}")
        if arity < 1:
            raise ValueError("Assertions take at least the request path")
        spec = AssertionSpec(name, arity, implementation)
        self._specs[name] = spec
        return spec

    def assertion(self, name: str, arity: int) -> Callable[[Implementation], Implementation]:
        def decorator(func: Implementation) -> Implementation:
            self.add(name, arity, func)
            return func

        return decorator

    def freeze(self) -> None:
        self._frozen = True

    def copy(self) -> "AssertionRegistry":
        """An unfrozen registry holding the same assertions."""
        registry = AssertionRegistry()
        registry._specs = dict(self._specs)
        return registry

    def __getitem__(self, name: str) -> AssertionSpec:
        return self._specs[name]

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)


class ApiAssertions:
    """Per-test handle exposing every registered assertion as a method."""

    def __init__(self, scope: AssertionScope, registry: AssertionRegistry) -> None:
        self._scope = scope
        self._registry = registry

    @property
    def context(self) -> "TestContext":
        return self._scope.context

    @property
    def http(self) -> "RequestNormalizer":
        return self._scope.context.http

    def __getattr__(self, name: str) -> Callable[..., Awaitable[None]]:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            spec = self._registry[name]
        except KeyError:
            raise AttributeError(f"No assertion named {name!r}") from None
        return spec.bind(self._scope)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._registry))


DEFAULT_ASSERTIONS = AssertionRegistry()


async def _expect(
    t: AssertionScope,
    call: Awaitable[Any],
    expected: Any,
    message: str,
    extra: Optional[dict],
    partial: bool,
) -> None:
    try:
        actual = await call
    except ApiCheckError as e:
        t.error(e, message, extra)
    if partial:
        t.match(actual, expected, message, extra)
    else:
        t.strict_same(actual, expected, message, extra)


@DEFAULT_ASSERTIONS.assertion("check_get", 2)
async def check_get(t, path, expected, message=None, extra=None):
    await _expect(t, t.http.json(path), expected, message or f"GET {path}", extra, False)


@DEFAULT_ASSERTIONS.assertion("match_get", 2)
async def match_get(t, path, expected, message=None, extra=None):
    await _expect(t, t.http.json(path), expected, message or f"GET {path}", extra, True)


@DEFAULT_ASSERTIONS.assertion("check_get_error", 2)
async def check_get_error(t, path, error, message=None, extra=None):
    pattern = t.context.classification[error]
    await t.rejects(t.http.json(path), pattern, message or f"GET {path}", extra)


@DEFAULT_ASSERTIONS.assertion("check_post", 3)
async def check_post(t, path, body, expected, message=None, extra=None):
    call = t.http.post(path, body=body)
    await _expect(t, call, expected, message or f"POST {path}", extra, False)


@DEFAULT_ASSERTIONS.assertion("match_post", 3)
async def match_post(t, path, body, expected, message=None, extra=None):
    call = t.http.post(path, body=body)
    await _expect(t, call, expected, message or f"POST {path}", extra, True)


@DEFAULT_ASSERTIONS.assertion("check_post_error", 3)
async def check_post_error(t, path, body, error, message=None, extra=None):
    pattern = t.context.classification[error]
    await t.rejects(
        t.http.post(path, body=body), pattern, message or f"POST {path}", extra
    )


@DEFAULT_ASSERTIONS.assertion("check_put", 3)
async def check_put(t, path, body, expected, message=None, extra=None):
    call = t.http.put(path, body=body)
    await _expect(t, call, expected, message or f"PUT {path}", extra, False)


@DEFAULT_ASSERTIONS.assertion("match_put", 3)
async def match_put(t, path, body, expected, message=None, extra=None):
    call = t.http.put(path, body=body)
    await _expect(t, call, expected, message or f"PUT {path}", extra, True)


@DEFAULT_ASSERTIONS.assertion("check_put_error", 3)
async def check_put_error(t, path, body, error, message=None, extra=None):
    pattern = t.context.classification[error]
    await t.rejects(
        t.http.put(path, body=body), pattern, message or f"PUT {path}", extra
    )


@DEFAULT_ASSERTIONS.assertion("check_delete", 2)
async def check_delete(t, path, expected, message=None, extra=None):
    call = t.http.delete(path)
    await _expect(t, call, expected, message or f"DELETE {path}", extra, False)


@DEFAULT_ASSERTIONS.assertion("match_delete", 2)
async def match_delete(t, path, expected, message=None, extra=None):
    call = t.http.delete(path)
    await _expect(t, call, expected, message or f"DELETE {path}", extra, True)


@DEFAULT_ASSERTIONS.assertion("check_delete_error", 2)
async def check_delete_error(t, path, error, message=None, extra=None):
    pattern = t.context.classification[error]
    await t.rejects(t.http.delete(path), pattern, message or f"DELETE {path}", extra)


@DEFAULT_ASSERTIONS.assertion("api_rejects", 3)
async def api_rejects(t, path, options, error, message=None, extra=None):
    """Generic failure assertion; ``options`` may carry method, body, headers."""
    options = dict(options or {})
    method = str(options.pop("method", "GET")).upper()
    pattern = t.context.classification[error]
    if method in BODY_METHODS:
        call = t.http.with_body(method, path, **options)
    elif "body" in options:
        raise ValueError(f"{method} requests do not carry a body")
    else:
        call = t.http.json(path, method=method, **options)
    await t.rejects(call, pattern, message or f"{method} {path}", extra)
