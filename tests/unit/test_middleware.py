"""
Unit tests for the middleware registry and chain.
"""

import pytest

from httproute.errors import ConfigurationError, DuplicateMiddlewareError, UnknownMiddlewareError
from httproute.http.method import HTTPMethod
from httproute.http.request import HTTPRequest
from httproute.http.response import HTTPResponse
from httproute.http.status_codes import HTTPStatus
from httproute.middleware import MiddlewareRef, MiddlewareRegistry, run_chain
from httproute.routing.context import RequestContext


def make_context(path="/") -> RequestContext:
    return RequestContext(request=HTTPRequest(method=HTTPMethod.GET, path=path))


def allow(ctx):
    return None


def deny(ctx):
    return HTTPResponse(HTTPStatus.FORBIDDEN)


class TestMiddlewareRegistry:
    """Tests for MiddlewareRegistry class."""

    def test_add_and_get(self):
        """Registered functions come back by name."""
        registry = MiddlewareRegistry()
        registry.add("allow", allow)
        assert registry.get("allow") is allow
        assert "allow" in registry
        assert len(registry) == 1

    def test_register_decorator(self):
        """The decorator registers and returns the function."""
        registry = MiddlewareRegistry()

        @registry.register("auth")
        def auth(ctx):
            return None

        assert registry.get("auth") is auth
        assert auth(make_context()) is None

    def test_duplicate_name(self):
        """Names are unique per registry."""
        registry = MiddlewareRegistry()
        registry.add("allow", allow)
        with pytest.raises(DuplicateMiddlewareError) as exc_info:
            registry.add("allow", deny)
        assert exc_info.value.name == "allow"
        assert registry.get("allow") is allow

    def test_unknown_name(self):
        """Unknown names are configuration errors."""
        with pytest.raises(UnknownMiddlewareError):
            MiddlewareRegistry().get("missing")
        assert issubclass(UnknownMiddlewareError, ConfigurationError)

    def test_registries_are_independent(self):
        """No state is shared between registries."""
        first, second = MiddlewareRegistry(), MiddlewareRegistry()
        first.add("allow", allow)
        assert "allow" not in second


class TestResolve:
    """Tests for resolve()."""

    def test_named(self):
        """Names resolve to a named reference."""
        registry = MiddlewareRegistry()
        registry.add("deny", deny)
        ref = registry.resolve("deny")
        assert ref.is_named
        assert ref.func is deny
        assert repr(ref) == "<Named Middleware 'deny'>"

    def test_inline(self):
        """Callables become inline references."""
        ref = MiddlewareRegistry().resolve(allow)
        assert not ref.is_named
        assert ref.func is allow
        assert "allow" in repr(ref)

    def test_reference_passes_through(self):
        """An existing reference is kept."""
        ref = MiddlewareRef(func=allow, name="x")
        assert MiddlewareRegistry().resolve(ref) is ref

    def test_invalid_spec(self):
        """Anything else is rejected."""
        with pytest.raises(TypeError):
            MiddlewareRegistry().resolve(42)


class TestRunChain:
    """Tests for run_chain()."""

    def test_empty_chain(self):
        """No middleware, no response."""
        assert run_chain([], make_context()) is None

    def test_all_pass(self):
        """Every middleware runs when none answers."""
        calls = []
        chain = [
            MiddlewareRef(func=lambda ctx: calls.append(1)),
            MiddlewareRef(func=lambda ctx: calls.append(2)),
        ]
        assert run_chain(chain, make_context()) is None
        assert calls == [1, 2]

    def test_short_circuit(self):
        """The first response stops the chain."""
        calls = []
        chain = [
            MiddlewareRef(func=allow),
            MiddlewareRef(func=deny, name="deny"),
            MiddlewareRef(func=lambda ctx: calls.append("never")),
        ]
        response = run_chain(chain, make_context())
        assert response.status_code == 403
        assert calls == []
