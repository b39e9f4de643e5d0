"""
Unit tests for handler binding, extractors and return normalization.
"""

import json
from typing import Optional

import pytest

from httproute.dispatch import (
    ReturnKind,
    bind_handler,
    body,
    classify_return,
    context,
    header,
    header_values,
    method,
    path_param,
    query,
    query_values,
    raw_request,
)
from httproute.errors import ConfigurationError, MissingPathParamError, SerializationError
from httproute.http.method import HTTPMethod
from httproute.http.request import HTTPParseError, HTTPRequest
from httproute.http.response import HTTPResponse, ok
from httproute.http.status_codes import HTTPStatus
from httproute.routing.context import RequestContext
from httproute.serialization import SerializerRegistry


def make_context(**kwargs) -> RequestContext:
    request = HTTPRequest(method=HTTPMethod.GET, path="/", **kwargs)
    return RequestContext(request=request, serializers=SerializerRegistry())


class Teapot:
    """Converts itself to a response."""

    def to_response(self) -> HTTPResponse:
        return HTTPResponse(HTTPStatus.IM_A_TEAPOT)


class Echo:
    """Converts itself using the request context."""

    def to_response(self, ctx) -> HTTPResponse:
        return ok(ctx.request.path)


class Broken:
    def to_response(self):
        return "not a response"


class TestExtractors:
    """Tests for the argument extractors."""

    def test_request_level_extractors(self):
        """Whole-object extractors hand over what they name."""
        ctx = make_context()
        assert context()(ctx) is ctx
        assert raw_request()(ctx) is ctx.request
        assert method()(ctx) is HTTPMethod.GET

    def test_header(self):
        """header() returns the first value or the default."""
        ctx = make_context()
        ctx.request.headers.append("X-Tag", "a")
        ctx.request.headers.append("X-Tag", "b")

        assert header("x-tag")(ctx) == "a"
        assert header("missing", "none")(ctx) == "none"
        assert header_values("X-Tag")(ctx) == ["a", "b"]
        assert header_values("missing")(ctx) == []

    def test_query(self):
        """query() returns the first value or the default."""
        ctx = make_context()
        ctx.request.query_params.append("q", "tea")
        ctx.request.query_params.append("q", "coffee")

        assert query("q")(ctx) == "tea"
        assert query("page", "1")(ctx) == "1"
        assert query_values("q")(ctx) == ["tea", "coffee"]
        assert query_values("page")(ctx) == []

    def test_path_param(self):
        """Missing path parameters name what is available."""
        ctx = make_context()
        ctx.path_params["name"] = "bob"

        assert path_param("name")(ctx) == "bob"
        with pytest.raises(MissingPathParamError) as exc_info:
            path_param("id")(ctx)
        assert isinstance(exc_info.value, KeyError)
        assert "name" in str(exc_info.value)

    def test_body_raw(self):
        """Without consumes= the raw bytes are passed."""
        ctx = make_context(body=b"raw")
        assert body()(ctx) == b"raw"
        assert body()(make_context()) is None

    def test_body_deserialized(self):
        """With a negotiated Content-Type the body is decoded."""
        ctx = make_context(body=b'{"a": [1, 2]}')
        ctx.consumes = "application/json"
        assert body()(ctx) == {"a": [1, 2]}

    def test_body_invalid_json(self):
        """Undecodable bodies are a 400 client error."""
        ctx = make_context(body=b"{nope")
        ctx.consumes = "application/json"
        with pytest.raises(HTTPParseError) as exc_info:
            body()(ctx)
        assert exc_info.value.status_code == 400
        assert isinstance(exc_info.value.__cause__, SerializationError)

    def test_body_without_serializer(self):
        """A consumed type nobody can decode is 415."""
        ctx = make_context(body=b"<p>hi</p>")
        ctx.consumes = "text/html"
        with pytest.raises(HTTPParseError) as exc_info:
            body()(ctx)
        assert exc_info.value.status_code == 415


class TestClassifyReturn:
    """Tests for classify_return()."""

    def test_unannotated(self):
        """No annotation means decide per call."""
        assert classify_return(lambda: None, produces=False) is ReturnKind.DYNAMIC

    def test_none(self):
        def handler() -> None:
            pass
        assert classify_return(handler, produces=False) is ReturnKind.VOID

    def test_response(self):
        def handler() -> HTTPResponse:
            return ok()
        assert classify_return(handler, produces=False) is ReturnKind.RESPONSE

    def test_convertible(self):
        def handler() -> Teapot:
            return Teapot()
        assert classify_return(handler, produces=False) is ReturnKind.CONVERTIBLE

    def test_serialized(self):
        def handler() -> dict:
            return {}
        assert classify_return(handler, produces=True) is ReturnKind.SERIALIZED

    def test_plain_type_without_produces(self):
        """Returning a plain value needs produces=."""
        def handler() -> dict:
            return {}
        with pytest.raises(ConfigurationError):
            classify_return(handler, produces=False)

    def test_optional_is_dynamic(self):
        """Unions are checked per call."""
        def handler() -> Optional[HTTPResponse]:
            return None
        assert classify_return(handler, produces=False) is ReturnKind.DYNAMIC


class TestBindHandler:
    """Tests for bind_handler()."""

    def test_arguments_in_extractor_order(self):
        """The n-th extractor feeds the n-th parameter."""
        ctx = make_context()
        ctx.path_params["name"] = "bob"
        ctx.request.query_params.set("lang", "de")

        bound = bind_handler(
            lambda lang, name: ok(f"{name}/{lang}"),
            [query("lang"), path_param("name")],
        )
        assert bound(ctx).body == b"bob/de"

    def test_none_is_200(self):
        """None becomes a bare 200."""
        response = bind_handler(lambda: None)(make_context())
        assert response.status_code == 200
        assert not response.has_body

    def test_response_passthrough(self):
        """HTTPResponse results are sent unchanged."""
        sent = HTTPResponse(HTTPStatus.CREATED)
        assert bind_handler(lambda: sent)(make_context()) is sent

    def test_convertible_without_context(self):
        """to_response() with no parameters."""
        assert bind_handler(lambda: Teapot())(make_context()).status_code == 418

    def test_convertible_with_context(self):
        """to_response(ctx) receives the request context."""
        assert bind_handler(lambda: Echo())(make_context()).body == b"/"

    def test_convertible_must_return_response(self):
        """to_response() must produce an HTTPResponse."""
        with pytest.raises(ConfigurationError):
            bind_handler(lambda: Broken())(make_context())

    def test_serialized_with_negotiated_type(self):
        """Plain values are serialized for ctx.accepted."""
        ctx = make_context()
        ctx.accepted = "application/json"

        response = bind_handler(lambda: {"name": "bob"}, produces=True)(ctx)

        assert response.status_code == 200
        assert response.headers.get_one("Content-Type") == "application/json"
        assert json.loads(response.body) == {"name": "bob"}

    def test_plain_value_without_produces(self):
        """Unannotated handlers are checked when they return."""
        with pytest.raises(ConfigurationError):
            bind_handler(lambda: {"name": "bob"})(make_context())

    def test_void_handler_ignores_result(self):
        """A handler annotated -> None always answers 200."""
        def handler() -> None:
            return None
        assert bind_handler(handler)(make_context()).status_code == 200

    def test_arity_mismatch(self):
        """Extractor count must fit the signature."""
        with pytest.raises(ConfigurationError):
            bind_handler(lambda: None, [query("a")])

    def test_defaults_and_varargs_accepted(self):
        """Signatures that can take the arguments are fine."""
        bind_handler(lambda a, b="x": None, [query("a")])
        bind_handler(lambda *args: None, [query("a"), query("b")])

    def test_wrapped_metadata(self):
        """The bound function keeps the handler's name."""
        def show_user():
            return None
        bound = bind_handler(show_user)
        assert bound.__name__ == "show_user"
        assert bound.__wrapped__ is show_user

    def test_handler_exceptions_propagate(self):
        """Errors are left for the server to turn into 500."""
        def failing():
            raise RuntimeError("boom")
        with pytest.raises(RuntimeError):
            bind_handler(failing)(make_context())
