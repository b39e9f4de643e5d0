"""
=============================================================================
HANDLER DISPATCH
=============================================================================

Handlers are plain functions. What they receive is declared at
registration time as an ordered list of EXTRACTORS, each a function from
the request context to one argument:

    @router.get("/user/:username/?",
                extract=[path_param("username"), query("lang", "en")],
                produces=["application/json"])
    def show_user(username, lang):
        return {"name": username, "lang": lang}

    →  show_user(ctx.get_path_param("username"),
                 ctx.request.query_params.get_one("lang", "en"))

The n-th extractor feeds the n-th positional parameter. A mismatch between
the extractor count and the handler signature is caught at registration.

=============================================================================
RETURN VALUES
=============================================================================

Exactly one of these applies to a handler:

    returns                         becomes
    ───────                         ───────
    None                            bare 200 OK
    HTTPResponse                    sent unchanged
    object with to_response()       obj.to_response() / obj.to_response(ctx)
    anything else                   serialized for the negotiated media type
                                    (ONLY if the route declares produces=)

Returning a plain value from a route without produces= is a
ConfigurationError. When the handler has a return annotation this is
detected at registration; unannotated handlers are checked on each call.

=============================================================================
"""

from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, TYPE_CHECKING
import inspect
import logging
import typing

from .errors import ConfigurationError, SerializationError
from .http.request import HTTPParseError
from .http.response import HTTPResponse
from .http.status_codes import HTTPStatus

if TYPE_CHECKING:
    from .routing.context import RequestContext


logger = logging.getLogger(__name__)


Extractor = Callable[["RequestContext"], Any]
BoundHandler = Callable[["RequestContext"], HTTPResponse]


# =============================================================================
# EXTRACTORS
# =============================================================================

def context() -> Extractor:
    """The whole RequestContext."""
    return lambda ctx: ctx


def raw_request() -> Extractor:
    """The parsed HTTPRequest."""
    return lambda ctx: ctx.request


def method() -> Extractor:
    """The request's HTTPMethod."""
    return lambda ctx: ctx.request.method


def headers() -> Extractor:
    """The request's HeaderBag."""
    return lambda ctx: ctx.request.headers


def query_params() -> Extractor:
    """The request's QueryParamBag."""
    return lambda ctx: ctx.request.query_params


def header(name: str, default: str = "") -> Extractor:
    """First value of a header."""
    return lambda ctx: ctx.request.headers.get_one(name, default)


def header_values(name: str) -> Extractor:
    """All values of a header (empty list when absent)."""
    def extract(ctx: "RequestContext") -> List[str]:
        if not ctx.request.headers.has(name):
            return []
        return ctx.request.headers.get(name)
    return extract


def query(name: str, default: Optional[str] = "") -> Extractor:
    """First value of a query parameter."""
    def extract(ctx: "RequestContext") -> Optional[str]:
        return ctx.request.get_query(name, default)
    return extract


def query_values(name: str) -> Extractor:
    """All values of a query parameter (empty list when absent)."""
    def extract(ctx: "RequestContext") -> List[str]:
        if not ctx.request.query_params.has(name):
            return []
        return ctx.request.query_params.get(name)
    return extract


def path_param(name: str) -> Extractor:
    """A captured path parameter; raises MissingPathParamError if undefined."""
    return lambda ctx: ctx.get_path_param(name)


def body() -> Extractor:
    """
    The request body.

    On a route that declares consumes=, the body is deserialized with the
    serializer for the negotiated Content-Type. Otherwise the raw bytes
    are passed (None when the request carried no Content-Length).

    A body that does not decode is the client's fault: HTTPParseError 400.
    A Content-Type with no serializer (e.g. text/html on a "text/*" route)
    is HTTPParseError 415.
    """
    def extract(ctx: "RequestContext") -> Any:
        data = ctx.request.body
        if ctx.consumes is None or ctx.serializers is None:
            return data
        serializer = ctx.serializers.find(ctx.consumes)
        if serializer is None:
            raise HTTPParseError(f"Cannot decode a {ctx.consumes} body", status_code=415)
        try:
            return serializer.deserialize(data or b"")
        except SerializationError as e:
            raise HTTPParseError(str(e), status_code=400) from e
    return extract


# =============================================================================
# RETURN NORMALIZATION
# =============================================================================

class ReturnKind(Enum):
    """How a handler's return value is turned into a response."""

    VOID = "void"
    RESPONSE = "response"
    CONVERTIBLE = "convertible"
    SERIALIZED = "serialized"
    DYNAMIC = "dynamic"         # unannotated: decided per call


def _return_annotation(handler: Callable) -> Any:
    try:
        hints = typing.get_type_hints(handler)
    except (NameError, TypeError) as e:
        logger.debug(f"Cannot resolve annotations of {handler!r}: {e}")
        return inspect.Signature.empty
    return hints.get("return", inspect.Signature.empty)


def classify_return(handler: Callable, produces: bool) -> ReturnKind:
    """
    Decide at registration how the handler's result will be normalized.

    Raises:
        ConfigurationError: If the annotation names a plain type and the
            route does not declare produced media types.
    """
    annotation = _return_annotation(handler)

    if annotation is inspect.Signature.empty or annotation is Any:
        return ReturnKind.DYNAMIC
    if annotation is None or annotation is type(None):
        return ReturnKind.VOID
    if not isinstance(annotation, type):
        # Optional[...], Union[...], generics: only the value can tell
        return ReturnKind.DYNAMIC
    if issubclass(annotation, HTTPResponse):
        return ReturnKind.RESPONSE
    if callable(getattr(annotation, "to_response", None)):
        return ReturnKind.CONVERTIBLE
    if produces:
        return ReturnKind.SERIALIZED

    raise ConfigurationError(
        f"Handler {_describe(handler)} returns {annotation.__name__}, which is "
        f"neither an HTTPResponse nor convertible; declare produces= to serialize it"
    )


def _describe(handler: Callable) -> str:
    return getattr(handler, "__qualname__", repr(handler))


def _convert(value: Any, ctx: "RequestContext") -> HTTPResponse:
    to_response = value.to_response
    try:
        wants_context = len(inspect.signature(to_response).parameters) > 0
    except (TypeError, ValueError):
        wants_context = False
    response = to_response(ctx) if wants_context else to_response()
    if not isinstance(response, HTTPResponse):
        raise ConfigurationError(
            f"{type(value).__name__}.to_response() returned {type(response).__name__}"
        )
    return response


def _serialize(value: Any, ctx: "RequestContext") -> HTTPResponse:
    mime = ctx.accepted
    if mime is None or ctx.serializers is None:
        raise ConfigurationError("No negotiated media type to serialize the handler result")
    text = ctx.serializers.serialize(mime, value)
    return HTTPResponse(HTTPStatus.OK).set_body(text, content_type=mime)


def normalize(
    value: Any,
    ctx: "RequestContext",
    produces: bool,
    handler: Optional[Callable] = None
) -> HTTPResponse:
    """Turn any supported handler result into an HTTPResponse."""
    if value is None:
        return HTTPResponse(HTTPStatus.OK)
    if isinstance(value, HTTPResponse):
        return value
    if callable(getattr(value, "to_response", None)):
        return _convert(value, ctx)
    if produces:
        return _serialize(value, ctx)
    raise ConfigurationError(
        f"Handler {_describe(handler)} returned {type(value).__name__} on a route "
        f"without produces="
    )


# =============================================================================
# BINDING
# =============================================================================

def _check_arity(handler: Callable, count: int) -> None:
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return
    try:
        signature.bind(*range(count))
    except TypeError as e:
        raise ConfigurationError(
            f"Handler {_describe(handler)} cannot take {count} extracted "
            f"argument(s): {e}"
        ) from e


def bind_handler(
    handler: Callable,
    extractors: Sequence[Extractor] = (),
    produces: bool = False
) -> BoundHandler:
    """
    Wrap a handler into a function of the request context.

    Args:
        handler: The application function.
        extractors: One per positional parameter, in order.
        produces: Whether the route declares produced media types.

    Returns:
        A function ctx → HTTPResponse.

    Raises:
        ConfigurationError: On a signature or return-contract mismatch.
    """
    extractors = list(extractors)
    _check_arity(handler, len(extractors))
    kind = classify_return(handler, produces)

    def bound(ctx: "RequestContext") -> HTTPResponse:
        value = handler(*(extract(ctx) for extract in extractors))

        if kind is ReturnKind.VOID:
            return HTTPResponse(HTTPStatus.OK)
        if kind is ReturnKind.SERIALIZED and value is not None:
            return _serialize(value, ctx)
        return normalize(value, ctx, produces, handler)

    bound.__name__ = getattr(handler, "__name__", "handler")
    bound.__wrapped__ = handler
    return bound
