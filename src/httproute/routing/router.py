"""
=============================================================================
ROUTER
=============================================================================

The router owns an ordered table of route entries. Each entry is:

    (matchers, middleware chain, handler)

    ┌─────────────────────────────────────────────────────────────────────┐
    │  ROUTE TABLE (sorted once, then read-only)                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │  [Path /user/:id, Method GET, Accept json]  [auth]   → show_user    │
    │  [Path /user/:id, Method DELETE]            [auth]   → drop_user    │
    │  [Path /tea, Method GET]                    []       → tea          │
    │  [Path /health]                             []       → health       │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ROUTING A REQUEST
=============================================================================

1. Wrap the request in a fresh RequestContext.
2. Walk the table in order. For each entry, evaluate its matchers in
   order; the first failure rejects the entry (and may record WHY).
3. The first entry whose matchers all pass wins:
       run its middleware chain → a middleware response is final
       otherwise call the handler → its response is final
4. If nothing matched, look at the LAST recorded rejection cause:

       METHOD        → 405   (unless treat_405_as_404)
       HEADER        → 400   (unless treat_required_header_failure_as_404)
       ACCEPT        → 406   (only with negotiation_errors)
       CONTENT_TYPE  → 415   (only with negotiation_errors)
       otherwise     → None, which the server turns into 404

=============================================================================
ORDERING
=============================================================================

Before the first request the table is sorted by NUMBER OF MATCHERS,
descending, with ties kept in registration order. More matchers is used
as a stand-in for "more specific". It is only a heuristic: a route with
three loose matchers outranks one with two tight ones. Registration order
is the tie-breaker, so register the route you want tried first earlier.

=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union
import logging

from ..config import ServerConfig
from ..dispatch import BoundHandler, Extractor, ReturnKind, bind_handler, classify_return
from ..errors import ConfigurationError
from ..http.method import HTTPMethod
from ..http.negotiation import is_wildcard
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus
from ..middleware.base import MiddlewareRef, MiddlewareRegistry, MiddlewareSpec, run_chain
from ..serialization import SerializerRegistry
from .context import RejectionCause, RequestContext, RoutingState
from .matchers import (
    AcceptMatcher, ContentTypeMatcher, HeaderMatcher, Matcher, MethodMatcher, PathMatcher,
)


logger = logging.getLogger(__name__)


Handler = Callable[..., Any]


@dataclass(frozen=True)
class RouteEntry:
    """
    A registered route.

    Attributes:
        matchers:    AND-combined predicates, evaluated in order
        middlewares: Resolved middleware chain
        handler:     Bound handler, ctx → HTTPResponse
        name:        Optional label for logs
    """

    matchers: Tuple[Matcher, ...]
    middlewares: Tuple[MiddlewareRef, ...]
    handler: BoundHandler
    name: Optional[str] = None

    def matches(self, ctx: RequestContext, state: RoutingState) -> bool:
        for matcher in self.matchers:
            if not matcher.matches(ctx, state):
                return False
        return True

    def describe(self) -> str:
        matchers = ", ".join(repr(m) for m in self.matchers)
        label = self.name or getattr(self.handler, "__name__", "handler")
        return f"[{matchers}] {list(self.middlewares)} → {label}"


class Router:
    """
    Matcher-based request router.

    Usage:
        router = Router()

        @router.get("/user/:username/?", extract=[path_param("username")])
        def user(username):
            return ok(f"hello {username}")

        response = router.handle(request)  # None means 404
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        middlewares: Optional[MiddlewareRegistry] = None,
        serializers: Optional[SerializerRegistry] = None,
    ):
        self.config = config or ServerConfig()
        self.middlewares = middlewares if middlewares is not None else MiddlewareRegistry()
        self.serializers = serializers if serializers is not None else SerializerRegistry()
        self._routes: List[RouteEntry] = []
        self._frozen = False

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_entry(self, entry: RouteEntry) -> RouteEntry:
        """Append a pre-built entry to the table."""
        if self._frozen:
            raise ConfigurationError("Cannot register routes after the router is frozen")
        self._routes.append(entry)
        logger.debug(f"Registered route {entry.describe()}")
        return entry

    def add_route(
        self,
        handler: Handler,
        path: Optional[str] = None,
        method: Union[HTTPMethod, str, None] = None,
        require_headers: Sequence[str] = (),
        produces: Sequence[str] = (),
        consumes: Sequence[str] = (),
        middlewares: Sequence[MiddlewareSpec] = (),
        extract: Sequence[Extractor] = (),
        matchers: Sequence[Matcher] = (),
        name: Optional[str] = None,
    ) -> RouteEntry:
        """
        Register a handler.

        Matchers are built in this order: path, method, required headers,
        Accept (produces), Content-Type (consumes), then any extra matchers.

        Args:
            handler: Application function.
            path: Path pattern with ":name" placeholders; None matches any path.
            method: HTTPMethod or method name; None matches any method.
            require_headers: Header names that must be present.
            produces: Media types the handler can produce.
            consumes: Media types the handler accepts as body.
            middlewares: Registered names and/or inline callables.
            extract: One extractor per positional handler parameter.
            matchers: Additional custom matchers.
            name: Label used in logs.

        Returns:
            The registered entry.

        Raises:
            ConfigurationError: For unknown middleware, malformed patterns,
                handler signature / return mismatches, or produced types
                without a serializer.
        """
        built: List[Matcher] = []
        if path is not None:
            built.append(PathMatcher(path))
        if method is not None:
            built.append(MethodMatcher(method))
        built.extend(HeaderMatcher(h) for h in require_headers)
        if produces:
            self._check_serializers(produces)
            serializes = classify_return(handler, produces=True) in (
                ReturnKind.SERIALIZED, ReturnKind.DYNAMIC
            )
            built.append(AcceptMatcher(produces, self.serializers if serializes else None))
        if consumes:
            built.append(ContentTypeMatcher(consumes))
        built.extend(matchers)

        if not built:
            raise ConfigurationError(f"Route for {handler!r} has no matchers")

        entry = RouteEntry(
            matchers=tuple(built),
            middlewares=tuple(self.middlewares.resolve_all(middlewares)),
            handler=bind_handler(handler, extract, produces=bool(produces)),
            name=name or getattr(handler, "__name__", None),
        )
        return self.add_entry(entry)

    def _check_serializers(self, produces: Iterable[str]) -> None:
        for mime in produces:
            if not is_wildcard(mime) and mime not in self.serializers:
                raise ConfigurationError(f"No serializer registered for produced type {mime}")

    def route(
        self,
        path: Optional[str] = None,
        method: Union[HTTPMethod, str, None] = None,
        **options: Any
    ) -> Callable[[Handler], Handler]:
        """
        Decorator form of add_route(); returns the handler unchanged.

        Usage:
            @router.route("/tea", HTTPMethod.GET)
            def tea():
                return None
        """
        def decorator(handler: Handler) -> Handler:
            self.add_route(handler, path=path, method=method, **options)
            return handler
        return decorator

    def get(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route(path, HTTPMethod.GET, **options)

    def post(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self.route(path, HTTPMethod.POST, **options)

    def put(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        """Register a PUT route."""
        return self.route(path, HTTPMethod.PUT, **options)

    def patch(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        """Register a PATCH route."""
        return self.route(path, HTTPMethod.PATCH, **options)

    def delete(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        """Register a DELETE route."""
        return self.route(path, HTTPMethod.DELETE, **options)

    def head(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        """Register a HEAD route."""
        return self.route(path, HTTPMethod.HEAD, **options)

    def options(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        """Register an OPTIONS route."""
        return self.route(path, HTTPMethod.OPTIONS, **options)

    # =========================================================================
    # TABLE
    # =========================================================================

    def freeze(self) -> None:
        """
        Sort the table and stop accepting registrations.

        Idempotent. Called by the server before it starts listening, and
        by handle() on first use.
        """
        if self._frozen:
            return
        # sorted() is stable: equal counts keep registration order
        self._routes = sorted(self._routes, key=lambda e: len(e.matchers), reverse=True)
        self._frozen = True
        logger.debug(f"Route table frozen with {len(self._routes)} entries")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def routes(self) -> List[RouteEntry]:
        """Entries in table order (sorted once frozen)."""
        return list(self._routes)

    def describe_routes(self) -> List[str]:
        return [entry.describe() for entry in self._routes]

    # =========================================================================
    # ROUTING
    # =========================================================================

    def handle(self, request: HTTPRequest) -> Optional[HTTPResponse]:
        """
        Route a request to at most one handler.

        Returns:
            The handler's (or a middleware's) response, a 405 / 400 / 406 /
            415 fallback, or None when nothing matched at all.
        """
        self.freeze()

        ctx = RequestContext(request=request, serializers=self.serializers)
        state = RoutingState(negotiation_errors=self.config.negotiation_errors)

        for entry in self._routes:
            if not entry.matches(ctx, state):
                ctx.reset()
                continue

            response = run_chain(entry.middlewares, ctx)
            if response is not None:
                return response
            return entry.handler(ctx)

        return self._fallback(state.rejection_cause)

    def _fallback(self, cause: Optional[RejectionCause]) -> Optional[HTTPResponse]:
        if cause is RejectionCause.METHOD and not self.config.treat_405_as_404:
            return HTTPResponse(HTTPStatus.METHOD_NOT_ALLOWED)
        if cause is RejectionCause.HEADER and not self.config.treat_required_header_failure_as_404:
            return HTTPResponse(HTTPStatus.BAD_REQUEST)
        if cause is RejectionCause.ACCEPT:
            return HTTPResponse(HTTPStatus.NOT_ACCEPTABLE)
        if cause is RejectionCause.CONTENT_TYPE:
            return HTTPResponse(HTTPStatus.UNSUPPORTED_MEDIA_TYPE)
        return None
