"""
=============================================================================
MIDDLEWARE
=============================================================================

Middleware here is a GATE in front of a route's handler, not a wrapper
around it. Each middleware looks at the request context and either:

    returns None          → continue with the next middleware / the handler
    returns HTTPResponse  → short-circuit: that response is sent, nothing
                            after it in the chain runs

    route entry: [auth, rate_check, inline_fn] → handler

        auth(ctx)        → None
        rate_check(ctx)  → HTTPResponse(429)    ← chain stops here
        inline_fn(ctx)      (never called)
        handler(ctx)        (never called)

=============================================================================
NAMED vs INLINE
=============================================================================

A route lists its middleware either by NAME or as a callable:

    registry = MiddlewareRegistry()

    @registry.register("auth")
    def require_token(ctx):
        if not ctx.request.headers.has("Authorization"):
            return HTTPResponse(HTTPStatus.UNAUTHORIZED)
        return None

    @router.get("/admin", middlewares=["auth", lambda ctx: None])
    def admin():
        ...

Names are resolved when the route is REGISTERED, not when a request
arrives. A typo in a middleware name therefore stops the application at
startup with UnknownMiddlewareError instead of failing on first use.

The registry belongs to one server instance; there is no module-level
global registry.

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Union, TYPE_CHECKING
import logging

from ..errors import DuplicateMiddlewareError, UnknownMiddlewareError
from ..http.response import HTTPResponse

if TYPE_CHECKING:
    from ..routing.context import RequestContext


logger = logging.getLogger(__name__)


# A middleware takes the request context and may answer for the route.
MiddlewareFunc = Callable[["RequestContext"], Optional[HTTPResponse]]

# What route declarations accept: a registered name or a callable.
MiddlewareSpec = Union[str, MiddlewareFunc]


@dataclass(frozen=True)
class MiddlewareRef:
    """
    One element of a route's middleware chain.

    For a named reference, func is filled in from the registry when the
    route is registered; name is kept for logging and repr.
    """

    func: MiddlewareFunc
    name: Optional[str] = None

    @property
    def is_named(self) -> bool:
        return self.name is not None

    def __call__(self, ctx: "RequestContext") -> Optional[HTTPResponse]:
        return self.func(ctx)

    def __repr__(self) -> str:
        if self.is_named:
            return f"<Named Middleware '{self.name}'>"
        return f"<Inline Middleware {getattr(self.func, '__name__', self.func)!r}>"


class MiddlewareRegistry:
    """
    Named middleware for one server.

    Usage:
        registry = MiddlewareRegistry()

        @registry.register("json_only")
        def json_only(ctx):
            ...

        registry.add("noop", lambda ctx: None)
    """

    def __init__(self):
        self._middleware: Dict[str, MiddlewareFunc] = {}

    def add(self, name: str, func: MiddlewareFunc) -> MiddlewareFunc:
        """
        Register a middleware under a name.

        Raises:
            DuplicateMiddlewareError: If the name is taken.
        """
        if name in self._middleware:
            raise DuplicateMiddlewareError(name)
        self._middleware[name] = func
        logger.debug(f"Registered middleware: {name}")
        return func

    def register(self, name: str) -> Callable[[MiddlewareFunc], MiddlewareFunc]:
        """Decorator form of add(); returns the function unchanged."""
        def decorator(func: MiddlewareFunc) -> MiddlewareFunc:
            return self.add(name, func)
        return decorator

    def get(self, name: str) -> MiddlewareFunc:
        """
        Look up a middleware by name.

        Raises:
            UnknownMiddlewareError: If nothing is registered under the name.
        """
        try:
            return self._middleware[name]
        except KeyError:
            raise UnknownMiddlewareError(name) from None

    def resolve(self, spec: MiddlewareSpec) -> MiddlewareRef:
        """Turn a route's middleware declaration into a bound reference."""
        if isinstance(spec, MiddlewareRef):
            return spec
        if isinstance(spec, str):
            return MiddlewareRef(func=self.get(spec), name=spec)
        if callable(spec):
            return MiddlewareRef(func=spec)
        raise TypeError(f"Middleware must be a name or a callable, got {spec!r}")

    def resolve_all(self, specs: Iterable[MiddlewareSpec]) -> List[MiddlewareRef]:
        return [self.resolve(spec) for spec in specs]

    def __contains__(self, name: str) -> bool:
        return name in self._middleware

    def __len__(self) -> int:
        return len(self._middleware)


def run_chain(
    chain: Iterable[MiddlewareRef],
    ctx: "RequestContext"
) -> Optional[HTTPResponse]:
    """
    Run middleware in order until one answers.

    Returns:
        The first response produced, or None if every middleware let the
        request through.
    """
    for middleware in chain:
        response = middleware(ctx)
        if response is not None:
            logger.debug(f"{middleware!r} short-circuited {ctx.request.path}")
            return response
    return None
