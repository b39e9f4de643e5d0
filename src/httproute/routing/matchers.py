"""
=============================================================================
ROUTE MATCHERS
=============================================================================

A route entry is a list of matchers that must ALL pass:

    GET /user/:id   produces application/json
        │
        ▼
    [PathMatcher("/user/:id"), MethodMatcher(GET), AcceptMatcher([...])]

Each matcher is a predicate over the RequestContext. Besides answering
yes/no, a matcher may:

- annotate the context (PathMatcher writes path_params, AcceptMatcher
  writes accepted, ContentTypeMatcher writes consumes), and
- record a rejection cause on the RoutingState so the router can answer
  405 or 400 instead of 404 when nothing matched.

=============================================================================
PATH PATTERNS
=============================================================================

    Pattern                 Regex
    ───────                 ─────
    /user/:name             ^/user/(?P<name>[^/]*)$
    /user/:name/?           ^/user/(?P<name>[^/]*)/?$
    /a?b                    ^/a?b$
    /files/:rest            ^/files/(?P<rest>.*)$     ← last placeholder is greedy
    /v:major.:minor/x       ^/v(?P<major>[^/]*)\\.(?P<minor>[^/]*)/x$

- A placeholder is ":" followed by [A-Za-z0-9_]+ and ends at the first
  other character.
- "?" is copied into the regex as-is, so it makes the ONE preceding
  character optional. Every other literal is escaped.
- A placeholder that runs to the end of the pattern captures the rest of
  the path, slashes included.
- The regex is anchored at both ends: /user/:name does not match
  /user/alice/extra.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Container, Iterable, List, Optional, Pattern, Union
import re

from ..errors import ConfigurationError
from ..http.method import HTTPMethod
from ..http.negotiation import MimeSet, parse_quality_list
from .context import RejectionCause, RequestContext, RoutingState


def _is_identifier_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char == "_")


class Matcher(ABC):
    """A predicate over a request context."""

    @abstractmethod
    def matches(self, ctx: RequestContext, state: RoutingState) -> bool:
        """Return True if the request passes this matcher."""


class PathMatcher(Matcher):
    """Matches the decoded request path against a ":param" pattern."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        self.param_names: List[str] = []
        self.regex = self._compile(pattern)

    def _compile(self, pattern: str) -> Pattern[str]:
        parts = []
        name = ""
        in_param = False

        for char in pattern:
            if in_param:
                if _is_identifier_char(char):
                    name += char
                    continue
                parts.append(f"(?P<{name}>[^/]*)")
                self.param_names.append(name)
                name = ""
                in_param = False
            elif char == ":":
                in_param = True
                continue

            parts.append("?" if char == "?" else re.escape(char))

        if in_param:
            parts.append(f"(?P<{name}>.*)")
            self.param_names.append(name)

        source = "^" + "".join(parts) + "$"
        try:
            return re.compile(source)
        except re.error as e:
            raise ConfigurationError(f"Invalid route pattern {pattern!r}: {e}") from e

    def matches(self, ctx: RequestContext, state: RoutingState) -> bool:
        match = self.regex.match(ctx.request.path)
        if match is None:
            return False
        for name in self.param_names:
            # a placeholder followed by "?" may not participate at all
            ctx.path_params[name] = match.group(name) or ""
        return True

    def __repr__(self) -> str:
        return f"PathMatcher({self.pattern!r})"


class MethodMatcher(Matcher):
    """Matches the request method; custom verbs compare by raw string."""

    def __init__(self, method: Union[HTTPMethod, str]):
        if isinstance(method, HTTPMethod):
            if method is HTTPMethod.CUSTOM:
                raise ConfigurationError("MethodMatcher needs the raw name of a custom method")
            self.method = method
            self.raw_method = method.value
        else:
            self.method = HTTPMethod.parse(method)
            self.raw_method = method

    def matches(self, ctx: RequestContext, state: RoutingState) -> bool:
        request = ctx.request
        if request.method is not self.method or (
            self.method is HTTPMethod.CUSTOM and request.raw_method != self.raw_method
        ):
            state.reject(RejectionCause.METHOD)
            return False
        return True

    def __repr__(self) -> str:
        return f"MethodMatcher({self.raw_method!r})"


class HeaderMatcher(Matcher):
    """Requires a header to be present; its value is not inspected."""

    def __init__(self, name: str):
        self.name = name

    def matches(self, ctx: RequestContext, state: RoutingState) -> bool:
        if ctx.request.headers.has(self.name):
            return True
        state.reject(RejectionCause.HEADER)
        return False

    def __repr__(self) -> str:
        return f"HeaderMatcher({self.name!r})"


class AcceptMatcher(Matcher):
    """
    "Produces": passes if the Accept header asks for something we make.

    Candidates are tried from highest to lowest quality; the first one
    the produced set can satisfy becomes ctx.accepted. With a serializer
    registry, a candidate also needs a serializer for its base type, so
    "text/*" never negotiates a type the route cannot write.
    """

    def __init__(self, produces: Iterable[str], serializers: Optional[Container[str]] = None):
        self.produces = MimeSet(produces)
        self.serializers = serializers

    def matches(self, ctx: RequestContext, state: RoutingState) -> bool:
        headers = ctx.request.headers
        if headers.has("Accept"):
            for candidate in parse_quality_list(headers.get_one("Accept")):
                negotiated = self.produces.satisfy(candidate)
                if negotiated is None:
                    continue
                if self.serializers is None or negotiated in self.serializers:
                    ctx.accepted = negotiated
                    return True
        state.reject(RejectionCause.ACCEPT)
        return False

    def __repr__(self) -> str:
        return f"AcceptMatcher({self.produces.mimes!r})"


class ContentTypeMatcher(Matcher):
    """"Consumes": passes if the request Content-Type is one we accept."""

    def __init__(self, consumes: Iterable[str]):
        self.consumes = MimeSet(consumes)

    def matches(self, ctx: RequestContext, state: RoutingState) -> bool:
        content_type = ctx.request.content_type
        if content_type and self.consumes.can_satisfy(content_type):
            ctx.consumes = content_type
            return True
        state.reject(RejectionCause.CONTENT_TYPE)
        return False

    def __repr__(self) -> str:
        return f"ContentTypeMatcher({self.consumes.mimes!r})"
