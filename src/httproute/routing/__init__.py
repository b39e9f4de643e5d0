"""
Routing: matchers, per-request context and the route table.
"""

from .context import RejectionCause, RequestContext, RoutingState
from .matchers import (
    Matcher,
    PathMatcher,
    MethodMatcher,
    HeaderMatcher,
    AcceptMatcher,
    ContentTypeMatcher,
)
from .router import Router, RouteEntry

__all__ = [
    "RejectionCause",
    "RequestContext",
    "RoutingState",
    "Matcher",
    "PathMatcher",
    "MethodMatcher",
    "HeaderMatcher",
    "AcceptMatcher",
    "ContentTypeMatcher",
    "Router",
    "RouteEntry",
]
