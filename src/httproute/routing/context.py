"""
Per-request routing state.

A RequestContext wraps one HTTPRequest for the duration of a single routing
attempt. Matchers write into it (path parameters, negotiated media types),
middleware and extractors read from it. It is created fresh for every
request and never shared between connections.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, TYPE_CHECKING

from ..errors import MissingPathParamError
from ..http.request import HTTPRequest

if TYPE_CHECKING:
    from ..serialization import SerializerRegistry


class RejectionCause(Enum):
    """Why the last examined route entry did not match."""

    METHOD = "method"
    HEADER = "header"
    ACCEPT = "accept"
    CONTENT_TYPE = "content_type"


@dataclass
class RequestContext:
    """
    A request plus everything routing learned about it.

    Attributes:
        request:     The parsed request (not modified by routing)
        path_params: Captures of the matched route's path pattern
        accepted:    Media type negotiated from Accept, if a route produces
        consumes:    Media type negotiated from Content-Type, if a route consumes
        serializers: Registry used for body (de)serialization
    """

    request: HTTPRequest
    path_params: Dict[str, str] = field(default_factory=dict)
    accepted: Optional[str] = None
    consumes: Optional[str] = None
    serializers: Optional["SerializerRegistry"] = field(default=None, repr=False)

    def get_path_param(self, name: str) -> str:
        """
        Read a captured path parameter.

        Raises:
            MissingPathParamError: If the matched route has no such parameter.
        """
        try:
            return self.path_params[name]
        except KeyError:
            raise MissingPathParamError(name, sorted(self.path_params)) from None

    def reset(self) -> None:
        """Forget what a rejected route entry wrote."""
        self.path_params = {}
        self.accepted = None
        self.consumes = None


@dataclass
class RoutingState:
    """
    Scratch state for one routing attempt.

    Only the most recent cause is kept. Negotiation causes are dropped
    unless the server maps them to 406 / 415.
    """

    negotiation_errors: bool = False
    rejection_cause: Optional[RejectionCause] = None

    def reject(self, cause: RejectionCause) -> None:
        if cause in (RejectionCause.ACCEPT, RejectionCause.CONTENT_TYPE):
            if not self.negotiation_errors:
                return
        self.rejection_cause = cause
