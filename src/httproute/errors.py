"""
=============================================================================
FRAMEWORK ERRORS
=============================================================================

Exceptions raised by the routing core. Two families matter:

    ConfigurationError      Programmer mistakes caught at startup
    ├── DuplicateMiddlewareError
    ├── UnknownMiddlewareError
    └── BodyAlreadySetError

    MissingPathParamError   Handler asked for a path parameter the
                            matched route never captured

Wire-level parse failures live next to the parser as HTTPParseError
(see httproute.http.request) because they carry an HTTP status code.

A ConfigurationError must never reach a client: it is raised while routes
and middleware are being registered, before the server accepts a single
connection.

=============================================================================
"""

from typing import List


class ConfigurationError(Exception):
    """Raised when routes, middleware or handlers are wired up incorrectly."""


class DuplicateMiddlewareError(ConfigurationError):
    """A middleware name was registered twice."""

    def __init__(self, name: str):
        super().__init__(f"Middleware '{name}' is already registered")
        self.name = name


class UnknownMiddlewareError(ConfigurationError):
    """A route referenced a middleware name nobody registered."""

    def __init__(self, name: str):
        super().__init__(f"Middleware '{name}' is not registered")
        self.name = name


class BodyAlreadySetError(ConfigurationError):
    """A response body was set a second time."""


class MissingPathParamError(KeyError):
    """
    Raised when reading a path parameter the matched route does not define.

    Subclasses KeyError so callers that treat path_params like a dict keep
    working, but the message names the parameter and the ones available.
    """

    def __init__(self, name: str, available: List[str]):
        super().__init__(name)
        self.name = name
        self.available = available

    def __str__(self) -> str:
        known = ", ".join(self.available) or "none"
        return f"No path parameter '{self.name}' (route defines: {known})"


class SerializationError(Exception):
    """A serializer failed to encode or decode a body."""
