"""
=============================================================================
HTTPROUTE - Matcher-Based Request Router with an HTTP/1.1 Server
=============================================================================

Routes are lists of MATCHERS (path pattern, method, required headers,
Accept, Content-Type) combined with AND, each with a chain of GATE
middleware and a handler that receives exactly the arguments it declares.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ARCHITECTURE                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   core/           SocketServer, Connection (threads, framing)       │
    │   http/           request parsing, responses, headers, status,      │
    │                   Accept quality lists and media-type sets          │
    │   routing/        matchers, RequestContext, Router                  │
    │   middleware/     named / inline gate middleware                    │
    │   dispatch.py     argument extractors, return normalization         │
    │   serialization   body serializers by media type                    │
    │   cookies.py      Cookie header access                              │
    │   server.py       HTTPServer: the connection loop                   │
    │   config.py       ServerConfig                                      │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    from httproute import HTTPServer, ServerConfig
    from httproute.dispatch import path_param
    from httproute.http import HTTPStatus, HTTPResponse

    server = HTTPServer(ServerConfig(port=8080))

    @server.get("/user/:username/?",
                extract=[path_param("username")],
                produces=["application/json"])
    def user(username):
        return {"name": username}

    @server.get("/coffee")
    def coffee():
        return HTTPResponse(HTTPStatus.IM_A_TEAPOT)

    server.run()

=============================================================================
"""

__version__ = "0.1.0"

from .config import ServerConfig, ServerInfo
from .errors import (
    ConfigurationError,
    DuplicateMiddlewareError,
    UnknownMiddlewareError,
    BodyAlreadySetError,
    MissingPathParamError,
    SerializationError,
)
from .server import HTTPServer
from .routing import Router, RequestContext

__all__ = [
    "HTTPServer",
    "ServerConfig",
    "ServerInfo",
    "Router",
    "RequestContext",
    "ConfigurationError",
    "DuplicateMiddlewareError",
    "UnknownMiddlewareError",
    "BodyAlreadySetError",
    "MissingPathParamError",
    "SerializationError",
    "__version__",
]
