"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      REQUEST LIFECYCLE                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   SocketServer.accept()                                             │
    │       │                                                             │
    │       ▼  (one thread per connection)                                │
    │   Connection.read_request()    ← raw bytes of one request           │
    │       │                                                             │
    │       ▼                                                             │
    │   RequestParser.parse()        ← HTTPParseError → status, close     │
    │       │                                                             │
    │       ▼                                                             │
    │   Router.handle()              ← matchers, middleware, handler      │
    │       │                          (None → 404)                       │
    │       ▼                                                             │
    │   post-processing              ← Date, Server, Content-Length       │
    │       │                                                             │
    │       ▼                                                             │
    │   Connection.send()                                                 │
    │       │                                                             │
    │       └── keep-alive? ── yes → read the next request                │
    │                      └── no  → close                                │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

A handler that raises is logged with its traceback, answered with 500,
and only that connection is closed; the listener keeps running.

=============================================================================
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from .config import ServerConfig
from .core import Connection, SocketServer
from .http.method import HTTPMethod, HTTPVersion
from .http.request import HTTPParseError, HTTPRequest, RequestParser
from .http.response import HTTPResponse, format_http_date
from .http.status_codes import HTTPStatus
from .middleware import MiddlewareFunc, MiddlewareRegistry
from .routing import Router
from .serialization import SerializerRegistry


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("httproute.access")


class HTTPServer:
    """
    Threaded HTTP/1.1 server with a matcher-based router.

    Usage:
        server = HTTPServer(ServerConfig(port=8080))

        @server.middleware("auth")
        def auth(ctx):
            if not ctx.request.headers.has("Authorization"):
                return HTTPResponse(HTTPStatus.UNAUTHORIZED)
            return None

        @server.get("/user/:username/?",
                    extract=[path_param("username")],
                    produces=["application/json"],
                    middlewares=["auth"])
        def user(username):
            return {"name": username}

        server.run()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.middlewares = MiddlewareRegistry()
        self.serializers = SerializerRegistry()
        self.router = Router(self.config, self.middlewares, self.serializers)

        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._socket_server = SocketServer(self.config)
        self._running = False

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def middleware(self, name: str) -> Callable[[MiddlewareFunc], MiddlewareFunc]:
        """Register a named middleware (decorator)."""
        return self.middlewares.register(name)

    def add_middleware(self, name: str, func: MiddlewareFunc) -> MiddlewareFunc:
        return self.middlewares.add(name, func)

    def add_route(self, handler: Callable, **options: Any):
        """See Router.add_route()."""
        return self.router.add_route(handler, **options)

    def route(self, path: Optional[str] = None, method: Union[HTTPMethod, str, None] = None,
              **options: Any):
        """Register a route handler for any method."""
        return self.router.route(path, method, **options)

    def get(self, path: str, **options: Any):
        return self.router.get(path, **options)

    def post(self, path: str, **options: Any):
        return self.router.post(path, **options)

    def put(self, path: str, **options: Any):
        return self.router.put(path, **options)

    def patch(self, path: str, **options: Any):
        return self.router.patch(path, **options)

    def delete(self, path: str, **options: Any):
        return self.router.delete(path, **options)

    def head(self, path: str, **options: Any):
        return self.router.head(path, **options)

    def options(self, path: str, **options: Any):
        return self.router.options(path, **options)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Produce the response for one parsed request.

        Handler exceptions propagate; the connection loop turns them into 500.
        """
        response = self.router.handle(request)
        if response is None:
            response = HTTPResponse(HTTPStatus.NOT_FOUND)
        return self._post_process(response)

    def _post_process(self, response: HTTPResponse) -> HTTPResponse:
        if self.config.add_date and not response.headers.has("Date"):
            response.set_header("Date", format_http_date(datetime.now(timezone.utc)))

        server_header = self.config.server_header()
        if server_header is not None and not response.headers.has("Server"):
            response.set_header("Server", server_header)

        if not response.headers.has("Content-Length"):
            response.set_header("Content-Length", str(len(response.body)))
        return response

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def address(self):
        """Bound (host, port) once listening."""
        return self._socket_server.address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def run(self) -> None:
        """Start the server. Blocks until shutdown() or Ctrl+C."""
        self._setup_logging()
        self.router.freeze()

        for line in self.router.describe_routes():
            logger.info(f"Route {line}")

        self._running = True
        try:
            self._socket_server.start(self._process_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._running = False
            logger.info("Server stopped")

    def shutdown(self) -> None:
        """Stop accepting connections. Safe to call from another thread."""
        self._running = False
        self._socket_server.shutdown()

    def _setup_logging(self) -> None:
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("httproute").setLevel(level)

    # =========================================================================
    # CONNECTION LOOP
    # =========================================================================

    def _process_connection(self, conn: Connection) -> None:
        """
        Serve requests on one connection until it should close.

        HTTP/1.0 closes after one request. HTTP/1.1 continues unless the
        Connection header is missing, "close" or "upgrade".
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    request = self._parser.parse(raw_request, conn.address)
                    if not self._serve(conn, request):
                        break

                except HTTPParseError as e:
                    logger.warning(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                    self._send_error(conn, e.status_code)
                    break
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT)
                    break

    def _serve(self, conn: Connection, request: HTTPRequest) -> bool:
        """Answer one request. Returns True to keep the connection open."""
        started = time.perf_counter()
        keep_alive = request.is_keep_alive

        try:
            response = self.handle(request)
        except HTTPParseError as e:
            # bad q value in Accept, or a body the consumed type cannot decode
            logger.warning(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
            response = self._post_process(HTTPResponse(e.status_code))
            keep_alive = False
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error on {request.raw_method} {request.path}: {e}")
            response = self._post_process(HTTPResponse(HTTPStatus.INTERNAL_SERVER_ERROR))
            keep_alive = False

        if not keep_alive:
            response.set_header("Connection", "close")

        sent = conn.send(response.to_bytes(request.version))

        duration_ms = (time.perf_counter() - started) * 1000
        access_logger.info(
            f"{request.raw_method} {request.path} {response.status_code} {duration_ms:.1f}ms"
        )
        return sent and keep_alive

    def _send_error(self, conn: Connection, status: Union[HTTPStatus, int]) -> None:
        response = self._post_process(HTTPResponse(status))
        response.set_header("Connection", "close")
        conn.send(response.to_bytes(HTTPVersion.HTTP_1_1))
