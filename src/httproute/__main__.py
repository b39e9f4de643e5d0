"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    python -m httproute                       # Run with defaults
    python -m httproute --port 3000           # Custom port
    python -m httproute --server-info none    # No Server header
    HTTP_PORT=3000 python -m httproute        # Environment, overridden by flags

Serves a small demo application:

    GET /cookie?type=chocolate   sets "type=chocolate", body "Eat"
    GET /eat_cookie              needs a Cookie header, body "mmmm chocolate"
    GET /coffee                  418 I'm a teapot
    GET /tea                     200, empty body
    GET /user/:username/?        {"name": ...} as application/json

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig, ServerInfo
from .cookies import REQUIRE_COOKIES, cookies
from .dispatch import path_param, query
from .http.response import HTTPResponse, ok
from .http.status_codes import HTTPStatus
from .server import HTTPServer


def build_demo(config: ServerConfig) -> HTTPServer:
    """Create a server with the demo routes registered."""
    server = HTTPServer(config)

    @server.get("/cookie", extract=[query("type", "vanilla")])
    def cookie(kind: str) -> HTTPResponse:
        return ok("Eat").set_header("Set-Cookie", f"type={kind}")

    @server.get("/eat_cookie", require_headers=[REQUIRE_COOKIES], extract=[cookies()])
    def eat_cookie(bag) -> HTTPResponse:
        return ok(f"mmmm {bag.get('type', '')}")

    @server.get("/coffee")
    def coffee() -> HTTPResponse:
        return HTTPResponse(HTTPStatus.IM_A_TEAPOT).set_body("I'm a teapot")

    @server.get("/tea")
    def tea() -> None:
        return None

    @server.get(
        "/user/:username/?",
        extract=[path_param("username")],
        produces=["application/json"],
    )
    def user(username: str) -> dict:
        return {"name": username}

    return server


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httproute",
        description="Matcher-based HTTP router: demo server",
    )

    parser.add_argument(
        "--host", "-H",
        help="Host to bind to (default: $HTTP_HOST or 127.0.0.1)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        help="Port to listen on (default: $HTTP_PORT or 8080)"
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: $HTTP_LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--server-info",
        choices=[info.value for info in ServerInfo if info is not ServerInfo.CUSTOM],
        help="What the Server header reveals (default: $HTTP_SERVER_INFO or full)"
    )
    parser.add_argument(
        "--treat-405-as-404",
        action="store_true",
        default=None,
        help="Answer 404 instead of 405 when only the method does not match"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"httproute {__version__}"
    )

    return parser


def load_config(argv=None) -> ServerConfig:
    """
    Environment first (ServerConfig.from_env), then the flags actually given.

    Raises:
        ValueError: If an HTTP_* variable does not parse.
    """
    args = build_parser().parse_args(argv)
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.server_info is not None:
        config.server_info = ServerInfo(args.server_info)
    if args.treat_405_as_404 is not None:
        config.treat_405_as_404 = args.treat_405_as_404
    return config


def main(argv=None) -> int:
    try:
        config = load_config(argv)
        server = build_demo(config)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
