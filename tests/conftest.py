"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httproute import HTTPServer, ServerConfig, ServerInfo
from httproute.cookies import REQUIRE_COOKIES, cookies
from httproute.dispatch import body, path_param
from httproute.http import HTTPResponse, HTTPStatus, ok


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /user/bob?lang=en&lang=de HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    payload = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(payload)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + payload


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        add_date=False,
        server_info=ServerInfo.NONE,
        log_level="WARNING",
    )


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def request(self, raw: bytes) -> bytes:
        """Send raw bytes on a fresh connection and read until the server closes it."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as client:
            client.sendall(raw)
            chunks = []
            while True:
                chunk = client.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def stop(self):
        """Stop the server."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running server with a few routes."""
    server = HTTPServer(config)

    @server.get("/tea")
    def tea() -> None:
        return None

    @server.get("/user/:username/?", extract=[path_param("username")],
                produces=["application/json"])
    def user(username: str) -> dict:
        return {"name": username}

    @server.post("/echo", consumes=["application/json"], produces=["application/json"],
                 extract=[body()])
    def echo(data) -> dict:
        return {"received": data}

    @server.get("/eat_cookie", require_headers=[REQUIRE_COOKIES], extract=[cookies()])
    def eat_cookie(bag) -> HTTPResponse:
        return ok(f"mmmm {bag.get('type')}")

    @server.get("/boom")
    def boom() -> HTTPResponse:
        raise RuntimeError("handler failure")

    @server.get("/coffee")
    def coffee() -> HTTPResponse:
        return HTTPResponse(HTTPStatus.IM_A_TEAPOT).set_body("I'm a teapot")

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
