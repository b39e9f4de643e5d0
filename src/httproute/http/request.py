"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns raw HTTP/1.x request bytes into an HTTPRequest.

    ┌─ REQUEST LINE ──────────────────────────────────────────────┐
    │   GET /user/bob?lang=en HTTP/1.1\r\n                        │
    │   ─┬─ ─────────┬──────── ────┬───                           │
    │  method      target       version                           │
    └─────────────────────────────────────────────────────────────┘
    ┌─ HEADERS ───────────────────────────────────────────────────┐
    │   Host: localhost\r\n                                       │
    │   Accept: application/json\r\n                              │
    │   Content-Length: 13\r\n                                    │
    │   \r\n                  ← blank line ends the header block  │
    └─────────────────────────────────────────────────────────────┘
    ┌─ BODY (only if Content-Length is set) ──────────────────────┐
    │   {"a": "body"}                                             │
    └─────────────────────────────────────────────────────────────┘

=============================================================================
STRICTNESS
=============================================================================

The parser is deliberately strict:

- The request line must be exactly three tokens separated by single spaces.
- A header line must be "Name: value": the colon followed by exactly one
  space is the ONLY accepted separator. "Name:value" or "Name :value" is a
  parse error, not something to be guessed at.
- Only HTTP/1.0 and HTTP/1.1 are accepted (anything else is 505).
- There is no chunked transfer encoding. A body exists only when
  Content-Length is present; without it request.body is None.

Unknown methods are accepted and surface as HTTPMethod.CUSTOM.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import re

from .headers import HeaderBag, QueryParamBag
from .method import HTTPMethod, HTTPVersion
from .uri import URI


class HTTPParseError(Exception):
    """
    Raised when a request (or a header value inside it) cannot be parsed.

    Carries the HTTP status code to send back before the connection is
    closed:

        400 Bad Request                 - malformed syntax
        413 Payload Too Large           - request exceeds size limit
        505 HTTP Version Not Supported  - anything but HTTP/1.0 and 1.1
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    The request itself is not modified by routing. Values derived while
    routing (path parameters, negotiated media types) live on the
    RequestContext that wraps it.

    Attributes:
        method:         Parsed method, CUSTOM for unknown verbs
        raw_method:     Method exactly as received ("PURGE")
        path:           Decoded path without query string
        query_params:   Case-sensitive multi-valued map
        headers:        Case-insensitive multi-valued map
        body:           Body bytes, or None when no Content-Length was sent
        version:        Protocol version
        client_address: (ip, port) of the peer, for logging
    """

    method: HTTPMethod
    path: str
    raw_method: str = ""
    query_params: QueryParamBag = field(default_factory=QueryParamBag)
    headers: HeaderBag = field(default_factory=HeaderBag)
    body: Optional[bytes] = None
    version: HTTPVersion = HTTPVersion.HTTP_1_1
    client_address: Tuple[str, int] = ("", 0)

    def __post_init__(self):
        if not self.raw_method:
            self.raw_method = self.method.value

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type without parameters ("text/html; charset=x" → "text/html")."""
        if not self.headers.has("Content-Type"):
            return None
        return self.headers.get_one("Content-Type").split(";")[0].strip()

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether another request may follow on this connection.

        HTTP/1.0 always closes after the first request. For HTTP/1.1 the
        Connection header decides, and a missing header counts as "close":

            keep-alive       → continue
            close / upgrade  → stop
            anything else    → continue
        """
        if self.version != HTTPVersion.HTTP_1_1:
            return False
        connection = self.headers.get_one("Connection", "close").lower()
        return connection not in ("close", "upgrade")

    def get_header(self, name: str, default: str = "") -> str:
        """First value of a header (case-insensitive), or default."""
        return self.headers.get_one(name, default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter, or default."""
        if not self.query_params.has(name):
            return default
        return self.query_params.get_one(name)


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    Usage:
        parser = RequestParser(max_request_size=1024 * 1024)
        request = parser.parse(data, client_address=("127.0.0.1", 50000))
    """

    # METHOD SP TARGET SP VERSION, single spaces only
    REQUEST_LINE_PATTERN = re.compile(r"^([^ ]+) ([^ ]+) ([^ ]+)$")

    HEADER_SEPARATOR = ": "

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: Tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse one complete request.

        Args:
            data: Header block, blank line and (optional) body.
            client_address: Peer address, kept for logging.

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: If any part of the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(f"Request too large: {len(data)} bytes", status_code=413)

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        try:
            header_section = data[:header_end].decode("latin-1")
        except UnicodeDecodeError as e:
            raise HTTPParseError(f"Failed to decode request head: {e}")

        lines = header_section.split("\r\n")
        method, raw_method, uri, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])
        body = self._extract_body(headers, data[header_end + 4:])

        return HTTPRequest(
            method=method,
            raw_method=raw_method,
            path=uri.path,
            query_params=uri.query_params,
            headers=headers,
            body=body,
            version=version,
            client_address=client_address,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> Tuple[HTTPMethod, str, URI, HTTPVersion]:
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        raw_method, target, raw_version = match.groups()

        version = HTTPVersion.parse(raw_version)
        if version is None:
            raise HTTPParseError(
                f"Unsupported HTTP version: {raw_version}",
                status_code=505
            )

        return HTTPMethod.parse(raw_method), raw_method, URI.parse(target), version

    def _parse_headers(self, lines: List[str]) -> HeaderBag:
        """
        Parse header lines into a HeaderBag.

        Repeated headers are kept as separate values in arrival order
        rather than folded into one comma-joined string.
        """
        headers = HeaderBag()
        for line in lines:
            name, sep, value = line.partition(self.HEADER_SEPARATOR)
            if (not sep or not name or name != name.strip()
                    or ":" in name or value.startswith(" ")):
                raise HTTPParseError(f"Invalid header line: {line!r}")
            headers.append(name, value)
        return headers

    def _extract_body(self, headers: HeaderBag, rest: bytes) -> Optional[bytes]:
        if not headers.has("Content-Length"):
            return None

        raw_length = headers.get_one("Content-Length")
        try:
            length = int(raw_length)
        except ValueError:
            raise HTTPParseError(f"Invalid Content-Length: {raw_length!r}")
        if length < 0:
            raise HTTPParseError(f"Invalid Content-Length: {raw_length!r}")

        if len(rest) < length:
            raise HTTPParseError(
                f"Incomplete body: expected {length} bytes, got {len(rest)}"
            )
        return rest[:length]


def parse_request(
    data: bytes,
    client_address: Tuple[str, int] = ("", 0),
    max_size: int = 10 * 1024 * 1024
) -> HTTPRequest:
    """Parse a request with a one-off RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
