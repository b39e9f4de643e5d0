"""
=============================================================================
HTTP RESPONSE
=============================================================================

An HTTPResponse is built by a handler (or by the router on a fallback
path), amended by server post-processing, then serialized exactly once:

    handler            post-processing              to_bytes()
    ───────            ───────────────              ──────────
    HTTPResponse(      + Date (if enabled/absent)   HTTP/1.1 418 I'm a teapot\r\n
      status=418)      + Server (per ServerInfo)    Content-Type: text/plain\r\n
    .set_body(...)     + Content-Length             Content-Length: 12\r\n
                                                    \r\n
                                                    I'm a teapot

=============================================================================
STATUS
=============================================================================

The status is either a well-known HTTPStatus (its reason phrase is fixed)
or any integer with a custom reason:

    HTTPResponse(HTTPStatus.NOT_FOUND)         → "404 Not Found"
    HTTPResponse.custom(599, "Network Error")  → "599 Network Error"

=============================================================================
BODY
=============================================================================

A response has at most one body. Calling set_body() a second time raises
BodyAlreadySetError: silently replacing a body usually hides a handler bug
where two code paths both think they own the response.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from ..errors import BodyAlreadySetError
from .headers import HeaderBag
from .method import HTTPVersion
from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    A response to be sent to the client.

    Attributes:
        status:  HTTPStatus member or raw integer code
        reason:  Reason phrase override; required for unknown codes
        headers: Case-insensitive multi-valued header map
    """

    status: Union[HTTPStatus, int] = HTTPStatus.OK
    reason: Optional[str] = None
    headers: HeaderBag = field(default_factory=HeaderBag)
    _body: Optional[bytes] = field(default=None, repr=False)

    @classmethod
    def custom(cls, code: int, reason: str) -> "HTTPResponse":
        """Build a response with a code and reason of your choosing."""
        return cls(status=code, reason=reason)

    @property
    def status_code(self) -> int:
        return int(self.status)

    @property
    def phrase(self) -> str:
        """Reason phrase: the override, else the known phrase, else "Unknown"."""
        if self.reason is not None:
            return self.reason
        known = HTTPStatus.lookup(int(self.status))
        return known.phrase if known is not None else "Unknown"

    def status_line(self, version: HTTPVersion = HTTPVersion.HTTP_1_1) -> str:
        """e.g. "HTTP/1.1 404 Not Found"."""
        return f"{version.value} {int(self.status)} {self.phrase}"

    # =========================================================================
    # HEADERS
    # =========================================================================

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Replace a header. Returns self for chaining."""
        self.headers.set(name, value)
        return self

    def add_header(self, name: str, value: str) -> "HTTPResponse":
        """Add a header value, keeping existing ones (e.g. Set-Cookie)."""
        self.headers.append(name, value)
        return self

    # =========================================================================
    # BODY
    # =========================================================================

    @property
    def has_body(self) -> bool:
        return self._body is not None

    @property
    def body(self) -> bytes:
        """Body bytes; empty when no body was set."""
        return self._body if self._body is not None else b""

    def set_body(
        self,
        body: Union[str, bytes],
        content_type: Optional[str] = None
    ) -> "HTTPResponse":
        """
        Set the response body.

        Strings are encoded as UTF-8. When content_type is omitted, strings
        default to "text/plain; charset=utf-8" and bytes to
        "application/octet-stream", unless a Content-Type header is already
        set.

        Raises:
            BodyAlreadySetError: If a body was already set.
        """
        if self._body is not None:
            raise BodyAlreadySetError("Response body has already been set")

        if isinstance(body, str):
            self._body = body.encode("utf-8")
            default_type = "text/plain; charset=utf-8"
        else:
            self._body = bytes(body)
            default_type = "application/octet-stream"

        if content_type is not None:
            self.headers.set("Content-Type", content_type)
        elif not self.headers.has("Content-Type"):
            self.headers.set("Content-Type", default_type)
        return self

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_bytes(self, version: HTTPVersion = HTTPVersion.HTTP_1_1) -> bytes:
        """
        Serialize status line, headers and body.

        Content-Length is filled in here if nobody set it yet, so a response
        that skipped post-processing is still well-formed on the wire.
        """
        if not self.headers.has("Content-Length"):
            self.headers.set("Content-Length", str(len(self.body)))

        lines = [self.status_line(version)]
        for name, value in self.headers.lines():
            lines.append(f"{name}: {value}")
        lines.append("")

        head = "\r\n".join(lines).encode("latin-1", errors="replace") + b"\r\n"
        return head + self.body


def format_http_date(dt: datetime) -> str:
    """
    Format a UTC datetime as an HTTP-date (RFC 7231).

    Example: "Wed, 01 Jan 2026 12:00:00 GMT"
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(body: Union[str, bytes, None] = None, content_type: Optional[str] = None) -> HTTPResponse:
    """200 OK, with an optional body."""
    response = HTTPResponse(HTTPStatus.OK)
    if body is not None:
        response.set_body(body, content_type)
    return response


def created(location: Optional[str] = None) -> HTTPResponse:
    """201 Created, pointing at the new resource when location is given."""
    response = HTTPResponse(HTTPStatus.CREATED)
    if location:
        response.set_header("Location", location)
    return response


def not_found() -> HTTPResponse:
    return HTTPResponse(HTTPStatus.NOT_FOUND)


def method_not_allowed() -> HTTPResponse:
    return HTTPResponse(HTTPStatus.METHOD_NOT_ALLOWED)


def bad_request() -> HTTPResponse:
    return HTTPResponse(HTTPStatus.BAD_REQUEST)


def internal_error() -> HTTPResponse:
    return HTTPResponse(HTTPStatus.INTERNAL_SERVER_ERROR)


def error_response(status: Union[HTTPStatus, int]) -> HTTPResponse:
    """Empty-bodied response for any error status."""
    return HTTPResponse(status)
