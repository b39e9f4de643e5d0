"""
=============================================================================
CONNECTION
=============================================================================

A client socket with request framing on top.

TCP is a byte stream: one recv() may return half a request, or one request
plus the start of the next. The connection therefore buffers and frames
requests by the HTTP rules:

    ┌─────────────────────────────────────────────────────────────────┐
    │  GET /user/bob HTTP/1.1\r\n                                     │
    │  Content-Length: 5\r\n                                          │
    │  \r\n                        ← end of head                      │
    │  hello                       ← exactly Content-Length bytes     │
    │  GET /tea HTTP/1.1\r\n...    ← leftover, kept for the next read │
    └─────────────────────────────────────────────────────────────────┘

1. recv() until the buffer contains \r\n\r\n
2. Read Content-Length (0 when absent) from the raw head
3. recv() until the body is complete
4. Cut one request off the buffer, keep the rest (pipelining)

=============================================================================
"""

import logging
import socket
import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..http.request import HTTPParseError


logger = logging.getLogger(__name__)


HEAD_TERMINATOR = b"\r\n\r\n"


@dataclass
class Connection:
    """
    One accepted client socket.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used in log lines.
        requests_handled: Requests framed on this connection so far.
    """

    socket: socket.socket
    address: Tuple[str, int]
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    max_request_size: int = 10 * 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)
    _closed: bool = field(default=False, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def closed(self) -> bool:
        return self._closed

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request.

        Returns:
            The request bytes (head and body), or None when the peer closed
            the connection or went idle between keep-alive requests.

        Raises:
            TimeoutError: If the first request never arrives.
            HTTPParseError: 413 when the request exceeds max_request_size.
        """
        try:
            while HEAD_TERMINATOR not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._append(chunk)

            header_end = self._buffer.find(HEAD_TERMINATOR)
            body_start = header_end + len(HEAD_TERMINATOR)
            content_length = self._parse_content_length(self._buffer[:header_end])

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break  # peer closed mid-body; the parser reports it
                self._append(chunk)

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]
            self.requests_handled += 1
            return request_data

        except socket.timeout:
            if self.requests_handled > 0 and not self._buffer:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

    def _append(self, chunk: bytes) -> None:
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(self._buffer)} bytes", status_code=413
            )

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    @staticmethod
    def _parse_content_length(head: bytes) -> int:
        """
        Content-Length from the raw head, 0 if absent or unreadable.

        Only used for framing; the request parser validates the header
        properly afterwards.
        """
        for line in head.decode("latin-1").lower().split("\r\n")[1:]:
            name, _, value = line.partition(":")
            if name == "content-length":
                try:
                    return max(int(value.strip()), 0)
                except ValueError:
                    return 0
        return 0

    def send(self, data: bytes) -> bool:
        """
        Send bytes with sendall().

        Returns:
            False if the peer has gone away.
        """
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self) -> None:
        """Shut down the write side, drain, and release the socket. Idempotent."""
        if self._closed:
            return
        self._closed = True

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # includes socket.timeout

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
