"""
=============================================================================
SOCKET SERVER
=============================================================================

The TCP layer under HTTPServer: bind, listen, accept, hand off.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ACCEPT LOOP                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   while running:                                                    │
    │       accept()          ← returns after at most 1s (poll timeout)   │
    │         │                                                           │
    │         ├── timeout     → re-check running flag                     │
    │         │                                                           │
    │         └── new client  → Connection(...)                           │
    │                            └── worker thread: handler(conn)         │
    │                                                                     │
    │   shutdown()                                                        │
    │       close listener → join workers for up to DRAIN_SECONDS         │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Each connection gets its own thread for its whole keep-alive lifetime.
Workers are daemons and are tracked, so shutdown can wait for requests in
flight without hanging forever on an idle keep-alive client.

The listener is IPv6 when the configured host contains ":".

=============================================================================
"""

import logging
import signal
import socket
import threading
import time
from typing import Callable, Optional, Set, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ACCEPT_POLL_SECONDS = 1.0
DRAIN_SECONDS = 5.0

ConnectionHandler = Callable[[Connection], None]


class SocketServer:
    """
    Accepts TCP clients and runs one worker thread per connection.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._listener: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._workers: Set[threading.Thread] = set()
        self._workers_lock = threading.Lock()
        self._previous_signal_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); reflects the OS-chosen port when port is 0."""
        if self._listener is not None:
            return self._listener.getsockname()[:2]
        return (self.config.host, self.config.port)

    @property
    def active_connections(self) -> int:
        with self._workers_lock:
            return len(self._workers)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening."""
        return self._ready.wait(timeout)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self, handler: ConnectionHandler) -> None:
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Raises:
            OSError: If the address cannot be bound.
        """
        self._listener = self._bind()
        self._running = True
        self._install_signal_handlers()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready.set()

        try:
            self._accept_loop(handler)
        finally:
            self._close_listener()
            self._restore_signal_handlers()
            self._drain(DRAIN_SECONDS)
            self._ready.clear()
            logger.info("Socket server stopped")

    def shutdown(self) -> None:
        """Stop the accept loop within one poll interval. Safe to call repeatedly."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _bind(self) -> socket.socket:
        host, port = self.config.host, self.config.port
        family = socket.AF_INET6 if ":" in host else socket.AF_INET

        listener = socket.socket(family, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            listener.settimeout(ACCEPT_POLL_SECONDS)
            listener.bind((host, port))
            listener.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {host}:{port}: {e}")
            listener.close()
            raise
        return listener

    def _close_listener(self) -> None:
        if self._listener is None:
            return
        try:
            self._listener.close()
        except OSError as e:
            logger.debug(f"Closing listener: {e}")
        self._listener = None

    # =========================================================================
    # ACCEPT AND WORKERS
    # =========================================================================

    def _accept_loop(self, handler: ConnectionHandler) -> None:
        while self._running:
            try:
                client_socket, client_address = self._listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            conn = Connection(
                socket=client_socket,
                address=client_address[:2],
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            )
            logger.debug(f"[{conn.id}] Accepted {client_address[0]}:{client_address[1]}")
            self._spawn(handler, conn)

    def _spawn(self, handler: ConnectionHandler, conn: Connection) -> None:
        worker = threading.Thread(
            target=self._run_worker,
            args=(handler, conn),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        with self._workers_lock:
            self._workers.add(worker)
        worker.start()

    def _run_worker(self, handler: ConnectionHandler, conn: Connection) -> None:
        try:
            handler(conn)
        except Exception:
            logger.exception(f"[{conn.id}] Connection handler crashed")
            conn.close()
        finally:
            with self._workers_lock:
                self._workers.discard(threading.current_thread())

    def _drain(self, timeout: float) -> None:
        """Wait up to timeout seconds for connection workers to finish."""
        with self._workers_lock:
            workers = list(self._workers)
        if not workers:
            return

        logger.info(f"Waiting for {len(workers)} connection(s) to finish")
        deadline = time.monotonic() + timeout
        for worker in workers:
            worker.join(max(deadline - time.monotonic(), 0))

        remaining = self.active_connections
        if remaining:
            logger.warning(f"{remaining} connection(s) still open after {timeout:.0f}s")

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _install_signal_handlers(self) -> None:
        """SIGTERM / SIGINT call shutdown(); signals only work on the main thread."""
        if threading.current_thread() is not threading.main_thread():
            return

        def on_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._previous_signal_handlers[sig] = signal.signal(sig, on_signal)

    def _restore_signal_handlers(self) -> None:
        for sig, previous in self._previous_signal_handlers.items():
            signal.signal(sig, previous)
        self._previous_signal_handlers.clear()
