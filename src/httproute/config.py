"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables of an httproute server in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION SOURCES                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m httproute --port 3000                            │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m httproute                         │
    │                                                                     │
    │   3. Default values (in this dataclass)                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Besides the network settings, the config decides how the router reports
requests that almost matched a route:

    treat_405_as_404                      method mismatch → 404 instead of 405
    treat_required_header_failure_as_404  missing header  → 404 instead of 400
    negotiation_errors                    Accept / Content-Type mismatch
                                          → 406 / 415 instead of 404

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ServerInfo(Enum):
    """What the Server response header says."""

    NONE = "none"               # no Server header at all
    NO_VERSION = "no_version"   # "httproute"
    FULL = "full"               # "httproute; v0.1.0"
    CUSTOM = "custom"           # custom_server_info verbatim


_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    Development:
        ServerConfig(port=8080, log_level="DEBUG")

    Strict API behaviour:
        ServerConfig(negotiation_errors=True, server_info=ServerInfo.NONE)
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """The port number to listen on. 0 lets the OS pick a free port."""

    backlog: int = 128
    """Maximum number of queued connections."""

    buffer_size: int = 8192
    """Size of each recv() chunk in bytes."""

    timeout: Optional[float] = 30.0
    """
    Socket timeout in seconds.
    None = blocking (infinite wait on idle keep-alive connections)
    """

    max_request_size: int = 10 * 1024 * 1024  # 10 MB
    """Upper bound on header block plus body; larger requests get 413."""

    # ─────────────────────────────────────────────────────────────────────
    # RESPONSE POST-PROCESSING
    # ─────────────────────────────────────────────────────────────────────

    add_date: bool = True
    """Add a Date header to responses that do not carry one."""

    server_info: ServerInfo = ServerInfo.FULL
    """Content of the Server header, see ServerInfo."""

    custom_server_info: str = ""
    """Server header value used when server_info is CUSTOM."""

    # ─────────────────────────────────────────────────────────────────────
    # ROUTING FALLBACKS
    # ─────────────────────────────────────────────────────────────────────

    treat_405_as_404: bool = False
    """A path that matches with the wrong method answers 404, not 405."""

    treat_required_header_failure_as_404: bool = False
    """A missing required header answers 404, not 400."""

    negotiation_errors: bool = False
    """
    Report Accept / Content-Type mismatches as 406 / 415.
    Off by default: such requests fall through to 404.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    def set_custom_server_info(self, value: str) -> None:
        """Use a fixed Server header value."""
        self.server_info = ServerInfo.CUSTOM
        self.custom_server_info = value

    def server_header(self) -> Optional[str]:
        """Value of the Server header, or None when it is disabled."""
        from . import __version__

        if self.server_info is ServerInfo.NONE:
            return None
        if self.server_info is ServerInfo.NO_VERSION:
            return "httproute"
        if self.server_info is ServerInfo.CUSTOM:
            return self.custom_server_info
        return f"httproute; v{__version__}"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST                         Server host (default: 127.0.0.1)
        HTTP_PORT                         Server port (default: 8080)
        HTTP_TIMEOUT                      Socket timeout (default: 30)
        HTTP_LOG_LEVEL                    Logging level (default: INFO)
        HTTP_ADD_DATE                     Add Date header (default: 1)
        HTTP_SERVER_INFO                  none | no_version | full | custom:<value>
        HTTP_TREAT_405_AS_404             (default: 0)
        HTTP_TREAT_HEADER_FAILURE_AS_404  (default: 0)
        HTTP_NEGOTIATION_ERRORS           (default: 0)

        =====================================================================
        """
        config = cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            add_date=_env_flag("HTTP_ADD_DATE", True),
            treat_405_as_404=_env_flag("HTTP_TREAT_405_AS_404", False),
            treat_required_header_failure_as_404=_env_flag(
                "HTTP_TREAT_HEADER_FAILURE_AS_404", False
            ),
            negotiation_errors=_env_flag("HTTP_NEGOTIATION_ERRORS", False),
        )

        server_info = os.getenv("HTTP_SERVER_INFO")
        if server_info:
            kind, _, value = server_info.partition(":")
            if kind.lower() == ServerInfo.CUSTOM.value:
                config.set_custom_server_info(value)
            else:
                config.server_info = ServerInfo(kind.lower())

        return config

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.server_info is ServerInfo.CUSTOM and not self.custom_server_info:
            raise ValueError("server_info is CUSTOM but custom_server_info is empty")
