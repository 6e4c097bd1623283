"""
=============================================================================
CLIENT CONFIGURATION
=============================================================================

Centralized configuration for the HTTP client.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m httpclient GET URL --max-redirects 3            │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTPCLIENT_TIMEOUT=5 python -m httpclient GET URL         │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Ports are chosen by URL scheme, never by the URL itself:

    http://example.com:8080/x   →  connects to example.com:<http_port>

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ClientConfig:
    """
    Configuration for HTTPClient.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    TRANSPORT
    - http_port, https_port, timeout, buffer_size, verify_tls

    PROTOCOL
    - encoding, follow_redirects, max_redirects

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # TRANSPORT SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    http_port: int = 80
    """Port used for http:// URLs."""

    https_port: int = 443
    """Port used for https:// URLs."""

    timeout: Optional[float] = None
    """
    Socket timeout in seconds.
    None = blocking: a hung server blocks the caller indefinitely.
    """

    buffer_size: int = 8192
    """Size of the buffered line reader in bytes."""

    verify_tls: bool = True
    """Validate server certificates and host names for https."""

    # ─────────────────────────────────────────────────────────────────────
    # PROTOCOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    encoding: str = "utf-8"
    """Encoding used to decode response lines (requests are always UTF-8)."""

    follow_redirects: bool = True
    """Replay the request against the Location of a 301 response."""

    max_redirects: int = 10
    """Longest redirect chain followed before TooManyRedirectsError."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTPCLIENT_HTTP_PORT      Port for http URLs (default: 80)
        HTTPCLIENT_HTTPS_PORT     Port for https URLs (default: 443)
        HTTPCLIENT_TIMEOUT        Socket timeout in seconds (default: none)
        HTTPCLIENT_MAX_REDIRECTS  Redirect limit (default: 10)
        HTTPCLIENT_VERIFY_TLS     Verify certificates (default: true)
        HTTPCLIENT_LOG_LEVEL      Logging level (default: INFO)

        =====================================================================
        """
        timeout = os.getenv("HTTPCLIENT_TIMEOUT")
        return cls(
            http_port=int(os.getenv("HTTPCLIENT_HTTP_PORT", "80")),
            https_port=int(os.getenv("HTTPCLIENT_HTTPS_PORT", "443")),
            timeout=float(timeout) if timeout else None,
            max_redirects=int(os.getenv("HTTPCLIENT_MAX_REDIRECTS", "10")),
            verify_tls=_env_bool("HTTPCLIENT_VERIFY_TLS", True),
            log_level=os.getenv("HTTPCLIENT_LOG_LEVEL", "INFO"),
        )

    @property
    def log_level_number(self) -> int:
        """log_level as a logging module constant."""
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def port_for(self, scheme: str) -> Optional[int]:
        """Port for `scheme`, or None when the scheme is unsupported."""
        if scheme == "https":
            return self.https_port
        if scheme == "http":
            return self.http_port
        return None

    def validate(self) -> None:
        """
        Validate configuration values.

        Called when the client is constructed, so bad settings fail
        immediately instead of on the first request.
        """
        for name in ("http_port", "https_port"):
            port = getattr(self, name)
            if not 0 < port < 65536:
                raise ValueError(f"Invalid {name}: {port}. Must be 1-65535.")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level}")
