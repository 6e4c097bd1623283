"""
=============================================================================
CLIENT ERRORS
=============================================================================

Every failure the client can report derives from HTTPClientError, so a
caller can catch one type at the call site:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       ERROR HIERARCHY                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTPClientError                                                    │
    │    ├── URLParseError          malformed URL string                  │
    │    ├── MissingHostError       URL has no host component             │
    │    ├── InvalidHeaderError     CR or LF in a header name or value    │
    │    ├── ConnectionFailedError  TCP connect / socket I/O failed       │
    │    │    └── TLSHandshakeError TLS handshake or certificate failed   │
    │    ├── HTTPParseError         status or header line is malformed    │
    │    ├── StreamNotFreshError    line source was already read from     │
    │    ├── MissingLocationError   301 response without Location         │
    │    └── TooManyRedirectsError  redirect chain exceeded the limit     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

An unsupported URL scheme is NOT an error: the client returns None.

=============================================================================
"""

from typing import Optional


class HTTPClientError(Exception):
    """Base class for all client errors."""


class URLParseError(HTTPClientError, ValueError):
    """Raised when a URL string cannot be parsed."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class MissingHostError(HTTPClientError):
    """Raised when a request is built for a URL without a host."""


class InvalidHeaderError(HTTPClientError, ValueError):
    """Raised when a header name or value contains CR or LF."""

    def __init__(self, message: str, name: str = "", value: str = ""):
        super().__init__(message)
        self.name = name
        self.value = value


class ConnectionFailedError(HTTPClientError):
    """
    Raised when the transport cannot connect, send or receive.

    Carries the target so logs show where the request was going.
    """

    def __init__(self, message: str, host: str = "", port: int = 0):
        super().__init__(message)
        self.host = host
        self.port = port


class TLSHandshakeError(ConnectionFailedError):
    """Raised when the TLS handshake or certificate validation fails."""


class HTTPParseError(HTTPClientError):
    """
    Raised when a response does not follow the HTTP/1.1 message shape.

    Attributes:
        line: The offending line (empty when the stream had no lines).
        line_number: 1-based position of that line in the response.
    """

    def __init__(self, message: str, line: str = "", line_number: int = 0):
        super().__init__(message)
        self.line = line
        self.line_number = line_number


class StreamNotFreshError(HTTPClientError):
    """Raised when parsing starts on a line source that was already read."""


class MissingLocationError(HTTPClientError):
    """Raised when a 301 response carries no Location header."""


class TooManyRedirectsError(HTTPClientError):
    """Raised when a redirect chain is longer than the configured limit."""

    def __init__(self, message: str, max_redirects: int, location: Optional[str] = None):
        super().__init__(message)
        self.max_redirects = max_redirects
        self.location = location
