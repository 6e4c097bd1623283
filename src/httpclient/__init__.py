"""
=============================================================================
HTTPCLIENT - Minimal HTTP/1.1 Client Built From Scratch
=============================================================================

This package talks HTTP/1.1 directly over TCP and TLS sockets: it renders
the request text itself and parses the response line by line.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpclient/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m httpclient)
    ├── client.py            # HTTPClient: request cycle + redirect policy
    ├── config.py            # ClientConfig dataclass
    ├── errors.py            # HTTPClientError hierarchy
    ├── core/
    │   └── connection.py    # TCP/TLS connection, line reader
    └── http/
        ├── methods.py       # HTTPMethod enum
        ├── url.py           # URL parsing adapter
        ├── request.py       # RequestConfig, Request, RequestBuilder
        └── response.py      # HTTPResponse, ResponseParser

=============================================================================
QUICK START
=============================================================================

    from httpclient import HTTPClient

    client = HTTPClient()
    response = client.get("https://example.com/", headers={"Accept": "text/html"})

    print(response.status_code)       # "200"
    print(response.headers)           # {"Content-Type": "text/html", ...}
    print(response.body)

=============================================================================
"""

__version__ = "1.0.0"

from .client import HTTPClient
from .config import ClientConfig
from .errors import (
    HTTPClientError,
    URLParseError,
    MissingHostError,
    InvalidHeaderError,
    ConnectionFailedError,
    TLSHandshakeError,
    HTTPParseError,
    StreamNotFreshError,
    MissingLocationError,
    TooManyRedirectsError,
)
from .http import HTTPMethod, HTTPResponse, Request, RequestConfig

__all__ = [
    "HTTPClient",
    "ClientConfig",
    "HTTPMethod",
    "HTTPResponse",
    "Request",
    "RequestConfig",
    "HTTPClientError",
    "URLParseError",
    "MissingHostError",
    "InvalidHeaderError",
    "ConnectionFailedError",
    "TLSHandshakeError",
    "HTTPParseError",
    "StreamNotFreshError",
    "MissingLocationError",
    "TooManyRedirectsError",
    "__version__",
]
