"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The client side of HTTP/1.1: rendering requests and parsing responses.
Nothing in this package touches a socket.

=============================================================================
HTTP MESSAGE FORMAT (RFC 7230)
=============================================================================

    REQUEST (we build):               RESPONSE (we parse):
    ───────────────────               ────────────────────
    GET /path?q=1 HTTP/1.1\\r\\n        HTTP/1.1 200 OK\\r\\n
    Host: example.com\\r\\n             Header: Value\\r\\n
    Header: Value\\r\\n                 Header: Value\\r\\n
    \\r\\n                              \\r\\n
    [body]                            [body]

=============================================================================
"""

from .methods import HTTPMethod
from .url import ParsedURL, parse_url
from .request import RequestConfig, Request, RequestBuilder, build_request
from .response import (
    HTTPResponse,
    ResponseParser,
    ParseState,
    LineSource,
    LineFeed,
    parse_response,
)

__all__ = [
    # Methods
    "HTTPMethod",

    # URL parsing
    "ParsedURL",
    "parse_url",

    # Request building
    "RequestConfig",
    "Request",
    "RequestBuilder",
    "build_request",

    # Response parsing
    "HTTPResponse",
    "ResponseParser",
    "ParseState",
    "LineSource",
    "LineFeed",
    "parse_response",
]
