"""
=============================================================================
HTTP CLIENT
=============================================================================

Ties the pieces together: build the request, send it over a connection,
parse the response, and follow a 301 redirect.

=============================================================================
REQUEST CYCLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   client.get(url, query=..., headers=...)                           │
    │        │                                                             │
    │        ▼                                                             │
    │   RequestConfig ──► Request.setup_request(GET) ──► request_text     │
    │        │                                                             │
    │        ▼                                                             │
    │   scheme → port        ftp://, file://, ...  ──► None (no request)  │
    │        │                                                             │
    │        ▼                                                             │
    │   open_connection ──► write(request_text) ──► ResponseParser.parse  │
    │        │                                                             │
    │        ▼                                                             │
    │   status 301? ──no──► HTTPResponse                                  │
    │        │                                                             │
    │       yes                                                            │
    │        ▼                                                             │
    │   config.for_redirect(Location) ──► execute(same method, hop + 1)   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Only 301 triggers a replay. The replay reuses query, headers and user agent
and drops the body. Each hop closes its connection before the next one
opens. Chains longer than ClientConfig.max_redirects raise
TooManyRedirectsError.

=============================================================================
"""

import logging
from typing import Callable, Mapping, Optional, Union

from .config import ClientConfig
from .core.connection import Connection, open_connection
from .errors import MissingLocationError, TooManyRedirectsError
from .http.methods import HTTPMethod
from .http.request import Request, RequestConfig
from .http.response import HTTPResponse, LineSource, ResponseParser

logger = logging.getLogger(__name__)


REDIRECT_STATUS = "301"

# (host, port, use_tls, timeout, verify_tls, buffer_size, encoding) -> Connection
Connector = Callable[..., Connection]


class HTTPClient:
    """
    Minimal HTTP/1.1 client over raw sockets.

    =========================================================================
    USAGE
    =========================================================================

        client = HTTPClient()

        response = client.get("https://example.com/search", query={"q": "http"})
        if response is None:
            ...  # unsupported scheme
        print(response.status_code, response.body)

        client.post(
            "http://example.com/notes",
            headers={"Authorization": "Bearer abc"},
            raw_data="hello",
        )

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        connector: Optional[Connector] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration. Uses defaults if not provided.
            connector: Callable opening a Connection; defaults to
                       open_connection. Tests pass a fake here.
        """
        self.config = config or ClientConfig()
        self.config.validate()

        self._connector = connector or open_connection
        self._parser = ResponseParser()

    # =========================================================================
    # VERB CONVENIENCES
    # =========================================================================

    def request(
        self,
        method: Union[HTTPMethod, str],
        url: str,
        query: Optional[Mapping] = None,
        headers: Optional[Mapping] = None,
        user_agent: Optional[str] = None,
        raw_data: Optional[str] = None,
    ) -> Optional[HTTPResponse]:
        """
        Send one request and return its response.

        Returns:
            The response, or None when the URL scheme is unsupported.

        Raises:
            URLParseError: Malformed URL.
            MissingHostError: URL without a host.
            ConnectionFailedError: Connect, TLS, send or receive failure.
            HTTPParseError: Malformed response.
            MissingLocationError: 301 without Location.
            TooManyRedirectsError: Redirect chain too long.
        """
        config = RequestConfig.from_url(
            url,
            query=query,
            headers=headers,
            user_agent=user_agent,
            raw_data=raw_data,
        )
        return self.execute(Request(config), method)

    def get(self, url: str, **kwargs) -> Optional[HTTPResponse]:
        """Send a GET request."""
        return self.request(HTTPMethod.GET, url, **kwargs)

    def post(self, url: str, **kwargs) -> Optional[HTTPResponse]:
        """Send a POST request."""
        return self.request(HTTPMethod.POST, url, **kwargs)

    def put(self, url: str, **kwargs) -> Optional[HTTPResponse]:
        """Send a PUT request."""
        return self.request(HTTPMethod.PUT, url, **kwargs)

    def delete(self, url: str, **kwargs) -> Optional[HTTPResponse]:
        """Send a DELETE request."""
        return self.request(HTTPMethod.DELETE, url, **kwargs)

    # =========================================================================
    # REQUEST CYCLE
    # =========================================================================

    def execute(
        self,
        request: Request,
        method: Union[HTTPMethod, str],
        redirects: int = 0,
    ) -> Optional[HTTPResponse]:
        """
        Prepare `request` for `method`, send it, and apply the redirect policy.

        Args:
            request: The request to send; rebuilt for `method`.
            method: Verb to send.
            redirects: Hops already followed to reach this request.
        """
        # Unsupported schemes never reach the builder, so a hostless
        # file:// or mailto: URL yields None instead of MissingHostError
        if self.config.port_for(request.config.url.scheme) is None:
            logger.warning(
                f"Unsupported scheme {request.config.url.scheme!r} "
                f"for {request.config.url.raw}"
            )
            return None

        request.setup_request(method)

        response = self.send_request(request)
        if response is None:
            return None

        return self._follow_redirect(request, response, redirects)

    def send_request(self, request: Request) -> Optional[HTTPResponse]:
        """
        Send a prepared request and parse the response.

        Returns:
            The response, or None when the URL scheme has no port.
        """
        scheme = request.config.url.scheme
        port = self.config.port_for(scheme)
        if port is None:
            logger.warning(f"Unsupported scheme {scheme!r} for {request.config.url.raw}")
            return None

        logger.debug(
            f"{request.method_used} {request.config.url.raw} -> {request.host}:{port}"
        )

        with self._connector(
            request.host,
            port,
            use_tls=scheme == "https",
            timeout=self.config.timeout,
            verify_tls=self.config.verify_tls,
            buffer_size=self.config.buffer_size,
            encoding=self.config.encoding,
        ) as conn:
            conn.write(request.encode())
            return self.read_response(request, conn)

    def read_response(self, request: Request, source: LineSource) -> HTTPResponse:
        """
        Parse the response to `request` from a fresh line source.

        Raises:
            StreamNotFreshError: If `source` was already read from.
            HTTPParseError: If the response is malformed.
        """
        return self._parser.parse(source, url=request.config.url.raw)

    # =========================================================================
    # REDIRECT POLICY
    # =========================================================================

    def _follow_redirect(
        self,
        request: Request,
        response: HTTPResponse,
        redirects: int,
    ) -> Optional[HTTPResponse]:
        if response.status_code != REDIRECT_STATUS or not self.config.follow_redirects:
            return response

        location = response.get_header("Location")
        if location is None:
            raise MissingLocationError(
                f"301 response from {request.config.url.raw} has no Location header"
            )

        if redirects >= self.config.max_redirects:
            raise TooManyRedirectsError(
                f"Exceeded {self.config.max_redirects} redirects at {location}",
                max_redirects=self.config.max_redirects,
                location=location,
            )

        logger.info(
            f"Following 301 redirect {redirects + 1}/{self.config.max_redirects}: "
            f"{request.config.url.raw} -> {location}"
        )

        redirected = Request(request.config.for_redirect(location))
        return self.execute(redirected, request.method_used, redirects + 1)
