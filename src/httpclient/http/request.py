"""
=============================================================================
HTTP REQUEST BUILDER
=============================================================================

Renders structured caller intent into the exact bytes an HTTP/1.1 server
expects on the wire.

=============================================================================
WIRE FORMAT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  POST /api/items?page=1&sort=name HTTP/1.1\r\n      ← request line   │
    │  Host: example.com\r\n                              ← always second  │
    │  Authorization: Bearer abc\r\n                      ← caller headers │
    │  User-Agent: httpclient/1.0\r\n                     ← from config    │
    │  Content-Type: text/plain; charset=utf-8\r\n        ← body only      │
    │  Content-Length: 11\r\n                             ← body only      │
    │  Connection: keep-closed\r\n                        ← unless given   │
    │  \r\n                                               ← ALWAYS present │
    │  hello world                                        ← POST/PUT body  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The blank line that ends the header block is emitted even when there are
no headers and no body: without it the server keeps waiting for more
header lines.

=============================================================================
TARGET (PATH + QUERY) RULES
=============================================================================

    URL                     query mapping        target
    ─────────────────────   ──────────────────   ────────────────
    http://h/p              None                 /p
    http://h/p              {"b": "2"}           /p?b=2
    http://h/p?a=1          None                 /p?a=1
    http://h/p?a=1          {"b": "2"}           /p?a=1&b=2

    http://h/p              {}                   /p?
    http://h/p?a=1          {}                   /p?a=1

Query values are used VERBATIM: no percent-encoding is applied. A value
containing "&", "=" or spaces goes on the wire as given.

Header names and values are also used verbatim, except that a CR or LF
in either raises InvalidHeaderError instead of injecting a new line.

=============================================================================
THE "keep-closed" QUIRK
=============================================================================

When the caller does not supply a Connection header, the builder adds
"Connection: keep-closed". This is not a registered connection option;
servers ignore unknown tokens and fall back to their default. Existing
callers depend on this exact text, so it is reproduced literally.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple
import logging

from ..errors import InvalidHeaderError, MissingHostError
from .methods import HTTPMethod
from .url import ParsedURL, parse_url

logger = logging.getLogger(__name__)


CRLF = "\r\n"
SYNTHETIC_CONNECTION = "keep-closed"
DEFAULT_BODY_CONTENT_TYPE = "text/plain; charset=utf-8"


def _check_header_field(name: str, value: str) -> None:
    """Reject CR/LF, which would split one header into several lines."""
    for part in (name, value):
        if "\r" in part or "\n" in part:
            raise InvalidHeaderError(
                f"Header {name!r} contains a line break", name=name, value=value
            )


def _stringify(mapping: Optional[Mapping]) -> Optional[Dict[str, str]]:
    """Normalize an arbitrary mapping to Dict[str, str] (None stays None)."""
    if mapping is None:
        return None
    return {str(key): str(value) for key, value in mapping.items()}


@dataclass(frozen=True)
class RequestConfig:
    """
    Immutable snapshot of what the caller wants to send.

    Attributes:
        url: Parsed URL (scheme, host, path, existing query).
        query: Extra query parameters, appended after the URL's own query.
        headers: Extra headers, names kept exactly as supplied.
        user_agent: Value for the User-Agent header, if any.
        raw_data: Request body for POST/PUT.
    """

    url: ParsedURL
    query: Optional[Dict[str, str]] = None
    headers: Optional[Dict[str, str]] = None
    user_agent: Optional[str] = None
    raw_data: Optional[str] = None

    @classmethod
    def from_url(
        cls,
        url: str,
        query: Optional[Mapping] = None,
        headers: Optional[Mapping] = None,
        user_agent: Optional[str] = None,
        raw_data: Optional[str] = None,
    ) -> "RequestConfig":
        """
        Build a config from a URL string and loosely-typed mappings.

        Keys and values are converted with str(), so {"page": 2} works.

        Raises:
            URLParseError: If the URL string is malformed.
        """
        return cls(
            url=parse_url(url),
            query=_stringify(query),
            headers=_stringify(headers),
            user_agent=str(user_agent) if user_agent is not None else None,
            raw_data=str(raw_data) if raw_data is not None else None,
        )

    def for_redirect(self, location: str) -> "RequestConfig":
        """
        Config for following a redirect to `location`.

        Query, headers and user agent carry over; the body does not.
        Relative locations are resolved against the current URL.
        """
        return RequestConfig(
            url=self.url.join(location),
            query=self.query,
            headers=self.headers,
            user_agent=self.user_agent,
            raw_data=None,
        )


class RequestBuilder:
    """
    Renders a RequestConfig into wire-format request text.

    The builder is stateless; one instance can serve every request.
    """

    def build(self, config: RequestConfig, method: HTTPMethod) -> Tuple[str, str]:
        """
        Render the request for `method`.

        Returns:
            Tuple of (request_text, host).

        Raises:
            MissingHostError: If the URL has no host.
        """
        method = HTTPMethod.from_value(method)
        target = self._build_target(config)

        host = config.url.host
        if not host:
            raise MissingHostError(f"URL has no host: {config.url.raw!r}")

        body = self._build_body(config, method)
        header_lines = self._build_headers(config, body)

        request_text = (
            f"{method} {target} HTTP/1.1{CRLF}"
            f"Host: {host}{CRLF}"
            f"{header_lines}"
            f"{CRLF}"
            f"{body or ''}"
        )
        return request_text, host

    def _build_target(self, config: RequestConfig) -> str:
        """Path, then the URL's own query, then the query mapping."""
        target = config.url.path
        has_query = False

        if config.url.query is not None:
            target += "?" + config.url.query
            has_query = True

        # A supplied mapping always sets the "?" marker, even when empty
        if config.query is not None:
            pairs = "&".join(f"{key}={value}" for key, value in config.query.items())
            if not has_query:
                target += "?"
            elif pairs:
                target += "&"
            target += pairs

        return target

    def _build_body(self, config: RequestConfig, method: HTTPMethod) -> Optional[str]:
        if config.raw_data is None:
            return None
        if not method.allows_body:
            logger.debug(f"Ignoring raw_data for {method} request to {config.url.raw}")
            return None
        return config.raw_data

    def _build_headers(self, config: RequestConfig, body: Optional[str]) -> str:
        headers = config.headers or {}
        for key, value in headers.items():
            _check_header_field(key, value)
        if config.user_agent is not None:
            _check_header_field("User-Agent", config.user_agent)

        supplied = {name.lower() for name in headers}

        lines = [f"{key}: {value}{CRLF}" for key, value in headers.items()]

        if config.user_agent is not None and "user-agent" not in supplied:
            lines.append(f"User-Agent: {config.user_agent}{CRLF}")

        if body is not None:
            if "content-type" not in supplied:
                lines.append(f"Content-Type: {DEFAULT_BODY_CONTENT_TYPE}{CRLF}")
            if "content-length" not in supplied:
                lines.append(f"Content-Length: {len(body.encode('utf-8'))}{CRLF}")

        if "connection" not in supplied:
            lines.append(f"Connection: {SYNTHETIC_CONNECTION}{CRLF}")

        return "".join(lines)


_default_builder = RequestBuilder()


def build_request(config: RequestConfig, method: HTTPMethod) -> Tuple[str, str]:
    """Render `config` for `method` with a shared RequestBuilder."""
    return _default_builder.build(config, method)


@dataclass
class Request:
    """
    A request being prepared for transmission.

    Created from a RequestConfig and rebuilt every time a verb is chosen,
    so request_text always matches method_used.

    Attributes:
        config: The caller's intent (never mutated).
        host: Host taken from the URL; empty until setup_request runs.
        request_text: Wire-format request; empty until setup_request runs.
        method_used: Verb tag of the last setup, used to replay redirects.
    """

    config: RequestConfig
    host: str = ""
    request_text: str = ""
    method_used: str = ""

    # Not part of equality/repr: a helper, not request state
    builder: RequestBuilder = field(default=_default_builder, repr=False, compare=False)

    def setup_request(self, method: HTTPMethod) -> None:
        """
        Render the request for `method` and record the verb.

        Raises:
            MissingHostError: If the URL has no host. The request stays
                              unset (empty request_text, empty host).
        """
        method = HTTPMethod.from_value(method)
        self.request_text, self.host = self.builder.build(self.config, method)
        self.method_used = method.value

    @property
    def is_prepared(self) -> bool:
        """True once setup_request has produced request text."""
        return bool(self.request_text)

    def encode(self, encoding: str = "utf-8") -> bytes:
        """The request text as bytes ready for the transport."""
        return self.request_text.encode(encoding)
