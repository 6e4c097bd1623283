"""
URL parsing adapter.

Splits a URL string into the fields the request builder consumes. The
heavy lifting is done by urllib.parse; this module only normalizes the
result and turns malformed input into URLParseError.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlsplit
import re

from ..errors import URLParseError


# RFC 3986: scheme = ALPHA *( ALPHA / DIGIT / "+" / "-" / "." )
SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.\-]*$")


@dataclass(frozen=True)
class ParsedURL:
    """
    The parsed components of a request URL.

    Attributes:
        raw: The URL string as given (used to resolve relative redirects).
        scheme: Lowercase scheme ("http", "https", ...).
        host: Lowercase host name, or None when the URL has no authority.
        path: Request path, "/" when the URL has none.
        query: Existing query string without the "?", or None.
    """

    raw: str
    scheme: str
    host: Optional[str]
    path: str = "/"
    query: Optional[str] = None

    def join(self, location: str) -> "ParsedURL":
        """Resolve a (possibly relative) location against this URL."""
        return parse_url(urljoin(self.raw, location))


def parse_url(url: str) -> ParsedURL:
    """
    Parse an absolute URL string.

    Example:
        >>> parse_url("https://example.com/search?q=1")
        ParsedURL(raw='https://example.com/search?q=1', scheme='https',
                  host='example.com', path='/search', query='q=1')

    Raises:
        URLParseError: If the string is empty, relative, or has an
                       invalid authority (bad port, unbalanced brackets).
    """
    text = url.strip() if isinstance(url, str) else ""
    if not text:
        raise URLParseError("Empty URL", url=str(url))

    try:
        parts = urlsplit(text)
        # Accessing .port validates it even though the port is not used
        parts.port
    except ValueError as e:
        raise URLParseError(f"Invalid URL {text!r}: {e}", url=text) from e

    if not parts.scheme or not SCHEME_PATTERN.match(parts.scheme):
        raise URLParseError(f"Relative URL without a base: {text!r}", url=text)

    return ParsedURL(
        raw=text,
        scheme=parts.scheme,
        host=parts.hostname or None,
        path=parts.path or "/",
        query=parts.query or None,
    )
