"""
=============================================================================
HTTP RESPONSE PARSER
=============================================================================

Turns the line stream coming back from the server into an HTTPResponse.

=============================================================================
PARSER STATE MACHINE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   FIRST_LINE ──status line──► HEADERS ──empty line──► BODY ──┐      │
    │       │                         │  ▲                    ▲    │      │
    │       │                         └──┘                    └────┘      │
    │       │                      "Key: Value"            any line       │
    │       ▼                                                              │
    │   HTTPParseError (no match / empty stream)                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    HTTP/1.1 200 OK\r\n              FIRST_LINE → version, status code
    Content-Type: text/plain\r\n     HEADERS    → headers["Content-Type"]
    X-Id: 1\r\n                      HEADERS    → headers["X-Id"]
    \r\n                             HEADERS    → switch to BODY (not stored)
    foo\r\n                          BODY       → "foo"
    \r\n                             BODY       → ""
    bar                              BODY       → "bar"

    body == "foo\\n\\nbar"

Body lines are rejoined with "\\n", not the "\\r\\n" seen on the wire. Blank lines
inside or at the end of the body are kept as empty segments.

=============================================================================
LINE SOURCES
=============================================================================

The parser never touches sockets. It reads from anything with:

    read_line() -> Optional[str]   next line without its terminator,
                                   None at end of stream
    lines_read: int                how many lines were already consumed

core.connection.Connection is the production line source; tests feed
plain lists through a small adapter.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple
import json
import logging
import re

from ..errors import HTTPParseError, StreamNotFreshError

logger = logging.getLogger(__name__)


class LineSource(Protocol):
    """Anything the parser can read response lines from."""

    lines_read: int

    def read_line(self) -> Optional[str]:
        ...


class ParseState(Enum):
    """Which part of the response the next line belongs to."""

    FIRST_LINE = "first_line"    # Expecting "HTTP/x.y NNN reason"
    HEADERS = "headers"          # Expecting "Key: Value" or the blank line
    BODY = "body"                # Everything else until end of stream


@dataclass(frozen=True)
class HTTPResponse:
    """
    A fully received HTTP response.

    Attributes:
        version: Protocol version from the status line ("HTTP/1.1").
        status_code: Three-digit status code as a string ("200").
        headers: Header name → value, names as received, last one wins.
        body: Body lines rejoined with "\\n".
        reason: Reason phrase from the status line ("OK"), may be empty.
        url: URL of the request that produced this response.
    """

    version: str
    status_code: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    reason: str = ""
    url: str = ""

    @property
    def status(self) -> int:
        """Status code as an integer."""
        return int(self.status_code)

    @property
    def ok(self) -> bool:
        """True for 2xx responses."""
        return 200 <= self.status < 300

    @property
    def is_redirect(self) -> bool:
        """True for 3xx responses."""
        return 300 <= self.status < 400

    @property
    def status_line(self) -> str:
        """The status line as it appeared on the wire (minus CRLF)."""
        line = f"{self.version} {self.status_code}"
        return f"{line} {self.reason}" if self.reason else line

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Case-insensitive header lookup.

        Exact-case match wins; otherwise the last header whose name
        matches ignoring case is returned.
        """
        if name in self.headers:
            return self.headers[name]
        lowered = name.lower()
        found = default
        for key, value in self.headers.items():
            if key.lower() == lowered:
                found = value
        return found

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type without parameters, lowercased."""
        value = self.get_header("Content-Type")
        if not value:
            return None
        return value.split(";")[0].strip().lower()

    @property
    def content_length(self) -> Optional[int]:
        """Content-Length as an integer, None when missing or invalid."""
        try:
            return int(self.get_header("Content-Length", ""))
        except ValueError:
            return None

    def json(self) -> Any:
        """
        Decode the body as JSON.

        Raises:
            json.JSONDecodeError: If the body is not valid JSON.
        """
        return json.loads(self.body)


class ResponseParser:
    """
    Parses a line source into an HTTPResponse.

    ==========================================================================
    REGEX PATTERNS EXPLAINED
    ==========================================================================

    STATUS_LINE_PATTERN: ^(HTTP/[12]\\.\\d) (\\d{3})(?: (.*))?$
        (HTTP/[12]\\.\\d) - version: HTTP/1.0, HTTP/1.1, HTTP/2.0
        (\\d{3})         - three-digit status code
        (?: (.*))?      - optional reason phrase

    HEADER_PATTERN: ^([^:]+):\\s*(.*)$
        ([^:]+)         - name: everything up to the first colon
        \\s*             - optional whitespace after the colon
        (.*)            - value: the rest of the line, colons included
                          ("Location: http://h/x" keeps the full URL)

    Both are compiled once, at class definition time.
    ==========================================================================
    """

    STATUS_LINE_PATTERN = re.compile(
        r"^(?P<version>HTTP/[12]\.\d) (?P<code>\d{3})(?: (?P<reason>.*))?$"
    )
    HEADER_PATTERN = re.compile(r"^(?P<key>[^:]+):\s*(?P<value>.*)$")

    def parse(self, source: LineSource, url: str = "") -> HTTPResponse:
        """
        Consume `source` to end of stream and build the response.

        Args:
            source: A fresh line source (nothing read from it yet).
            url: URL of the request, recorded on the response.

        Raises:
            StreamNotFreshError: If lines were already read from `source`.
            HTTPParseError: If the status line or a header line is malformed,
                            or the stream is empty.
        """
        if source.lines_read != 0:
            raise StreamNotFreshError(
                f"Line source already consumed {source.lines_read} line(s)"
            )

        state = ParseState.FIRST_LINE
        version = status_code = reason = ""
        headers: Dict[str, str] = {}
        body_lines: List[str] = []
        line_number = 0

        while True:
            line = source.read_line()
            if line is None:
                break
            line_number += 1

            if state is ParseState.FIRST_LINE:
                version, status_code, reason = self._parse_status_line(line, line_number)
                state = ParseState.HEADERS

            elif state is ParseState.HEADERS:
                if not line:
                    state = ParseState.BODY
                    continue
                key, value = self._parse_header(line, line_number)
                headers[key] = value

            else:
                body_lines.append(line)

        if state is ParseState.FIRST_LINE:
            raise HTTPParseError("Empty response: no status line received")

        logger.debug(
            f"Parsed {version} {status_code} with {len(headers)} header(s) "
            f"and {len(body_lines)} body line(s)"
        )

        return HTTPResponse(
            version=version,
            status_code=status_code,
            headers=headers,
            body="\n".join(body_lines),
            reason=reason,
            url=url,
        )

    def _parse_status_line(self, line: str, line_number: int) -> Tuple[str, str, str]:
        match = self.STATUS_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(
                f"Invalid status line: {line!r}", line=line, line_number=line_number
            )
        reason = (match.group("reason") or "").strip()
        return match.group("version"), match.group("code"), reason

    def _parse_header(self, line: str, line_number: int) -> Tuple[str, str]:
        match = self.HEADER_PATTERN.match(line)
        if not match:
            raise HTTPParseError(
                f"Invalid header line: {line!r}", line=line, line_number=line_number
            )
        return match.group("key"), match.group("value").rstrip()


class LineFeed:
    """
    Line source over an in-memory sequence of lines.

    Useful for parsing captured responses:

        >>> ResponseParser().parse(LineFeed(["HTTP/1.1 204 No Content"])).status
        204
    """

    def __init__(self, lines):
        self._lines = iter(lines)
        self.lines_read = 0

    def read_line(self) -> Optional[str]:
        line = next(self._lines, None)
        if line is not None:
            self.lines_read += 1
        return line

    @classmethod
    def from_text(cls, text: str) -> "LineFeed":
        """Split raw response text on LF the way a socket reader would."""
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return cls(line[:-1] if line.endswith("\r") else line for line in lines)


def parse_response(lines, url: str = "") -> HTTPResponse:
    """Parse an iterable of lines (or a LineSource) into an HTTPResponse."""
    source = lines if hasattr(lines, "read_line") else LineFeed(lines)
    return ResponseParser().parse(source, url=url)
