"""
=============================================================================
HTTP CLIENT CLI ENTRY POINT
=============================================================================

Command-line interface for sending a single request.

=============================================================================
USAGE
=============================================================================

    # Simple GET
    python -m httpclient GET https://example.com/

    # Query parameters and headers
    python -m httpclient GET https://example.com/search -q q=http -H "Accept: text/html"

    # POST a body
    python -m httpclient POST http://example.com/notes -d "hello world"

    # Show status line and headers too
    python -m httpclient GET https://example.com/ -i

=============================================================================
EXIT CODES
=============================================================================

    0   response received
    1   request failed (HTTPClientError)
    2   no response (unsupported URL scheme)

=============================================================================
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from . import __version__
from .client import HTTPClient
from .config import ClientConfig, LOG_LEVELS
from .errors import HTTPClientError
from .http.methods import HTTPMethod
from .http.response import HTTPResponse


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_RESPONSE = 2


def _parse_pairs(values: List[str], separator: str, what: str) -> Optional[Dict[str, str]]:
    """Turn ["k=v", ...] (or ["K: V", ...]) into a dict; None when empty."""
    if not values:
        return None
    pairs: Dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition(separator)
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"Invalid {what}: {item!r}")
        pairs[key.strip()] = value.strip()
    return pairs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpclient",
        description="Minimal HTTP/1.1 client over raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m httpclient GET https://example.com/
  python -m httpclient GET https://example.com/search -q q=http
  python -m httpclient POST http://example.com/notes -d "hello"
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "method",
        type=str.upper,
        choices=[m.value for m in HTTPMethod],
        help="HTTP method",
    )
    parser.add_argument("url", help="Absolute http:// or https:// URL")
    parser.add_argument(
        "--query", "-q",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Query parameter (repeatable, sent verbatim)",
    )
    parser.add_argument(
        "--header", "-H",
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Request header (repeatable)",
    )
    parser.add_argument("--user-agent", "-A", default=None, help="User-Agent header value")
    parser.add_argument("--data", "-d", default=None, help="Request body for POST/PUT")

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOR ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--include", "-i",
        action="store_true",
        help="Print the status line and headers before the body",
    )
    parser.add_argument(
        "--no-redirects",
        action="store_true",
        help="Do not follow 301 redirects",
    )
    parser.add_argument("--max-redirects", type=int, default=None, help="Redirect limit")
    parser.add_argument("--timeout", type=float, default=None, help="Socket timeout in seconds")
    parser.add_argument(
        "--insecure", "-k",
        action="store_true",
        help="Skip TLS certificate verification",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=list(LOG_LEVELS),
        default=None,
        help="Logging level (default: from HTTPCLIENT_LOG_LEVEL or INFO)",
    )

    parser.add_argument("--version", "-v", action="version", version=f"httpclient {__version__}")
    return parser


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Environment first, then CLI overrides."""
    config = ClientConfig.from_env()
    if args.no_redirects:
        config.follow_redirects = False
    if args.max_redirects is not None:
        config.max_redirects = args.max_redirects
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.insecure:
        config.verify_tls = False
    if args.log_level:
        config.log_level = args.log_level
    return config


def setup_logging(config: ClientConfig) -> None:
    """Configure logging based on config."""
    level = config.log_level_number
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger("httpclient").setLevel(level)


def format_response(response: HTTPResponse, include_headers: bool) -> str:
    if not include_headers:
        return response.body
    head = [response.status_line]
    head.extend(f"{key}: {value}" for key, value in response.headers.items())
    return "\n".join(head) + "\n\n" + response.body


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        query = _parse_pairs(args.query, "=", "query parameter")
        headers = _parse_pairs(args.header, ":", "header")
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    try:
        config = build_config(args)
        client = HTTPClient(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    setup_logging(config)

    try:
        response = client.request(
            args.method,
            args.url,
            query=query,
            headers=headers,
            user_agent=args.user_agent,
            raw_data=args.data,
        )
    except HTTPClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    if response is None:
        print(f"Error: no response (unsupported URL scheme): {args.url}", file=sys.stderr)
        return EXIT_NO_RESPONSE

    print(format_response(response, args.include))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
