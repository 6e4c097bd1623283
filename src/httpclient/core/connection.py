"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module opens the TCP (or TLS) connection to the server and wraps the
raw socket with the two operations the client needs:

    write(data) -> int            send the whole request
    read_line() -> Optional[str]  next response line, None at end of stream

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

recv() hands back whatever bytes happen to have arrived:

    Server sends:   "HTTP/1.1 200 OK\\r\\nContent-Type: text/plain\\r\\n..."

    recv() → "HTTP/1.1 20"                (partial status line)
    recv() → "0 OK\\r\\nContent-Ty"         (rest + partial header)
    recv() → "pe: text/plain\\r\\n..."

The response parser works on LINES, so the connection buffers bytes and
splits on "\\n" for it. socket.makefile() gives us that buffered reader.

=============================================================================
PLAIN vs TLS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   http://   ──► TCP connect ──────────────────────► Connection       │
    │                                                                      │
    │   https://  ──► TCP connect ──► TLS handshake ────► Connection       │
    │                                 (ssl module:                         │
    │                                  SNI, certificate,                   │
    │                                  hostname check)                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Both paths produce the same Connection type; the client never knows which
one it got.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──write()──► WRITING ──read_line()──► READING ──close()──► CLOSED

=============================================================================
"""

import socket
import ssl
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from ..errors import ConnectionFailedError, TLSHandshakeError

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and cleanup."""

    NEW = "new"              # Connected, nothing sent yet
    WRITING = "writing"      # Sending the request
    READING = "reading"      # Reading response lines
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    A connection to one server, used for one request/response exchange.

    Attributes:
        socket: The connected (possibly TLS-wrapped) socket.
        host: Server host name (for logs and errors).
        port: Server port.
        id: Short connection identifier for log correlation.
        state: Current connection state.
        buffer_size: Read buffer size for the line reader.
        encoding: Encoding used to decode response lines.
        lines_read: Number of lines handed out by read_line().
        bytes_sent: Number of request bytes written.
    """

    socket: socket.socket
    host: str
    port: int

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    buffer_size: int = 8192
    encoding: str = "utf-8"
    lines_read: int = 0
    bytes_sent: int = 0

    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        self._reader = self.socket.makefile("rb", buffering=self.buffer_size)

    # =========================================================================
    # WRITING
    # =========================================================================

    def write(self, data: bytes) -> int:
        """
        Send all of `data`.

        Uses sendall(): a plain send() may write only part of the buffer.

        Returns:
            Number of bytes written (always len(data)).

        Raises:
            ConnectionFailedError: If the peer went away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            raise ConnectionFailedError(
                f"[{self.id}] Send to {self.host}:{self.port} failed: {e}",
                host=self.host,
                port=self.port,
            ) from e
        self.bytes_sent += len(data)
        return len(data)

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> Optional[str]:
        """
        Read the next line, without its line terminator.

        Strips "\\n" and a preceding "\\r". A final line without a
        terminator is still returned.

        Returns:
            The decoded line, or None once the server closed the stream.

        Raises:
            ConnectionFailedError: On socket errors or read timeout.
        """
        self.state = ConnectionState.READING
        try:
            raw = self._reader.readline()
        except socket.timeout as e:
            raise ConnectionFailedError(
                f"[{self.id}] Read from {self.host}:{self.port} timed out",
                host=self.host,
                port=self.port,
            ) from e
        except OSError as e:
            raise ConnectionFailedError(
                f"[{self.id}] Read from {self.host}:{self.port} failed: {e}",
                host=self.host,
                port=self.port,
            ) from e

        if not raw:
            return None

        if raw.endswith(b"\n"):
            raw = raw[:-1]
            if raw.endswith(b"\r"):
                raw = raw[:-1]

        self.lines_read += 1
        return raw.decode(self.encoding, errors="replace")

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """Release the reader and the socket. Safe to call twice."""
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self._reader.close()
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection to {self.host}:{self.port} closed "
            f"({self.bytes_sent} bytes sent, {self.lines_read} lines read)"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions


def create_tls_context(verify: bool = True) -> ssl.SSLContext:
    """
    Build the TLS context used for https connections.

    verify=False disables certificate and hostname checks (the CLI's
    --insecure flag); never use it against servers you don't control.
    """
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def open_connection(
    host: str,
    port: int,
    use_tls: bool = False,
    timeout: Optional[float] = None,
    verify_tls: bool = True,
    buffer_size: int = 8192,
    encoding: str = "utf-8",
) -> Connection:
    """
    Connect to host:port, optionally wrapping the socket in TLS.

    Args:
        host: Server host name or IP.
        port: Server port.
        use_tls: Perform a TLS handshake (https).
        timeout: Socket timeout in seconds; None blocks indefinitely.
        verify_tls: Validate the server certificate and host name.
        buffer_size: Line reader buffer size.
        encoding: Encoding for decoding response lines.

    Raises:
        ConnectionFailedError: If the TCP connection cannot be established.
        TLSHandshakeError: If the TLS handshake fails.
    """
    logger.debug(f"Connecting to {host}:{port} ({'TLS' if use_tls else 'TCP'})")

    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except OSError as e:
        raise ConnectionFailedError(
            f"Could not connect to {host}:{port}: {e}", host=host, port=port
        ) from e

    if use_tls:
        try:
            sock = create_tls_context(verify_tls).wrap_socket(sock, server_hostname=host)
        except (ssl.SSLError, ssl.CertificateError, OSError) as e:
            sock.close()
            raise TLSHandshakeError(
                f"TLS handshake with {host}:{port} failed: {e}", host=host, port=port
            ) from e

    conn = Connection(
        socket=sock,
        host=host,
        port=port,
        buffer_size=buffer_size,
        encoding=encoding,
    )
    logger.debug(f"[{conn.id}] Connected to {host}:{port}")
    return conn
