"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Callable, Dict, Generator, List, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpclient import ClientConfig, HTTPClient


@pytest.fixture
def sample_response_text() -> str:
    """Sample HTTP response as it arrives on the wire."""
    return (
        "HTTP/1.1 200 OK\r\n"
        "Content-Type: application/json\r\n"
        "Content-Length: 16\r\n"
        "X-Request-Id: abc123\r\n"
        "\r\n"
        '{"status": "ok"}'
    )


@pytest.fixture
def sample_response_lines(sample_response_text: str) -> List[str]:
    """The sample response split the way the line reader splits it."""
    return sample_response_text.split("\r\n")


# =============================================================================
# FAKE TRANSPORT
# =============================================================================


class FakeConnection:
    """In-memory Connection: records writes, replays canned response lines."""

    def __init__(self, host: str, port: int, response_text: str):
        self.host = host
        self.port = port
        self.written = b""
        self.lines_read = 0
        self.closed = False
        lines = response_text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        self._lines = iter(line[:-1] if line.endswith("\r") else line for line in lines)

    def write(self, data: bytes) -> int:
        self.written += data
        return len(data)

    def read_line(self) -> Optional[str]:
        line = next(self._lines, None)
        if line is not None:
            self.lines_read += 1
        return line

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class FakeConnector:
    """
    Connector that serves canned responses by host.

    Responses for a host are consumed in order; the last one repeats.
    """

    def __init__(self, responses: Dict[str, object]):
        self._responses = {
            host: list(value) if isinstance(value, (list, tuple)) else [value]
            for host, value in responses.items()
        }
        self.calls: List[dict] = []
        self.connections: List[FakeConnection] = []

    def __call__(self, host: str, port: int, **kwargs) -> FakeConnection:
        self.calls.append({"host": host, "port": port, **kwargs})
        queue = self._responses[host]
        text = queue.pop(0) if len(queue) > 1 else queue[0]
        conn = FakeConnection(host, port, text)
        self.connections.append(conn)
        return conn

    @property
    def requests(self) -> List[str]:
        """Every request sent, decoded."""
        return [conn.written.decode("utf-8") for conn in self.connections]


@pytest.fixture
def make_client() -> Callable[..., Tuple[HTTPClient, FakeConnector]]:
    """Factory: HTTPClient wired to a FakeConnector."""

    def factory(responses: Dict[str, object], **config_kwargs):
        connector = FakeConnector(responses)
        client = HTTPClient(ClientConfig(**config_kwargs), connector=connector)
        return client, connector

    return factory


# =============================================================================
# LOCAL SERVER
# =============================================================================


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """
    Canned-response HTTP server that runs in a background thread.

    `handler(request_bytes) -> response_bytes` decides each reply; the
    server closes the connection after replying, which is how the client
    detects end of stream.
    """

    __test__ = False  # not a test class

    def __init__(self, port: int, handler: Callable[[bytes], bytes]):
        self.port = port
        self.handler = handler
        self.requests: List[bytes] = []
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._thread: Optional[threading.Thread] = None
        self._running = False

    def start(self):
        """Start server in background thread."""
        self._socket.bind(("127.0.0.1", self.port))
        self._socket.listen(8)
        self._socket.settimeout(0.2)
        self._running = True
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def stop(self):
        """Stop the server."""
        self._running = False
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self._socket.close()

    def _serve(self):
        while self._running:
            try:
                conn, _ = self._socket.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with conn:
                conn.settimeout(5.0)
                request = self._read_request(conn)
                self.requests.append(request)
                conn.sendall(self.handler(request))

    @staticmethod
    def _read_request(conn: socket.socket) -> bytes:
        buffer = b""
        while b"\r\n\r\n" not in buffer:
            chunk = conn.recv(4096)
            if not chunk:
                return buffer
            buffer += chunk

        head, _, body = buffer.partition(b"\r\n\r\n")
        length = 0
        for line in head.split(b"\r\n")[1:]:
            name, _, value = line.partition(b":")
            if name.strip().lower() == b"content-length":
                length = int(value.strip())
        while len(body) < length:
            chunk = conn.recv(4096)
            if not chunk:
                break
            body += chunk
        return head + b"\r\n\r\n" + body


@pytest.fixture
def local_server(free_port: int) -> Generator[Callable[[Callable[[bytes], bytes]], TestServer], None, None]:
    """Start a TestServer on a free port with the given handler."""
    servers: List[TestServer] = []

    def start(handler: Callable[[bytes], bytes]) -> TestServer:
        server = TestServer(free_port, handler)
        server.start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.stop()
