"""
Low-level transport: TCP/TLS connections and the buffered line reader.
"""

from .connection import Connection, ConnectionState, create_tls_context, open_connection

__all__ = [
    "Connection",
    "ConnectionState",
    "create_tls_context",
    "open_connection",
]
