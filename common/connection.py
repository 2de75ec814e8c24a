"""TCP channel to the remote peer for stdio-relay.

Contains:
- ConnectError: Raised when the remote peer cannot be reached
- SocketChannel: Channel over a connected TCP socket
"""

import logging
import socket

logger = logging.getLogger(__name__)


class ConnectError(Exception):
    """Raised when the connection to the remote peer cannot be established."""

    pass


class SocketChannel:
    """Channel over a connected, blocking TCP socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._sock.settimeout(None)

    @classmethod
    def connect(cls, host: str, port: int) -> "SocketChannel":
        """Connect to host:port. Raises ConnectError on failure."""
        try:
            sock = socket.create_connection((host, port))
        except OSError as e:
            raise ConnectError(f"Failed to connect to {host}:{port}: {e}") from e
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        logger.info(f"Connected to {host}:{port}")
        return cls(sock)

    def send(self, data: bytes) -> int:
        return self._sock.send(data)

    def recv(self, size: int) -> bytes:
        return self._sock.recv(size)

    def shutdown_write(self) -> None:
        """Half-close: the peer sees end of stream, inbound stays open."""
        self._sock.shutdown(socket.SHUT_WR)

    def close(self) -> None:
        self._sock.close()
        logger.debug("Socket closed")
