"""Byte I/O helpers for stdio-relay.

Contains:
- RelayError and its subclasses: the session failure kinds
- read_source: Read one chunk from the local producer
- send_all: Write a chunk to the channel, retrying short writes
- recv_some: Read one chunk from the channel during a handshake
- ConsoleEcho: Local echo of the relayed stream
"""

import logging
import sys
from typing import BinaryIO

from common.protocol import TRACE, ByteSource, Channel

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Base class for errors that end a relay session."""

    pass


class SourceClosed(RelayError):
    """Raised when the local producer has finished. Ends the session cleanly."""

    pass


class SourceReadFailed(RelayError):
    """Raised when reading from the local producer fails."""

    pass


class SinkWriteFailed(RelayError):
    """Raised when sending to the remote peer fails."""

    pass


class SinkReadFailed(RelayError):
    """Raised when receiving from the remote peer fails or the peer closes."""

    pass


class ConsoleWriteFailed(RelayError):
    """Raised when the local echo can no longer be written (e.g. stdout closed)."""

    pass


class HandshakeOverflow(RelayError):
    """Raised when an inbound resume span does not fit the handshake buffer."""

    pass


class RelayInterrupted(RelayError):
    """Raised when a signal stops the session."""

    pass


def read_source(source: ByteSource, size: int) -> bytes:
    """Read up to size bytes from the local producer.

    Raises:
        SourceClosed: If the producer reached end of stream.
        SourceReadFailed: On I/O error.
    """
    try:
        data = source.read(size)
    except OSError as e:
        raise SourceReadFailed(f"Source read failed: {e}") from e

    if not data:
        raise SourceClosed("Source reached end of stream")

    logger.log(TRACE, f"Source: read {len(data)} bytes")
    return data


def send_all(channel: Channel, data: bytes) -> int:
    """Send every byte of data, looping over short writes. Returns bytes sent.

    Raises:
        SinkWriteFailed: On socket error or if the channel accepts no bytes.
    """
    view = memoryview(data)
    total = 0
    while total < len(view):
        try:
            sent = channel.send(view[total:])
        except OSError as e:
            raise SinkWriteFailed(
                f"Send failed after {total}/{len(view)} bytes: {e}"
            ) from e
        if not sent:
            raise SinkWriteFailed(f"Channel accepted no bytes after {total}/{len(view)}")
        if total + sent < len(view):
            logger.log(TRACE, f"Channel: short write ({sent} of {len(view) - total} bytes)")
        total += sent
    return total


def recv_some(channel: Channel, size: int) -> bytes:
    """Receive up to size bytes from the remote peer.

    Raises:
        SinkReadFailed: On socket error or if the peer closed the connection.
    """
    try:
        data = channel.recv(size)
    except OSError as e:
        raise SinkReadFailed(f"Receive failed: {e}") from e

    if not data:
        raise SinkReadFailed("Peer closed the connection")

    logger.log(TRACE, f"Channel: received {len(data)} bytes")
    return data


class ConsoleEcho:
    """Writes every relayed byte to a local stream (stdout by default)."""

    def __init__(self, stream: BinaryIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout.buffer

    def write(self, data: bytes) -> int:
        try:
            written = self._stream.write(data)
            self._stream.flush()
        except OSError as e:
            raise ConsoleWriteFailed(f"Console write failed: {e}") from e
        return written
