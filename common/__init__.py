"""Common modules for stdio-relay.

This package contains the pieces shared by the matchers and the relay:
- protocol: ByteSource/Channel/Console Protocols, capacity defaults, TRACE level
- buffer: PendingBuffer with release/retain/discard accounting
- config: RelayConfig, ConfigInvalid, parse_token
- io: Session error kinds and read/send/recv helpers
- process: ProcessSource for a spawned child
- device: SerialSource for a serial console
- connection: SocketChannel to the remote peer
- report: Reporting abstractions
"""

from common.buffer import BufferOverflowError, PendingBuffer
from common.config import ConfigInvalid, RelayConfig, parse_token
from common.io import (
    ConsoleWriteFailed,
    HandshakeOverflow,
    RelayError,
    RelayInterrupted,
    SinkReadFailed,
    SinkWriteFailed,
    SourceClosed,
    SourceReadFailed,
)
from common.protocol import (
    DEFAULT_HANDSHAKE_BUFFER_CAPACITY,
    DEFAULT_READ_CHUNK_CAPACITY,
    TRACE,
    ByteSource,
    Channel,
    Console,
)

__all__ = [
    # Protocol
    "ByteSource",
    "Channel",
    "Console",
    "TRACE",
    "DEFAULT_READ_CHUNK_CAPACITY",
    "DEFAULT_HANDSHAKE_BUFFER_CAPACITY",
    # Buffer and config
    "PendingBuffer",
    "RelayConfig",
    "parse_token",
    # Exceptions
    "BufferOverflowError",
    "ConfigInvalid",
    "ConsoleWriteFailed",
    "HandshakeOverflow",
    "RelayError",
    "RelayInterrupted",
    "SinkReadFailed",
    "SinkWriteFailed",
    "SourceClosed",
    "SourceReadFailed",
]
