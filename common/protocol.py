"""Protocol definitions for stdio-relay.

Contains:
- ByteSource, Channel and Console Protocols for type checking
- Buffer capacity defaults
- Logging configuration
"""

import logging
import os
from typing import Protocol

# TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class ByteSource(Protocol):
    """Protocol for the local producer whose output is relayed.

    read() returns b"" once the producer has finished.
    """

    def read(self, size: int, /) -> bytes: ...
    def close(self) -> None: ...


class Channel(Protocol):
    """Protocol for the bidirectional byte channel to the remote peer."""

    def send(self, data: bytes, /) -> int: ...
    def recv(self, size: int, /) -> bytes: ...
    def shutdown_write(self) -> None: ...
    def close(self) -> None: ...


class Console(Protocol):
    """Protocol for the local echo of the relayed stream."""

    def write(self, data: bytes, /) -> object: ...


class SerialPort(Protocol):
    """Protocol for serial port operations needed by SerialSource."""

    def read(self, size: int = ..., /) -> bytes: ...
    def close(self) -> None: ...
    @property
    def in_waiting(self) -> int: ...


# Default buffer capacities (read chunk size configurable via envvar)
DEFAULT_READ_CHUNK_CAPACITY = int(os.environ.get("STDIO_RELAY_CHUNK_SIZE", "4096"))
DEFAULT_HANDSHAKE_BUFFER_CAPACITY = 512

DEFAULT_BAUDRATE = 115200
