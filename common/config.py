"""Relay configuration for stdio-relay.

Contains:
- ConfigInvalid: Raised when configuration constraints are violated
- parse_token: Decode a command-line token with backslash escapes
- RelayConfig: Tokens and buffer capacities consumed by a relay session
"""

import codecs
from dataclasses import dataclass

from common.protocol import DEFAULT_HANDSHAKE_BUFFER_CAPACITY, DEFAULT_READ_CHUNK_CAPACITY


class ConfigInvalid(ValueError):
    """Raised when relay configuration is rejected before a session starts."""

    pass


def parse_token(text: str) -> bytes:
    r"""Decode a token given on the command line.

    Supports the usual backslash escapes (\r, \n, \t, \\, \xNN), so markers
    such as "}}\r\n" can be typed in a shell.
    """
    try:
        return codecs.escape_decode(text.encode("utf-8"))[0]
    except ValueError as e:
        raise ConfigInvalid(f"Invalid escape in token {text!r}: {e}") from e


@dataclass
class RelayConfig:
    """Configuration consumed by a relay session.

    suspend_token: Outbound token that pauses forwarding (empty disables).
    resume_token: Inbound literal token that ends the pause.
    resume_markers: Inbound (start, end) marker pair; the matched span is
        echoed back on resume. Mutually exclusive with resume_token.
    """

    suspend_token: bytes = b""
    resume_token: bytes = b""
    resume_markers: tuple[bytes, bytes] | None = None
    read_chunk_capacity: int = DEFAULT_READ_CHUNK_CAPACITY
    handshake_buffer_capacity: int = DEFAULT_HANDSHAKE_BUFFER_CAPACITY

    @property
    def handshake_enabled(self) -> bool:
        return bool(self.suspend_token)

    @property
    def extraction_mode(self) -> bool:
        return self.resume_markers is not None

    @property
    def resume_length(self) -> int:
        """Minimum inbound bytes needed to complete a resume match."""
        if self.resume_markers is not None:
            start, end = self.resume_markers
            return len(start) + len(end)
        return len(self.resume_token)

    def validate(self) -> None:
        """Check size and token constraints. Raises ConfigInvalid."""
        if self.read_chunk_capacity <= 0:
            raise ConfigInvalid(
                f"read_chunk_capacity must be positive, got {self.read_chunk_capacity}"
            )
        if self.handshake_buffer_capacity <= 0:
            raise ConfigInvalid(
                f"handshake_buffer_capacity must be positive, got {self.handshake_buffer_capacity}"
            )
        if len(self.suspend_token) > self.read_chunk_capacity:
            raise ConfigInvalid(
                f"Suspend token ({len(self.suspend_token)} bytes) exceeds "
                f"read_chunk_capacity ({self.read_chunk_capacity})"
            )

        if self.resume_markers is not None:
            if self.resume_token:
                raise ConfigInvalid("Specify either a resume token or resume markers, not both")
            start, end = self.resume_markers
            if not start or not end:
                raise ConfigInvalid("Resume markers must both be non-empty")

        if not self.handshake_enabled:
            return

        if self.resume_length == 0:
            raise ConfigInvalid("Suspend token requires a resume token or resume markers")

        needed = max(len(self.suspend_token), self.resume_length)
        if self.handshake_buffer_capacity < needed:
            raise ConfigInvalid(
                f"handshake_buffer_capacity ({self.handshake_buffer_capacity}) "
                f"must be at least {needed} bytes"
            )
