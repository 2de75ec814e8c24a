"""Inbound resume matchers for stdio-relay.

A resume matcher consumes bytes received from the remote peer while the relay
is suspended and reports when the pause may end. Two variants:

- LiteralToken: a plain token. Non-matching bytes are dropped and the token
  is not echoed.
- DelimiterPair: a start/end marker pair. The whole matched span is echoed
  back to the peer on resume.
"""

import logging
from typing import Protocol

from common.buffer import PendingBuffer
from common.config import ConfigInvalid, RelayConfig
from common.io import HandshakeOverflow
from common.protocol import DEFAULT_HANDSHAKE_BUFFER_CAPACITY
from matcher.delimiter import DelimiterExtractor
from matcher.token import MatchKind, TokenMatcher

logger = logging.getLogger(__name__)


class ResumeMatcher(Protocol):
    """Capability shared by the resume variants."""

    @property
    def echo(self) -> bool: ...
    @property
    def free(self) -> int: ...
    @property
    def discarded(self) -> int: ...
    def feed(self, data: bytes, /) -> bool: ...
    def take_span(self) -> bytes: ...


class LiteralToken:
    """Resume on a literal token received from the peer."""

    echo = False

    def __init__(
        self, token: bytes, capacity: int = DEFAULT_HANDSHAKE_BUFFER_CAPACITY
    ) -> None:
        if not token:
            raise ConfigInvalid("Resume token must be non-empty")
        self._matcher = TokenMatcher(token, capacity)
        self._buffer = PendingBuffer(capacity)
        self._matched = False

    @property
    def token(self) -> bytes:
        return self._matcher.token

    @property
    def free(self) -> int:
        return self._buffer.free

    @property
    def discarded(self) -> int:
        return self._buffer.total_discarded

    def feed(self, data: bytes) -> bool:
        if len(data) > self._buffer.free:
            raise HandshakeOverflow(
                f"Inbound data exceeds handshake buffer ({self._buffer.capacity} bytes)"
            )
        self._buffer.append(data)
        match = self._matcher.scan(self._buffer.data)
        # Bytes that cannot start the token are dropped, not echoed
        self._buffer.discard(match.offset)
        self._matched = match.kind is MatchKind.FULL
        return self._matched

    def take_span(self) -> bytes:
        if not self._matched:
            raise RuntimeError("Resume token not matched yet")
        span = self._buffer.release(len(self._matcher))
        if self._buffer:
            logger.debug(f"Discarding {len(self._buffer)} bytes after resume token")
            self._buffer.discard(len(self._buffer))
        self._matched = False
        return span


class DelimiterPair(DelimiterExtractor):
    """Resume on a start/end marker pair; the matched span is echoed back."""

    echo = True

    @property
    def discarded(self) -> int:
        return self.buffer.total_discarded


def build_resume_matcher(config: RelayConfig) -> ResumeMatcher:
    """Create the resume matcher selected by the configuration."""
    if config.resume_markers is not None:
        start, end = config.resume_markers
        return DelimiterPair(start, end, config.handshake_buffer_capacity)
    return LiteralToken(config.resume_token, config.handshake_buffer_capacity)
