"""Start/end delimiter extraction for stdio-relay.

Scans the inbound stream for a start marker followed by an end marker and
captures the whole span, markers included:

    inbound reads: b"noise{{__sy" b"nc;ABC" b"}}\\r\\n"
    span:          b"{{__sync;ABC}}\\r\\n"

States:
  AWAITING_START: bytes before the start marker (or a partial start marker)
      are discarded.
  AWAITING_END: bytes after the start marker are retained until the end
      marker completes.
  EXTRACTED: span is available via take_span().
"""

import logging
from enum import Enum

from common.buffer import PendingBuffer
from common.config import ConfigInvalid
from common.io import HandshakeOverflow
from common.protocol import DEFAULT_HANDSHAKE_BUFFER_CAPACITY, TRACE
from matcher.token import MatchKind, TokenMatcher

logger = logging.getLogger(__name__)


class ExtractState(Enum):
    """Delimiter extractor states."""

    AWAITING_START = "awaiting_start"
    AWAITING_END = "awaiting_end"
    EXTRACTED = "extracted"


class DelimiterExtractor:
    """Two-phase matcher for a start marker then an end marker."""

    def __init__(
        self,
        start: bytes,
        end: bytes,
        capacity: int = DEFAULT_HANDSHAKE_BUFFER_CAPACITY,
    ) -> None:
        if not start or not end:
            raise ConfigInvalid("Start and end markers must be non-empty")
        if len(start) + len(end) > capacity:
            raise ConfigInvalid(
                f"Markers ({len(start)}+{len(end)} bytes) exceed buffer capacity ({capacity})"
            )
        self._start = TokenMatcher(start)
        self._end = TokenMatcher(end)
        self.buffer = PendingBuffer(capacity)
        self.state = ExtractState.AWAITING_START

    @property
    def free(self) -> int:
        return self.buffer.free

    @property
    def done(self) -> bool:
        return self.state is ExtractState.EXTRACTED

    @property
    def content(self) -> bytes:
        """Bytes between the markers of an extracted span."""
        if not self.done:
            return b""
        span = self.buffer.data[: self.buffer.retained]
        return span[len(self._start) : len(span) - len(self._end)]

    def feed(self, data: bytes) -> bool:
        """Scan newly received bytes. Returns True once the span is complete.

        Raises:
            HandshakeOverflow: If data does not fit the scan buffer.
        """
        if self.done:
            raise RuntimeError("Span already extracted; call take_span() first")
        if len(data) > self.buffer.free:
            raise HandshakeOverflow(
                f"Inbound span exceeds handshake buffer ({self.buffer.capacity} bytes)"
            )
        self.buffer.append(data)
        self._scan()
        return self.done

    def take_span(self) -> bytes:
        """Return the extracted span and reset for the next handshake.

        Bytes that followed the end marker in the same read are discarded.
        """
        if not self.done:
            raise RuntimeError("No span extracted yet")
        span = self.buffer.release(self.buffer.retained)
        if self.buffer:
            logger.debug(f"Discarding {len(self.buffer)} bytes after end marker")
            self.buffer.discard(len(self.buffer))
        self.state = ExtractState.AWAITING_START
        return span

    def reset(self) -> None:
        self.buffer.clear()
        self.state = ExtractState.AWAITING_START

    def _scan(self) -> None:
        if self.state is ExtractState.AWAITING_START:
            match = self._start.scan(self.buffer.unscanned)
            self.buffer.discard(match.offset)
            if match.kind is not MatchKind.FULL:
                return
            self.buffer.retain(match.length)
            self.state = ExtractState.AWAITING_END
            logger.log(TRACE, "Extractor: start marker matched")

        if self.state is ExtractState.AWAITING_END:
            match = self._end.scan(self.buffer.unscanned)
            self.buffer.retain(match.offset)
            if match.kind is MatchKind.FULL:
                self.buffer.retain(match.length)
                self.state = ExtractState.EXTRACTED
                logger.log(TRACE, "Extractor: end marker matched")
