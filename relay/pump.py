"""Relay pump for stdio-relay.

Moves bytes from the local source to the channel:

  read chunk -> echo to console -> append to pending -> scan for the suspend
  token -> send the releasable prefix -> on a full match hand the token to
  the handshake coordinator -> scan the rest of the chunk again

Reads never exceed the pending buffer's free space, so the buffer is bounded
by read_chunk_capacity. Pending bytes only ever hold a partial token between
reads.
"""

import logging

from common.buffer import PendingBuffer
from common.io import SourceClosed, read_source, send_all
from common.protocol import TRACE, ByteSource, Channel, Console
from matcher.token import MatchKind, TokenMatcher
from relay.coordinator import HandshakeCoordinator
from relay.result import RelayStats

logger = logging.getLogger(__name__)


class RelayPump:
    """Forwards the local stream, suspending on the token."""

    def __init__(
        self,
        source: ByteSource,
        channel: Channel,
        matcher: TokenMatcher,
        console: Console,
        capacity: int,
        coordinator: HandshakeCoordinator | None = None,
        stats: RelayStats | None = None,
    ) -> None:
        if matcher.enabled and coordinator is None:
            raise ValueError("A suspend token needs a handshake coordinator")
        if len(matcher) > capacity:
            raise ValueError(f"Token ({len(matcher)} bytes) exceeds capacity ({capacity})")
        self._source = source
        self._channel = channel
        self._matcher = matcher
        self._console = console
        self._coordinator = coordinator
        self.pending = PendingBuffer(capacity)
        self.stats = stats if stats is not None else RelayStats()

    def step(self) -> bool:
        """Relay one chunk. Returns False once the source has closed.

        Raises:
            SourceReadFailed, SinkWriteFailed, SinkReadFailed, HandshakeOverflow
        """
        try:
            chunk = read_source(self._source, self.pending.free)
        except SourceClosed:
            self.flush()
            return False

        self.stats.bytes_read += len(chunk)
        self._console.write(chunk)
        self.pending.append(chunk)
        self._scan_pending()

        self.stats.bytes_held = len(self.pending)
        return True

    def _scan_pending(self) -> None:
        # Bytes after a matched token stay pending and are scanned again
        while True:
            match = self._matcher.scan(self.pending.data)
            if match.offset:
                self.stats.bytes_sent += send_all(
                    self._channel, self.pending.release(match.offset)
                )
            if match.kind is MatchKind.PARTIAL:
                logger.log(TRACE, f"Pump: holding {len(self.pending)} bytes of partial token")
            if match.kind is not MatchKind.FULL:
                return
            assert self._coordinator is not None
            self._coordinator.handle(self.pending, match.length)

    def run(self) -> None:
        """Relay until the source closes."""
        while self.step():
            pass

    def flush(self) -> None:
        """Send bytes held as a partial token; they can no longer complete it."""
        if self.pending:
            logger.debug(f"Pump: flushing {len(self.pending)} pending bytes at end of stream")
            self.stats.bytes_sent += send_all(self._channel, self.pending.release(len(self.pending)))
        self.stats.bytes_held = 0
