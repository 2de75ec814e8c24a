"""Relay session for stdio-relay.

A RelaySession owns one source, one channel, one pump and, when a suspend
token is configured, one handshake coordinator. run() relays until the
source closes or a fatal error occurs and always returns a RelayResult.
close() tears down the source (terminating a child process) and the channel.
"""

import logging
import time
from types import TracebackType

from common.config import RelayConfig
from common.io import ConsoleEcho, RelayError, SinkWriteFailed
from common.protocol import ByteSource, Channel, Console
from matcher.resume import build_resume_matcher
from matcher.token import TokenMatcher
from relay.coordinator import HandshakeCoordinator
from relay.pump import RelayPump
from relay.result import RelayResult, RelayStats

logger = logging.getLogger(__name__)


class RelaySession:
    """One relay from a local source to a remote peer."""

    def __init__(
        self,
        source: ByteSource,
        channel: Channel,
        config: RelayConfig,
        console: Console | None = None,
    ) -> None:
        config.validate()
        self.config = config
        self._source = source
        self._channel = channel
        self._closed = False
        self.stats = RelayStats()

        matcher = TokenMatcher(config.suspend_token, config.read_chunk_capacity)
        self.coordinator: HandshakeCoordinator | None = None
        if config.handshake_enabled:
            self.coordinator = HandshakeCoordinator(
                channel, build_resume_matcher(config), stats=self.stats
            )

        self.pump = RelayPump(
            source,
            channel,
            matcher,
            console if console is not None else ConsoleEcho(),
            config.read_chunk_capacity,
            coordinator=self.coordinator,
            stats=self.stats,
        )

    def run(self) -> RelayResult:
        """Relay until the source closes. Never raises RelayError."""
        start = time.monotonic()
        mode = "disabled"
        if self.config.handshake_enabled:
            mode = "extract" if self.config.extraction_mode else "literal"
        logger.info(
            f"Relay started (handshake={mode}, chunk={self.config.read_chunk_capacity}, "
            f"handshake_buffer={self.config.handshake_buffer_capacity})"
        )

        try:
            self.pump.run()
            self._shutdown_write()
        except RelayError as e:
            self.stats.bytes_held = len(self.pump.pending)
            logger.error(f"Relay failed: {e}")
            return RelayResult.from_stats(
                self.stats, success=False, elapsed_s=time.monotonic() - start, error=e
            )

        logger.info(
            f"Relay complete ({self.stats.bytes_read} read, {self.stats.bytes_sent} sent, "
            f"{self.stats.suspensions} handshakes)"
        )
        return RelayResult.from_stats(
            self.stats, success=True, elapsed_s=time.monotonic() - start
        )

    def close(self) -> None:
        """Terminate the source and close the channel. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            self._source.close()
        finally:
            self._channel.close()

    def __enter__(self) -> "RelaySession":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _shutdown_write(self) -> None:
        try:
            self._channel.shutdown_write()
        except OSError as e:
            raise SinkWriteFailed(f"Half-close failed: {e}") from e
        logger.debug("Send side closed")
