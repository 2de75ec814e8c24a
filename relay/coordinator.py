"""Suspend/resume handshake for stdio-relay.

The coordinator takes over after the pump has found the suspend token:

  FORWARDING -> SUSPENDED: the token bytes stay in the pump's buffer
  SUSPENDED: block on the channel, feeding the resume matcher
  SUSPENDED -> FORWARDING: send the token bytes unchanged, then echo the
      matched inbound span (delimiter mode only)

Bytes that followed the token in the same read are left for the pump, which
scans them for the next token before reading again.

There is no timeout. The wait only ends when the resume matcher completes
or the channel fails.
"""

import logging
from enum import Enum

from common.buffer import PendingBuffer
from common.io import HandshakeOverflow, recv_some, send_all
from common.protocol import Channel
from matcher.resume import ResumeMatcher
from relay.result import RelayStats

logger = logging.getLogger(__name__)


class HandshakeState(Enum):
    """Relay forwarding state."""

    FORWARDING = "forwarding"
    SUSPENDED = "suspended"


class HandshakeCoordinator:
    """Owns the suspend/resume state machine for one session."""

    def __init__(
        self,
        channel: Channel,
        resume: ResumeMatcher,
        stats: RelayStats | None = None,
    ) -> None:
        self._channel = channel
        self._resume = resume
        self.stats = stats if stats is not None else RelayStats()
        self.state = HandshakeState.FORWARDING

    @property
    def resume_matcher(self) -> ResumeMatcher:
        return self._resume

    def handle(self, held: PendingBuffer, count: int | None = None) -> bytes:
        """Suspend, wait for the peer, then replay held-back bytes.

        Args:
            held: Buffer whose first count bytes (the matched token) are
                withheld from the peer. Anything after them is left in held.
            count: Bytes to replay on resume; all of held when None.

        Returns:
            The matched inbound span.

        Raises:
            SinkReadFailed: If the peer fails or closes before resuming.
            SinkWriteFailed: If replaying or echoing fails.
            HandshakeOverflow: If the inbound span exceeds the buffer.
        """
        if count is None:
            count = len(held)
        self.state = HandshakeState.SUSPENDED
        self.stats.suspensions += 1
        logger.info(f"Suspended with {count} bytes held back, waiting for peer")

        span = self.wait_for_resume()
        logger.info(f"Resume matched ({len(span)} bytes), replaying {count} held bytes")

        self.stats.bytes_sent += send_all(self._channel, held.release(count))
        if self._resume.echo:
            self.stats.bytes_echoed += send_all(self._channel, span)
            logger.debug(f"Echoed {span!r}")

        self.state = HandshakeState.FORWARDING
        return span

    def wait_for_resume(self) -> bytes:
        """Read from the channel until the resume matcher completes."""
        discarded_before = self._resume.discarded
        while True:
            free = self._resume.free
            if free <= 0:
                raise HandshakeOverflow("Handshake buffer full before resume matched")
            data = recv_some(self._channel, free)
            self.stats.inbound_received += len(data)
            if self._resume.feed(data):
                break

        span = self._resume.take_span()
        dropped = self._resume.discarded - discarded_before
        self.stats.inbound_discarded += dropped
        if dropped:
            logger.debug(f"Dropped {dropped} inbound bytes while waiting for resume")
        return span
