"""Relay result types for stdio-relay.

Contains:
- RelayStats: Counters accumulated while a session runs
- RelayResult: Outcome of a relay session
"""

from dataclasses import asdict, dataclass


@dataclass
class RelayStats:
    """Counters accumulated by the pump and the handshake coordinator."""

    bytes_read: int = 0
    bytes_sent: int = 0
    bytes_held: int = 0
    suspensions: int = 0
    inbound_received: int = 0
    inbound_discarded: int = 0
    bytes_echoed: int = 0


@dataclass
class RelayResult:
    """Result from a relay session.

    Attributes:
        success: True if the source was exhausted and every byte flushed.
        bytes_read: Bytes read from the local source.
        bytes_sent: Source bytes written to the remote peer (echo excluded).
        bytes_held: Source bytes still pending when the session ended.
        suspensions: Number of completed or attempted handshakes.
        inbound_received: Bytes received from the peer during handshakes.
        inbound_discarded: Inbound bytes dropped while scanning for resume.
        bytes_echoed: Inbound span bytes echoed back to the peer.
        elapsed_s: Session duration in seconds.
        error: Fatal error if the session failed.
    """

    success: bool
    bytes_read: int = 0
    bytes_sent: int = 0
    bytes_held: int = 0
    suspensions: int = 0
    inbound_received: int = 0
    inbound_discarded: int = 0
    bytes_echoed: int = 0
    elapsed_s: float = 0.0
    error: Exception | None = None

    @classmethod
    def from_stats(
        cls,
        stats: RelayStats,
        success: bool,
        elapsed_s: float = 0.0,
        error: Exception | None = None,
    ) -> "RelayResult":
        return cls(success=success, elapsed_s=elapsed_s, error=error, **asdict(stats))

    def throughput_kbps(self) -> float:
        """Compute relay throughput in Kbps (kilobits/second).

        Returns:
            Throughput in Kbps, or 0 if duration is 0.
        """
        if self.elapsed_s <= 0:
            return 0.0
        return (self.bytes_sent * 8 / self.elapsed_s) / 1000
