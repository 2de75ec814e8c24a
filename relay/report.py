"""Relay reporting for stdio-relay.

Contains:
- RelayReport: Report after a relay session ends
"""

import sys
from dataclasses import dataclass

from common.report import Report
from relay.result import RelayResult


@dataclass
class RelayReport(Report):
    """Report after a relay session ends.

    Printed to stderr: stdout carries the relayed console stream.
    """

    result: RelayResult

    def print(self) -> None:
        """Print the relay report."""
        r = self.result
        out = sys.stderr

        if r.success:
            print(
                f"Relay: SUCCESS ({r.bytes_read} read, {r.bytes_sent} sent, "
                f"{r.suspensions} handshakes)",
                file=out,
            )
        else:
            print(f"Relay: FAILED ({r.error})", file=out)
            print(
                f"       ({r.bytes_read} read, {r.bytes_sent} sent, {r.bytes_held} held)",
                file=out,
            )
            return

        if r.inbound_received:
            print(
                f"Inbound: {r.inbound_received} received, {r.inbound_discarded} discarded, "
                f"{r.bytes_echoed} echoed",
                file=out,
            )
        if r.elapsed_s > 0 and r.bytes_sent > 0:
            print(
                f"Throughput: {r.throughput_kbps():.2f} Kbps over {r.elapsed_s:.1f}s",
                file=out,
            )

    def success(self) -> bool:
        return self.result.success
