"""Relay engine package for stdio-relay.

This package forwards the local stream and runs the suspend/resume handshake:
- pump: RelayPump (source -> token matcher -> channel)
- coordinator: HandshakeCoordinator (suspend, wait for peer, replay, echo)
- session: RelaySession (owns source, channel, pump and coordinator)
- result/report: RelayResult, RelayStats, RelayReport

Note: run_relay and ExitCode are not exported here so that importing the
engine does not pull in pyserial. Import directly from relay.runner.
"""

from relay.coordinator import HandshakeCoordinator, HandshakeState
from relay.pump import RelayPump
from relay.report import RelayReport
from relay.result import RelayResult, RelayStats
from relay.session import RelaySession

__all__ = [
    "HandshakeCoordinator",
    "HandshakeState",
    "RelayPump",
    "RelayReport",
    "RelayResult",
    "RelaySession",
    "RelayStats",
]
