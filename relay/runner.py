"""Relay runner for stdio-relay.

Contains run_relay() which opens the source and the channel, runs one relay
session, prints the report and maps the result to an exit code. SIGINT and
SIGTERM end the session and trigger the same teardown as a normal exit. A
signal that arrives during teardown is logged and the run reported as failed.
"""

import logging
import signal
from dataclasses import replace
from enum import IntEnum
from types import FrameType

from common.config import ConfigInvalid, RelayConfig
from common.connection import ConnectError, SocketChannel
from common.device import SerialSource, open_serial
from common.io import RelayInterrupted
from common.process import ProcessSource
from common.protocol import DEFAULT_BAUDRATE, ByteSource
from relay.report import RelayReport
from relay.result import RelayResult
from relay.session import RelaySession

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Exit codes for relay runs."""

    SUCCESS = 0  # Source exhausted, every byte flushed
    RELAY_FAILED = 1  # Fatal I/O error or interrupted
    CONFIG_INVALID = 2  # Rejected before starting
    CONNECT_FAILED = 3  # Source or socket could not be opened


def open_source(
    command: list[str] | None,
    device: str | None,
    baudrate: int = DEFAULT_BAUDRATE,
) -> ByteSource:
    """Spawn the command or open the serial device."""
    if device:
        return SerialSource(open_serial(device, baudrate), name=device)
    if command:
        return ProcessSource(command)
    raise ValueError("Either a command or a device is required")


def run_relay(
    config: RelayConfig,
    host: str,
    port: int,
    command: list[str] | None = None,
    device: str | None = None,
    baudrate: int = DEFAULT_BAUDRATE,
) -> int:
    """Run one relay session. Returns exit code."""
    try:
        config.validate()
    except ConfigInvalid as e:
        logger.error(f"Invalid configuration: {e}")
        return ExitCode.CONFIG_INVALID

    # Connect first so a missing peer does not leave a child running
    try:
        channel = SocketChannel.connect(host, port)
    except ConnectError as e:
        logger.error(str(e))
        return ExitCode.CONNECT_FAILED

    try:
        source = open_source(command, device, baudrate)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to open source: {e}")
        channel.close()
        return ExitCode.CONNECT_FAILED

    session = RelaySession(source, channel, config)
    closing = False
    late_signal: str | None = None

    def handle_signal(sig: int, _frame: FrameType | None) -> None:
        nonlocal late_signal
        name = signal.Signals(sig).name
        if closing:
            # Teardown is already under way; let it finish
            late_signal = name
            logger.warning(f"{name} received during teardown")
            return
        raise RelayInterrupted(f"Interrupted by {name}")

    previous_int = signal.signal(signal.SIGINT, handle_signal)
    previous_term = signal.signal(signal.SIGTERM, handle_signal)

    try:
        try:
            result = session.run()
        except RelayInterrupted as e:
            logger.error(f"Relay failed: {e}")
            result = RelayResult.from_stats(session.stats, success=False, error=e)
        finally:
            closing = True
            session.close()
    finally:
        signal.signal(signal.SIGINT, previous_int)
        signal.signal(signal.SIGTERM, previous_term)

    if late_signal is not None and result.success:
        result = replace(
            result, success=False, error=RelayInterrupted(f"Interrupted by {late_signal}")
        )

    RelayReport(result=result).print()

    if not result.success:
        return ExitCode.RELAY_FAILED
    return ExitCode.SUCCESS
