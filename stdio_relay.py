#!/usr/bin/env python3
"""Relay a child process's console output to a TCP peer."""

import argparse
import logging
import sys

from common.config import ConfigInvalid, RelayConfig, parse_token
from common.protocol import (
    DEFAULT_BAUDRATE,
    DEFAULT_HANDSHAKE_BUFFER_CAPACITY,
    DEFAULT_READ_CHUNK_CAPACITY,
    TRACE,
)
from relay.runner import ExitCode, run_relay

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int) -> None:
    level = logging.INFO
    if verbosity == 1:
        level = logging.DEBUG
    elif verbosity >= 2:
        level = TRACE
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_config(args: argparse.Namespace) -> RelayConfig:
    """Build a RelayConfig from parsed arguments. Raises ConfigInvalid."""
    markers = None
    if args.resume_markers:
        start, end = args.resume_markers
        markers = (parse_token(start), parse_token(end))
    return RelayConfig(
        suspend_token=parse_token(args.suspend_token),
        resume_token=parse_token(args.resume_token),
        resume_markers=markers,
        read_chunk_capacity=args.chunk_size,
        handshake_buffer_capacity=args.handshake_buffer,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Relay a child process's stdout/stderr to a TCP peer, "
        "pausing on a token until the peer answers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=r"""
Examples:
  %(prog)s -H 10.0.0.5 -p 4000 -- ./trace-viewer -device NRF52
  %(prog)s -H 10.0.0.5 -p 4000 -s "ready now" -r "go" -- ./dut-console
  %(prog)s -H 10.0.0.5 -p 4000 -s "{{__sync}}" -m "{{__sync;" "}}\r\n" -- ./dut-console
  %(prog)s -H 10.0.0.5 -p 4000 -s "READY" -r "GO" -d /dev/ttyUSB0 -b 921600

Tokens accept backslash escapes (\r, \n, \t, \\, \xNN).
""",
    )
    parser.add_argument("-H", "--host", type=str, required=True, help="Remote peer host")
    parser.add_argument("-p", "--port", type=int, required=True, help="Remote peer port")

    handshake = parser.add_argument_group("handshake")
    handshake.add_argument(
        "-s",
        "--suspend-token",
        type=str,
        default="",
        help="Pause forwarding when this token appears in the output (default: never pause)",
    )
    resume = handshake.add_mutually_exclusive_group()
    resume.add_argument(
        "-r",
        "--resume-token",
        type=str,
        default="",
        help="Resume when the peer sends this token",
    )
    resume.add_argument(
        "-m",
        "--resume-markers",
        nargs=2,
        metavar=("START", "END"),
        help="Resume when the peer sends START...END; the span is echoed back",
    )

    buffers = parser.add_argument_group("buffers")
    buffers.add_argument(
        "-c",
        "--chunk-size",
        type=int,
        default=DEFAULT_READ_CHUNK_CAPACITY,
        help=f"Read chunk capacity in bytes (default: {DEFAULT_READ_CHUNK_CAPACITY})",
    )
    buffers.add_argument(
        "--handshake-buffer",
        type=int,
        default=DEFAULT_HANDSHAKE_BUFFER_CAPACITY,
        help=f"Handshake scan buffer in bytes (default: {DEFAULT_HANDSHAKE_BUFFER_CAPACITY})",
    )

    source = parser.add_argument_group("source")
    source.add_argument(
        "-d", "--device", type=str, help="Relay a serial console instead of a command"
    )
    source.add_argument(
        "-b",
        "--baudrate",
        type=int,
        default=DEFAULT_BAUDRATE,
        help=f"Serial baud rate (default: {DEFAULT_BAUDRATE})",
    )
    source.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to run, after --",
    )

    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="-v for DEBUG, -vv for TRACE"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]

    if bool(command) == bool(args.device):
        parser.print_usage(sys.stderr)
        print("error: give either a command (after --) or --device", file=sys.stderr)
        return ExitCode.CONFIG_INVALID

    _configure_logging(args.verbose)

    try:
        config = build_config(args)
    except ConfigInvalid as e:
        logger.error(f"Invalid configuration: {e}")
        return ExitCode.CONFIG_INVALID

    return run_relay(
        config,
        args.host,
        args.port,
        command=command or None,
        device=args.device,
        baudrate=args.baudrate,
    )


if __name__ == "__main__":
    sys.exit(main())
