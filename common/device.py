"""Serial console source for stdio-relay.

Relays a device-under-test console attached over a serial port instead of a
spawned child process.

Contains:
- log_device_info: Log information about a serial device
- open_serial: Open and configure a serial port for console capture
- SerialSource: ByteSource over a serial port
"""

import logging
import os

import serial
import serial.tools.list_ports

from common.protocol import SerialPort

logger = logging.getLogger(__name__)


def log_device_info(device: str) -> None:
    """Log which adapter backs the console device, if pyserial lists it."""
    path = os.path.realpath(device)
    for info in serial.tools.list_ports.comports():
        if info.device in (device, path):
            ids = f" [{info.vid:04x}:{info.pid:04x}]" if info.vid is not None else ""
            logger.info(f"Console: {device} ({info.description}){ids}")
            return
    logger.info(f"Console: {device} -> {path}")


def open_serial(device: str, baudrate: int, rtscts: bool = False) -> serial.Serial:
    """Open a serial port in blocking mode for console capture."""
    log_device_info(device)
    ser = serial.Serial(
        port=device,
        baudrate=baudrate,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        xonxoff=False,
        rtscts=rtscts,
        timeout=None,  # block until the console produces output
    )
    logger.debug(f"Serial port: baudrate={ser.baudrate}, rtscts={ser.rtscts}")
    return ser


class SerialSource:
    """ByteSource reading a serial console.

    Blocks for the first byte, then takes whatever else is already waiting,
    so chunks follow the console's own pacing.
    """

    def __init__(self, port: SerialPort, name: str = "serial") -> None:
        self._port = port
        self.name = name

    def read(self, size: int) -> bytes:
        data = self._port.read(1)
        if not data or size <= 1:
            return data
        waiting = min(self._port.in_waiting, size - 1)
        if waiting > 0:
            data += self._port.read(waiting)
        return data

    def close(self) -> None:
        self._port.close()
        logger.info(f"Closed {self.name}")
