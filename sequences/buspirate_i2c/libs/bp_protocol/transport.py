"""
Serial transport layer.

Provides synchronous byte-level access to the adapter's serial port.
"""

import logging
import os
from typing import List, Optional, Protocol

import serial
from serial.tools import list_ports

from .exceptions import ConnectionError, PortNotFoundError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Byte channel consumed by the protocol layer."""

    def write(self, data: bytes) -> int:
        ...

    def flush(self) -> None:
        ...

    def bytes_available(self) -> int:
        ...

    def read(self, max_len: int) -> bytes:
        """Return up to max_len bytes that are already buffered."""
        ...

    def receive(self, size: int, timeout: float) -> bytes:
        """Block until size bytes arrive or timeout elapses."""
        ...

    def close(self) -> None:
        ...


def find_port(identifier: str) -> str:
    """
    Resolve a port identifier to a device path.

    Args:
        identifier: Full device path or a substring of it (e.g. 'ttyUSB', 'COM')
            An existing path is used as-is even if it is not enumerated.

    Returns:
        Device path of the first matching port

    Raises:
        PortNotFoundError: If no port matches
    """
    ports = list(list_ports.comports())
    for info in ports:
        logger.info(f"port={info.device} desc={info.description}")

    devices: List[str] = [info.device for info in ports]
    if identifier in devices or os.path.exists(identifier):
        return identifier
    for device in devices:
        if identifier in device:
            return device
    raise PortNotFoundError(identifier, devices)


class SerialTransport:
    """Serial communication transport layer."""

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        timeout: float = 0.2,
    ):
        """
        Initialize serial transport.

        Args:
            port: Serial port name or substring (e.g., '/dev/ttyUSB0', 'ttyUSB', 'COM3')
            baudrate: Baud rate (default: 115200)
            timeout: Default blocking read timeout in seconds
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self._serial: Optional[serial.Serial] = None

    def open(self) -> None:
        """Resolve and open the serial port."""
        device = find_port(self.port)
        try:
            self._serial = serial.Serial(
                port=device,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
                timeout=self.timeout,
            )
        except serial.SerialException as e:
            raise ConnectionError(f"Failed to open {device}: {e}") from e
        self.port = device
        logger.info(f"Opened serial port {self.port} at {self.baudrate} bps")

    def close(self) -> None:
        """Close serial port."""
        if self._serial:
            try:
                self._serial.close()
            except serial.SerialException as e:
                logger.warning(f"Error closing {self.port}: {e}")
            self._serial = None
            logger.info(f"Closed serial port {self.port}")

    def _port(self) -> serial.Serial:
        if not self._serial or not self._serial.is_open:
            raise ConnectionError("Serial port not open")
        return self._serial

    def write(self, data: bytes) -> int:
        """
        Write data to the serial port.

        Args:
            data: Bytes to send

        Returns:
            Number of bytes written

        Raises:
            ConnectionError: If port is not open or the write fails
        """
        port = self._port()
        try:
            count = port.write(data)
        except serial.SerialException as e:
            raise ConnectionError(f"Send failed: {e}") from e
        logger.debug(f"TX ({count} bytes): {data.hex(' ')}")
        return count

    def flush(self) -> None:
        """Wait until all written data is transmitted."""
        port = self._port()
        try:
            port.flush()
        except serial.SerialException as e:
            raise ConnectionError(f"Flush failed: {e}") from e

    def bytes_available(self) -> int:
        """Number of bytes waiting in the input buffer."""
        port = self._port()
        try:
            return port.in_waiting
        except serial.SerialException as e:
            raise ConnectionError(f"Status query failed: {e}") from e

    def read(self, max_len: int) -> bytes:
        """Read bytes already buffered, without blocking."""
        available = self.bytes_available()
        if not available:
            return b''
        return self.receive(min(available, max_len), timeout=0)

    def receive(self, size: int, timeout: Optional[float] = None) -> bytes:
        """
        Read up to size bytes, blocking until they arrive or timeout elapses.

        Args:
            size: Number of bytes wanted
            timeout: Timeout in seconds (None uses default)

        Returns:
            Received bytes (shorter than size on timeout)
        """
        port = self._port()
        try:
            port.timeout = self.timeout if timeout is None else timeout
            data = port.read(size)
        except serial.SerialException as e:
            raise ConnectionError(f"Receive failed: {e}") from e
        if data:
            logger.debug(f"RX ({len(data)} bytes): {data.hex(' ')}")
        return data

    @property
    def is_open(self) -> bool:
        """Check if port is open."""
        return self._serial is not None and self._serial.is_open

    def __enter__(self) -> 'SerialTransport':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"SerialTransport({self.port}, {self.baudrate}, {status})"
