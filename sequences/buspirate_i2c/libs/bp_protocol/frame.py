"""
Command byte building and byte-level I/O.

The Bus Pirate binary protocol has no framing: every command is one byte,
optionally followed by data bytes, and answered by one or more reply bytes.

- Bulk write:   0001xxxx, xxxx = byte count - 1 (1..16 bytes follow)
- Peripherals:  0100wxyz, w=power, x=pull-ups, y=AUX, z=CS
- Speed:        011000xx, 0=~5kHz, 1=~50kHz, 2=~100kHz, 3=~400kHz
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .constants import (
    BULK_WRITE_BASE, MAX_BULK_WRITE,
    I2CCommand, I2CSpeed,
    PERIPH_POWER, PERIPH_PULLUPS, PERIPH_AUX, PERIPH_CS,
)
from .exceptions import PayloadTooLongError, ResponseTimeoutError
from .transport import Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TraceEvent:
    """One observed exchange on the wire."""
    direction: str   # 'tx', 'rx' or 'drain'
    data: bytes
    note: str = ''

    def __repr__(self) -> str:
        note = f" {self.note}" if self.note else ''
        return f"TraceEvent({self.direction} {self.data.hex(' ')}{note})"


TraceHook = Callable[[TraceEvent], None]


class FrameBuilder:
    """Builds adapter command bytes."""

    @staticmethod
    def bulk_write(length: int) -> int:
        """
        Build the bulk write command for length data bytes.

        Raises:
            PayloadTooLongError: If length is outside 1..16
        """
        if not 1 <= length <= MAX_BULK_WRITE:
            raise PayloadTooLongError(length, MAX_BULK_WRITE)
        return BULK_WRITE_BASE + (length - 1)

    @staticmethod
    def peripherals(
        power: bool = False,
        pullups: bool = False,
        aux: bool = False,
        cs: bool = False,
    ) -> int:
        """Build the peripheral configuration command."""
        value = I2CCommand.PERIPHERALS
        if power:
            value |= PERIPH_POWER
        if pullups:
            value |= PERIPH_PULLUPS
        if aux:
            value |= PERIPH_AUX
        if cs:
            value |= PERIPH_CS
        return value

    @staticmethod
    def speed(speed: I2CSpeed) -> int:
        """Build the bus speed command."""
        return I2CCommand.SPEED | I2CSpeed(speed)


class FrameIO:
    """Writes command bytes and reads replies over a transport."""

    def __init__(
        self,
        transport: Transport,
        timeout: float = 0.2,
        trace: Optional[TraceHook] = None,
        drain_rounds: int = 4,
        drain_settle: float = 0.02,
    ):
        """
        Args:
            transport: Byte channel to the adapter
            timeout: Default reply timeout in seconds
            trace: Optional callback receiving every TraceEvent
            drain_rounds: Polls performed by clear()
            drain_settle: Pause after each non-empty drain read
        """
        self.transport = transport
        self.timeout = timeout
        self.trace = trace
        self.drain_rounds = drain_rounds
        self.drain_settle = drain_settle

    def _emit(self, direction: str, data: bytes, note: str = '') -> None:
        if self.trace is not None:
            self.trace(TraceEvent(direction, bytes(data), note))

    def write(self, *values: int, note: str = '') -> None:
        """Write one or more bytes and flush."""
        data = bytes(v & 0xFF for v in values)
        self.transport.write(data)
        self.transport.flush()
        self._emit('tx', data, note)

    def write_repeated(self, value: int, count: int, note: str = '') -> None:
        """Write the same byte count times with a single flush."""
        self.write(*([value] * count), note=note)

    def read_exact(self, size: int, timeout: Optional[float] = None) -> bytes:
        """
        Read exactly size bytes.

        Raises:
            ResponseTimeoutError: If fewer bytes arrive before timeout
        """
        timeout = self.timeout if timeout is None else timeout
        data = self.transport.receive(size, timeout)
        self._emit('rx', data)
        if len(data) < size:
            raise ResponseTimeoutError(size, data, timeout)
        return data

    def read_byte(self, timeout: Optional[float] = None) -> int:
        """Read a single reply byte."""
        return self.read_exact(1, timeout)[0]

    def read_available(self) -> bytes:
        """Read whatever is buffered right now."""
        available = self.transport.bytes_available()
        if not available:
            return b''
        data = self.transport.read(available)
        if data:
            self._emit('rx', data)
        return data

    def clear(self) -> bytes:
        """Drain and discard pending input."""
        drained = bytearray()
        for _ in range(self.drain_rounds):
            available = self.transport.bytes_available()
            if available:
                data = self.transport.read(available)
                logger.debug(f"CLEAR: ({len(data)} bytes) {data!r}")
                drained.extend(data)
                time.sleep(self.drain_settle)
        if drained:
            self._emit('drain', bytes(drained))
        return bytes(drained)
