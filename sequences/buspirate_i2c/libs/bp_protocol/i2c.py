"""
I2C transaction engine.

Runs addressed "write register(s), wait, read N bytes" transactions through
the adapter's I2C binary mode. In Bus Pirate macro syntax a transaction is::

    [ 0xE0 0x00 0x51 %:65 [ 0xE1 r:3 ]

START and every data byte clocked onto the bus are answered with a
handshake byte (0x00 = ACK, anything else = NAK); these feed the NAK
accounting. Bulk write headers, STOP and the ACK/NAK replies to read bytes
are answered with a status byte (0x01 = accepted) and are kept apart.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Sequence

from .constants import (
    MAX_BULK_WRITE, STATUS_OK, BUS_ACK,
    I2CCommand, I2CSpeed, DeviceMode,
)
from .exceptions import HandshakeNakError, PayloadTooLongError
from .frame import FrameBuilder
from .session import AdapterSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Handshake:
    """Outcome of one byte exchange."""
    stage: str
    sent: int
    reply: int
    ok: bool

    def __repr__(self) -> str:
        verdict = "ACK" if self.ok else "NAK"
        return f"Handshake({self.stage}: 0x{self.sent:02X} -> 0x{self.reply:02X} {verdict})"


@dataclass
class I2CTransaction:
    """Addressed write-then-read transaction descriptor."""
    write_address: int          # 8-bit write form (addr << 1)
    read_address: int           # 8-bit read form (addr << 1 | 1)
    register: int
    payload: bytes = field(default_factory=bytes)
    read_count: int = 0
    inter_delay_ms: int = 0

    def __post_init__(self):
        if isinstance(self.payload, (list, tuple, bytearray)):
            self.payload = bytes(self.payload)
        for name in ("write_address", "read_address", "register"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFF:
                raise ValueError(f"{name} out of byte range: {value}")
        if self.read_count < 0:
            raise ValueError("read_count must not be negative")
        if self.inter_delay_ms < 0:
            raise ValueError("inter_delay_ms must not be negative")

    @classmethod
    def for_address(
        cls,
        address: int,
        register: int,
        payload: bytes = b'',
        read_count: int = 0,
        inter_delay_ms: int = 0,
    ) -> 'I2CTransaction':
        """Build a transaction from a 7-bit device address."""
        if not 0 <= address <= 0x7F:
            raise ValueError(f"7-bit address out of range: 0x{address:02X}")
        return cls(
            write_address=address << 1,
            read_address=(address << 1) | 1,
            register=register,
            payload=payload,
            read_count=read_count,
            inter_delay_ms=inter_delay_ms,
        )

    @property
    def write_length(self) -> int:
        """Bytes in the register/payload bulk write."""
        return 1 + len(self.payload)

    def validate(self) -> None:
        """Raise PayloadTooLongError if register + payload exceed one bulk write."""
        if self.write_length > MAX_BULK_WRITE:
            raise PayloadTooLongError(self.write_length, MAX_BULK_WRITE)


@dataclass
class TransactionResult:
    """
    Bytes read back plus the replies seen on the way.

    handshakes holds the ACK/NAK replies to START and to every byte written
    on the bus. status holds the adapter's replies to bulk write headers,
    read ACK/NAK and STOP; a rejected status never counts as a NAK.
    """
    data: bytes
    handshakes: List[Handshake] = field(default_factory=list)
    status: List[Handshake] = field(default_factory=list)

    @property
    def naks(self) -> List[Handshake]:
        return [h for h in self.handshakes if not h.ok]

    @property
    def rejected(self) -> List[Handshake]:
        return [s for s in self.status if not s.ok]

    @property
    def acked(self) -> bool:
        """True when no handshake was NAKed."""
        return not self.naks

    @property
    def exchanges(self) -> int:
        """Handshake reads plus data reads."""
        return len(self.handshakes) + len(self.data)

    def __getitem__(self, index):
        return self.data[index]

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return (f"TransactionResult(data={self.data.hex(' ')}, "
                f"handshakes={len(self.handshakes)}, naks={len(self.naks)}, "
                f"status={len(self.status)}, rejected={len(self.rejected)})")


class I2CEngine:
    """Executes I2C transactions on a session in I2C mode."""

    def __init__(self, strict: bool = False):
        """
        Args:
            strict: Raise HandshakeNakError after the STOP if any NAK was seen
        """
        self.strict = strict

    # === Primitive exchanges ===

    def _command(self, session: AdapterSession, cmd: int, log: List[Handshake]) -> None:
        """Send a command byte and record its status reply."""
        io = session.io
        name = I2CCommand.name_of(cmd)
        io.write(cmd, note=name)
        reply = io.read_byte()
        ok = reply == STATUS_OK
        log.append(Handshake(name, cmd, reply, ok))
        if not ok:
            logger.warning(f"I2C {name} rejected: 0x{reply:02X}")
        else:
            logger.debug(f"I2C {name} OK")

    def _start(self, session: AdapterSession, log: List[Handshake]) -> None:
        """Send START and record its ACK/NAK handshake."""
        io = session.io
        io.write(I2CCommand.START, note='START')
        reply = io.read_byte()
        ok = reply == BUS_ACK
        log.append(Handshake("START", I2CCommand.START, reply, ok))
        logger.debug(f"I2C START BIT {'ACK' if ok else 'NAK'}")

    def _write_bytes(
        self,
        session: AdapterSession,
        stages: Sequence[str],
        data: bytes,
        log: List[Handshake],
        status: List[Handshake],
    ) -> None:
        io = session.io
        self._command(session, FrameBuilder.bulk_write(len(data)), status)
        for stage, value in zip(stages, data):
            io.write(value, note=stage)
            reply = io.read_byte()
            ok = reply == BUS_ACK
            log.append(Handshake(stage, value, reply, ok))
            logger.debug(f"WRITE: 0x{value:02X} {'ACK' if ok else 'NAK'}")
            if not ok:
                logger.warning(f"I2C NAK on {stage} byte 0x{value:02X}")

    def _read_bytes(self, session: AdapterSession, count: int, status: List[Handshake]) -> bytes:
        io = session.io
        output = bytearray()
        for i in range(count):
            last = i == count - 1
            io.write(I2CCommand.READ_BYTE, note='read byte')
            value = io.read_byte()
            output.append(value)
            reply_cmd = I2CCommand.NAK if last else I2CCommand.ACK
            logger.debug(f"READ: data=0x{value:02X} {'NAK' if last else 'ACK'}")
            self._command(session, reply_cmd, status)
        return bytes(output)

    # === Transactions ===

    def run(self, session: AdapterSession, txn: I2CTransaction) -> TransactionResult:
        """
        Execute a write-register-then-read transaction.

        Args:
            session: Session in I2C mode
            txn: Transaction descriptor

        Returns:
            TransactionResult with read_count bytes in device order

        Raises:
            ModeError: If the session is not in I2C mode
            PayloadTooLongError: If register + payload exceed 16 bytes
            ResponseTimeoutError: If the adapter stops answering
            HandshakeNakError: In strict mode, if any exchange was refused
        """
        txn.validate()
        session.require_mode(DeviceMode.I2C)

        log: List[Handshake] = []
        status: List[Handshake] = []

        self._start(session, log)
        self._write_bytes(session, ["write-address"], bytes([txn.write_address]), log, status)
        stages = ["register"] + ["payload"] * len(txn.payload)
        self._write_bytes(session, stages, bytes([txn.register]) + txn.payload, log, status)

        data = b''
        if txn.read_count:
            time.sleep(txn.inter_delay_ms / 1000.0)
            session.io.clear()

            self._start(session, log)
            self._write_bytes(session, ["read-address"], bytes([txn.read_address]), log, status)
            data = self._read_bytes(session, txn.read_count, status)
            logger.debug(f"readOutput={data.hex(' ')}")

        self._command(session, I2CCommand.STOP, status)

        result = TransactionResult(data, log, status)
        if result.naks:
            logger.warning(f"Transaction 0x{txn.write_address:02X}/0x{txn.register:02X} "
                           f"completed with {len(result.naks)} NAK(s)")
            if self.strict:
                raise HandshakeNakError(result.naks)
        return result

    # === Peripheral control ===

    def configure_peripherals(
        self,
        session: AdapterSession,
        power: bool = True,
        pullups: bool = False,
        aux: bool = False,
        cs: bool = False,
    ) -> bool:
        """Switch supply, pull-ups, AUX and CS pins. Returns True if accepted."""
        session.require_mode(DeviceMode.I2C)
        log: List[Handshake] = []
        cmd = FrameBuilder.peripherals(power=power, pullups=pullups, aux=aux, cs=cs)
        self._command(session, cmd, log)
        return log[-1].ok

    def set_speed(self, session: AdapterSession, speed: I2CSpeed = I2CSpeed.KHZ_100) -> bool:
        """Select the bus clock. Returns True if accepted."""
        session.require_mode(DeviceMode.I2C)
        log: List[Handshake] = []
        self._command(session, FrameBuilder.speed(speed), log)
        return log[-1].ok
