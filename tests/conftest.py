from __future__ import annotations

import time

import pytest

from sequences.buspirate_i2c.libs.bp_protocol import AdapterSession, DeviceMode


class FakeTransport:
    """In-memory transport; each written byte is answered by a responder."""

    def __init__(self, responder=None) -> None:
        self.responder = responder
        self.written = bytearray()
        self.rx = bytearray()
        self.flushes = 0
        self.closed = False

    def write(self, data: bytes) -> int:
        for value in data:
            self.written.append(value)
            if self.responder is not None:
                self.rx.extend(self.responder(value) or b"")
        return len(data)

    def flush(self) -> None:
        self.flushes += 1

    def bytes_available(self) -> int:
        return len(self.rx)

    def read(self, max_len: int) -> bytes:
        data = bytes(self.rx[:max_len])
        del self.rx[:max_len]
        return data

    def receive(self, size: int, timeout: float | None = None) -> bytes:
        return self.read(size)

    def close(self) -> None:
        self.closed = True


class FakeI2CBus:
    """Answers like a Bus Pirate already in binary I2C mode."""

    def __init__(self, read_data: bytes = b"", nak_on: tuple[int, ...] = ()) -> None:
        self.read_data = list(read_data)
        self.nak_on = set(nak_on)
        self.pending_writes = 0
        self.replies: list[int] = []

    def __call__(self, value: int) -> bytes:
        if self.pending_writes:
            self.pending_writes -= 1
            return b"\x01" if value in self.nak_on else b"\x00"
        if 0x10 <= value <= 0x1F:
            self.pending_writes = (value & 0x0F) + 1
            return b"\x01"
        if value == 0x01:
            return b"I2C1"
        if value == 0x04:
            return bytes([self.read_data.pop(0)])
        if value in (0x06, 0x07):
            self.replies.append(value)
            return b"\x01"
        if value == 0x02:
            return b"\x00"
        if value == 0x03 or 0x40 <= value <= 0x4F or 0x60 <= value <= 0x63:
            return b"\x01"
        return b""


class FakeBusPirate:
    """Terminal -> bitbang -> I2C state machine of the adapter."""

    def __init__(self, bus: FakeI2CBus | None = None, bitbang_after: int = 20,
                 answer_bitbang: bool = True, answer_i2c: bool = True) -> None:
        self.bus = bus or FakeI2CBus()
        self.bitbang_after = bitbang_after
        self.answer_bitbang = answer_bitbang
        self.answer_i2c = answer_i2c
        self.state = "terminal"
        self.zeros = 0

    def __call__(self, value: int) -> bytes:
        if self.state == "terminal":
            if value == 13:
                return b"\r\nHiZ>"
            if value == ord("#"):
                self.zeros = 0
                return b"#\r\nRESET\r\nBus Pirate v3.5\r\nHiZ>"
            if value == 0x00:
                self.zeros += 1
                if self.zeros >= self.bitbang_after and self.answer_bitbang:
                    self.state = "bitbang"
                    return b"BBIO1"
            return b""
        if self.state == "bitbang":
            if value == 0x00:
                return b"BBIO1"
            if value == 0x02 and self.answer_i2c:
                self.state = "i2c"
                return b"I2C1"
            return b""
        return self.bus(value)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    sleeps: list[float] = []
    monkeypatch.setattr(time, "sleep", sleeps.append)
    return sleeps


@pytest.fixture
def i2c_session() -> tuple[AdapterSession, FakeTransport, FakeI2CBus]:
    bus = FakeI2CBus()
    transport = FakeTransport(bus)
    session = AdapterSession(transport)
    session.advance_mode(DeviceMode.I2C)
    return session, transport, bus
