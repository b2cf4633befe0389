from __future__ import annotations

from conftest import FakeBusPirate, FakeI2CBus, FakeTransport
from sequences.buspirate_i2c.libs.bp_protocol import (
    BusPirateClient,
    DeviceMode,
    I2CTransaction,
    ModeController,
    RangeUnit,
)


def _client(read_data: bytes = b"", **kwargs) -> tuple[BusPirateClient, FakeTransport]:
    transport = FakeTransport(FakeBusPirate(FakeI2CBus(read_data)))
    return BusPirateClient(transport, mode_controller=ModeController(poll_interval=0), **kwargs), transport


def test_enter_power_and_read_range() -> None:
    client, transport = _client(b"\x00\x01\x2c")

    client.enter_i2c_mode()
    assert client.mode is DeviceMode.I2C
    assert client.power_on()
    reading = client.read_range()

    assert reading.distance == 300
    assert reading.unit is RangeUnit.CENTIMETERS
    assert reading.acked
    assert b"\x48\x62" in bytes(transport.written)


def test_read_temperature_raw() -> None:
    client, _ = _client(b"\x10\x20\x30\x40")
    client.enter_i2c_mode()

    reading = client.read_temperature_raw()

    assert reading.raw_value == 0x40
    assert reading.raw == b"\x10\x20\x30\x40"


def test_generic_transaction() -> None:
    client, _ = _client(b"\x55\xaa")
    client.enter_i2c_mode()

    result = client.transact(I2CTransaction.for_address(0x77, 0xD0, read_count=2))

    assert result.data == b"\x55\xaa"


def test_trace_hook_sees_every_exchange() -> None:
    events = []
    client, _ = _client(b"\x00\x00\x0a", trace=events.append)
    client.enter_i2c_mode()
    events.clear()

    client.read_range()

    tx = b"".join(e.data for e in events if e.direction == "tx")
    assert tx == bytes([0x02, 0x10, 0xE0, 0x11, 0x00, 0x51, 0x02, 0x10, 0xE1,
                        0x04, 0x06, 0x04, 0x06, 0x04, 0x07, 0x03])


def test_verify_i2c_mode_after_entry() -> None:
    client, _ = _client()
    client.enter_i2c_mode()

    assert client.verify_i2c_mode()
