from __future__ import annotations

import threading

import pytest

from conftest import FakeBusPirate, FakeTransport
from sequences.buspirate_i2c.libs.bp_protocol import (
    AbortedError,
    AdapterSession,
    DeviceMode,
    ModeController,
    ModeTimeoutError,
)


def _session(device: FakeBusPirate) -> tuple[AdapterSession, FakeTransport]:
    transport = FakeTransport(device)
    return AdapterSession(transport), transport


def test_enter_from_terminal() -> None:
    session, transport = _session(FakeBusPirate())

    ModeController().enter_i2c_mode(session)

    assert session.mode is DeviceMode.I2C
    assert bytes(transport.written) == bytes(
        [0x01] + [13] * 10 + [ord("#")] + [0x00] * 20 + [0x02, 0x01]
    )


def test_already_in_i2c_only_probes() -> None:
    device = FakeBusPirate()
    device.state = "i2c"
    session, transport = _session(device)

    ModeController().enter_i2c_mode(session)

    assert session.mode is DeviceMode.I2C
    assert bytes(transport.written) == b"\x01"


def test_verify_i2c_mode_false_in_terminal() -> None:
    session, _ = _session(FakeBusPirate())

    assert not ModeController().verify_i2c_mode(session)


def test_keepalive_resends_reset_byte() -> None:
    session, transport = _session(FakeBusPirate(bitbang_after=22))

    ModeController(keepalive_every=10).enter_i2c_mode(session)

    assert session.mode is DeviceMode.I2C
    assert transport.written.count(0x00) == 22


def test_bitbang_timeout_is_bounded() -> None:
    session, transport = _session(FakeBusPirate(answer_bitbang=False))

    with pytest.raises(ModeTimeoutError) as excinfo:
        ModeController(max_polls=25, keepalive_every=10).enter_i2c_mode(session)

    assert excinfo.value.marker == b"BBIO1"
    assert excinfo.value.polls == 25
    assert transport.written.count(0x00) == 22
    assert session.mode is DeviceMode.TERMINAL


def test_i2c_marker_timeout_keeps_bitbang_mode() -> None:
    session, transport = _session(FakeBusPirate(answer_i2c=False))

    with pytest.raises(ModeTimeoutError) as excinfo:
        ModeController(max_polls=10, keepalive_every=5).enter_i2c_mode(session)

    assert excinfo.value.marker == b"I2C1"
    assert session.mode is DeviceMode.BITBANG
    # probe, version check, two keepalives
    assert transport.written.count(0x01) == 4


def test_retry_after_i2c_marker_timeout_succeeds() -> None:
    device = FakeBusPirate(answer_i2c=False)
    session, transport = _session(device)
    controller = ModeController(max_polls=3)

    with pytest.raises(ModeTimeoutError):
        controller.enter_i2c_mode(session)
    assert session.mode is DeviceMode.BITBANG

    device.answer_i2c = True
    sent_before = len(transport.written)
    controller.enter_i2c_mode(session)

    assert session.mode is DeviceMode.I2C
    assert bytes(transport.written[sent_before:]) == bytes(
        [0x01] + [13] * 10 + [ord("#")] + [0x00] * 20 + [0x02, 0x01]
    )


def test_abort_between_polls_drains_input() -> None:
    session, transport = _session(FakeBusPirate(answer_bitbang=False))
    abort = threading.Event()
    abort.set()

    with pytest.raises(AbortedError):
        ModeController().enter_i2c_mode(session, abort=abort)

    assert transport.bytes_available() == 0
    assert session.mode is DeviceMode.TERMINAL


def test_poll_bound_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ModeController(max_polls=0)


def test_mode_never_moves_backwards() -> None:
    session, _ = _session(FakeBusPirate())
    session.advance_mode(DeviceMode.I2C)

    with pytest.raises(ValueError):
        session.advance_mode(DeviceMode.BITBANG)

    session.reset_mode()
    assert session.mode is DeviceMode.UNKNOWN
