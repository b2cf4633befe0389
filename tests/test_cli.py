from __future__ import annotations

from typer.testing import CliRunner

from sequences.buspirate_i2c import main
from sequences.buspirate_i2c.libs.bp_protocol import PortNotFoundError


class FakeDriver:
    connect_ok = True
    last_error = None
    instances: list["FakeDriver"] = []

    def __init__(self, config=None) -> None:
        self.config = config or {}
        self.port = self.config.get("port")
        self.disconnected = False
        FakeDriver.instances.append(self)

    async def connect(self) -> bool:
        return self.connect_ok

    async def disconnect(self) -> None:
        self.disconnected = True

    async def measure_until(self, stop_at: int = 6, attempts: int = 100):
        return {
            "reached": True,
            "attempts": 4,
            "last": {"sensor": "SRF10", "distance_cm": 5, "acked": True, "raw": "000005"},
        }

    async def read_temperature_raw(self):
        return {"sensor": "BMP180", "raw_value": 33, "acked": False, "raw": "00000021"}


runner = CliRunner()


def test_range_command(monkeypatch) -> None:
    FakeDriver.instances.clear()
    monkeypatch.setattr(main, "BusPirateDriver", FakeDriver)

    result = runner.invoke(main.app, ["range", "--port", "ttyUSB", "--max-polls", "5"])

    assert result.exit_code == 0
    assert "dist=5cm after 4 reading(s)" in result.output
    driver = FakeDriver.instances[-1]
    assert driver.config == {"port": "ttyUSB", "max_polls": 5}
    assert driver.disconnected


def test_temperature_command_warns_on_nak(monkeypatch) -> None:
    monkeypatch.setattr(main, "BusPirateDriver", FakeDriver)

    result = runner.invoke(main.app, ["temperature", "--port", "ttyUSB"])

    assert result.exit_code == 0
    assert "temp raw=33" in result.output
    assert "NAK" in result.output


def test_connect_failure_exits_nonzero(monkeypatch) -> None:
    class Unreachable(FakeDriver):
        connect_ok = False

    monkeypatch.setattr(main, "BusPirateDriver", Unreachable)

    result = runner.invoke(main.app, ["range", "--port", "ttyACM"])

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_connect_failure_shows_cause(monkeypatch) -> None:
    class MissingPort(FakeDriver):
        connect_ok = False
        last_error = PortNotFoundError("ttyACM", ["/dev/ttyS0"])

    monkeypatch.setattr(main, "BusPirateDriver", MissingPort)

    result = runner.invoke(main.app, ["range", "--port", "ttyACM"])

    assert result.exit_code == 1
    assert "ttyACM" in result.output
    assert "not found" in result.output


def test_range_without_reading_exits_nonzero(monkeypatch) -> None:
    class Aborted(FakeDriver):
        async def measure_until(self, stop_at: int = 6, attempts: int = 100):
            return {"reached": False, "attempts": 0, "last": None}

    monkeypatch.setattr(main, "BusPirateDriver", Aborted)

    result = runner.invoke(main.app, ["range", "--port", "ttyUSB"])

    assert result.exit_code == 1
    assert "no reading taken" in result.output
    assert Aborted.instances[-1].disconnected
