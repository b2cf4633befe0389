"""
High-level protocol client.

Provides a simple API for reading I2C sensors through a Bus Pirate.
"""

import logging
import threading
from typing import Optional

from .constants import DeviceMode, I2CSpeed
from .exceptions import ModeError
from .frame import TraceHook
from .i2c import I2CEngine, I2CTransaction, TransactionResult
from .mode import ModeController
from .sensors import (
    RangeUnit, RangeReading, TemperatureReading,
    srf10_range_transaction, srf10_reading,
    bmp180_temperature_transaction, bmp180_reading,
)
from .session import AdapterSession
from .transport import Transport

logger = logging.getLogger(__name__)


class BusPirateClient:
    """High-level client for a Bus Pirate in I2C binary mode."""

    def __init__(
        self,
        transport: Transport,
        response_timeout: float = 0.2,
        mode_controller: Optional[ModeController] = None,
        strict: bool = False,
        trace: Optional[TraceHook] = None,
    ):
        """
        Initialize Bus Pirate client.

        Args:
            transport: Serial transport instance
            response_timeout: Timeout for each reply byte in seconds
            mode_controller: Mode controller (default settings if None)
            strict: Raise on NAK instead of only recording it
            trace: Optional callback receiving every byte exchange
        """
        self.session = AdapterSession(transport, timeout=response_timeout, trace=trace)
        self.modes = mode_controller or ModeController()
        self.engine = I2CEngine(strict=strict)

    @property
    def mode(self) -> DeviceMode:
        return self.session.mode

    def enter_i2c_mode(self, abort: Optional[threading.Event] = None) -> None:
        """Enter and verify I2C binary mode."""
        self.modes.enter_i2c_mode(self.session, abort=abort)
        logger.info("Adapter in I2C mode")

    def verify_i2c_mode(self) -> bool:
        """Check that the adapter still answers as I2C protocol version 1."""
        self.session.io.clear()
        return self.modes.verify_i2c_mode(self.session)

    def require_i2c_mode(self) -> None:
        """
        Re-run the version check and forget the tracked mode if it fails.

        Raises:
            ModeError: If the adapter no longer answers 'I2C1'
        """
        if not self.verify_i2c_mode():
            self.session.reset_mode()
            raise ModeError(DeviceMode.I2C, self.session.mode)

    def power_on(self, speed: I2CSpeed = I2CSpeed.KHZ_100, pullups: bool = False) -> bool:
        """
        Apply power to the 3.3V/5V supply pins and set the bus clock.

        Returns:
            True if both commands were accepted
        """
        powered = self.engine.configure_peripherals(self.session, power=True, pullups=pullups)
        clocked = self.engine.set_speed(self.session, speed)
        logger.info(f"Power {'on' if powered else 'FAILED'}, speed {I2CSpeed(speed).name}")
        return powered and clocked

    def transact(self, txn: I2CTransaction) -> TransactionResult:
        """Run an arbitrary I2C transaction."""
        return self.engine.run(self.session, txn)

    def read_range(self, unit: RangeUnit = RangeUnit.CENTIMETERS) -> RangeReading:
        """
        Read the SRF10 range finder.

        Args:
            unit: Range unit command

        Returns:
            RangeReading
        """
        result = self.transact(srf10_range_transaction(unit))
        reading = srf10_reading(result, unit)
        logger.info(f"dist={reading.distance}{reading.unit.symbol}")
        return reading

    def read_temperature_raw(self) -> TemperatureReading:
        """
        Read the BMP180 raw temperature byte.

        Returns:
            TemperatureReading (uncompensated)
        """
        result = self.transact(bmp180_temperature_transaction())
        reading = bmp180_reading(result)
        logger.info(f"temp raw={reading.raw_value}")
        return reading
