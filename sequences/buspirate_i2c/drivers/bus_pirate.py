"""
Bus Pirate Driver Module

Driver for reading I2C sensors through a Bus Pirate over USB serial.
Wraps the bp_protocol package for sequence integration.
"""

import logging
from collections import deque
from typing import Any, Deque, Dict, Optional

from .base import BaseDriver
from ..libs.bp_protocol import (
    BusPirateClient,
    BusPirateError,
    I2CSpeed,
    ModeController,
    RangeUnit,
    SerialTransport,
    TraceEvent,
)

logger = logging.getLogger(__name__)


class BusPirateDriver(BaseDriver):
    """
    Bus Pirate I2C driver.

    Enters I2C binary mode on connect and reads the SRF10 range finder and
    BMP180 temperature sensor.

    Attributes:
        port: Serial port path or substring
        baudrate: Communication speed
        timeout: Reply timeout in seconds
    """

    def __init__(
        self,
        name: str = "BusPirateDriver",
        config: Optional[Dict[str, Any]] = None,
        transport: Optional[Any] = None,
    ):
        """
        Initialize Bus Pirate driver.

        Args:
            name: Driver name
            config: Configuration with keys:
                - port: Serial port (default: "ttyUSB")
                - baudrate: Baud rate (default: 115200)
                - timeout: Reply timeout (default: 0.2)
                - max_polls: Mode entry poll bound (default: 100)
                - poll_interval: Mode entry poll interval (default: 0.1)
                - i2c_speed: I2CSpeed name (default: "KHZ_100")
                - power: Power the bus on connect (default: True)
                - strict: Raise on NAK (default: False)
                - trace_depth: Byte exchanges kept in trace (default: 1000)
            transport: Pre-built transport, bypasses serial port lookup
        """
        super().__init__(name=name, config=config)

        self.port: str = self.config.get("port", "ttyUSB")
        self.baudrate: int = self.config.get("baudrate", 115200)
        self.timeout: float = self.config.get("timeout", 0.2)
        self.max_polls: int = self.config.get("max_polls", 100)
        self.poll_interval: float = self.config.get("poll_interval", 0.1)
        self.i2c_speed: I2CSpeed = I2CSpeed[self.config.get("i2c_speed", "KHZ_100")]
        self.power: bool = self.config.get("power", True)
        self.strict: bool = self.config.get("strict", False)

        self._transport = transport
        self._owns_transport = transport is None
        self._client: Optional[BusPirateClient] = None
        self.trace: Deque[TraceEvent] = deque(maxlen=self.config.get("trace_depth", 1000))
        self.last_error: Optional[BusPirateError] = None

    async def connect(self) -> bool:
        """
        Open the port and enter I2C mode.

        Returns:
            bool: True if connection successful
        """
        try:
            if self._owns_transport:
                logger.info(f"Connecting to Bus Pirate on {self.port} at {self.baudrate} bps")
                self._transport = SerialTransport(
                    port=self.port,
                    baudrate=self.baudrate,
                    timeout=self.timeout
                )
                self._transport.open()

            self._client = BusPirateClient(
                transport=self._transport,
                response_timeout=self.timeout,
                mode_controller=ModeController(
                    poll_interval=self.poll_interval,
                    max_polls=self.max_polls,
                ),
                strict=self.strict,
                trace=self.trace.append,
            )

            self._abort.clear()
            await self._bring_up(self._client)

            self._connected = True
            self.last_error = None
            logger.info(f"Connected to Bus Pirate, mode {self._client.mode.name}")
            return True

        except BusPirateError as e:
            logger.error(f"Failed to connect to Bus Pirate: {e}")
            self.last_error = e
            await self.disconnect()
            return False

    async def disconnect(self) -> None:
        """Close the serial port."""
        if self._transport and self._owns_transport:
            self._transport.close()
            self._transport = None

        self._client = None
        self._connected = False
        logger.info("Disconnected from Bus Pirate")

    async def reset(self) -> None:
        """Re-verify I2C mode, re-entering it if the adapter fell out."""
        client = self._require_client()
        if not await self._run_sync(client.verify_i2c_mode):
            logger.warning("Adapter left I2C mode, re-entering")
            client.session.reset_mode()
            self._abort.clear()
            await self._bring_up(client)

    async def identify(self) -> str:
        if self._client:
            return f"BusPirate,{self.port},{self._client.mode.name}"
        return f"BusPirate,{self.port},Unknown"

    # === Measurement Methods ===

    async def read_range_cm(self) -> Dict[str, Any]:
        """
        Read SRF10 distance in centimeters.

        Returns:
            Dict with distance and handshake status
        """
        client = self._require_client()
        reading = await self._run_sync(client.read_range, RangeUnit.CENTIMETERS)
        return {
            "sensor": "SRF10",
            "distance_cm": reading.distance,
            "acked": reading.acked,
            "raw": reading.raw.hex(),
        }

    async def read_temperature_raw(self) -> Dict[str, Any]:
        """
        Read BMP180 raw temperature byte.

        Returns:
            Dict with raw value and handshake status
        """
        client = self._require_client()
        reading = await self._run_sync(client.read_temperature_raw)
        return {
            "sensor": "BMP180",
            "raw_value": reading.raw_value,
            "acked": reading.acked,
            "raw": reading.raw.hex(),
        }

    async def measure_until(self, stop_at: int = 6, attempts: int = 100) -> Dict[str, Any]:
        """
        Read the range finder until distance <= stop_at or attempts run out.

        Returns:
            Dict with last reading, attempt count and whether stop_at was reached
        """
        last: Optional[Dict[str, Any]] = None
        count = 0
        while count < attempts and not self._abort.is_set():
            count += 1
            last = await self.read_range_cm()
            if last["distance_cm"] <= stop_at:
                break
        return {
            "reached": last is not None and last["distance_cm"] <= stop_at,
            "attempts": count,
            "last": last,
        }

    # === Helper Methods ===

    async def _bring_up(self, client: BusPirateClient) -> None:
        """Enter I2C mode, power the bus if configured, then re-verify."""
        await self._run_sync(client.enter_i2c_mode, self._abort)
        if self.power:
            await self._run_sync(client.power_on, self.i2c_speed)
        await self._run_sync(client.require_i2c_mode)

    def _require_client(self) -> BusPirateClient:
        if not self._connected or not self._client:
            raise RuntimeError("Not connected to Bus Pirate")
        return self._client
