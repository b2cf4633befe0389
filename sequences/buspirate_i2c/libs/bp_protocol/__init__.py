"""
BP Protocol - Python implementation of the Bus Pirate binary I2C protocol.

This package provides:
- Protocol constants and adapter modes
- Command byte building and byte-level I/O
- Serial transport layer
- Mode control (terminal -> bitbang -> I2C)
- I2C transaction engine
- Sensor descriptors (SRF10, BMP180)
- High-level protocol client
"""

from .constants import (
    MARKER_BBIO1, MARKER_I2C1, MAX_BULK_WRITE,
    BitbangCommand, I2CCommand, I2CSpeed, DeviceMode
)
from .exceptions import (
    BusPirateError, ConnectionError, PortNotFoundError,
    TimeoutError, ResponseTimeoutError, ModeTimeoutError,
    ModeError, PayloadTooLongError, HandshakeNakError, AbortedError
)
from .frame import FrameBuilder, FrameIO, TraceEvent
from .session import AdapterSession
from .mode import ModeController
from .i2c import Handshake, I2CTransaction, TransactionResult, I2CEngine
from .sensors import (
    RangeUnit, RangeReading, TemperatureReading,
    srf10_range_transaction, decode_srf10_range,
    bmp180_temperature_transaction, decode_bmp180_temperature,
)
from .transport import Transport, SerialTransport, find_port
from .client import BusPirateClient

__version__ = "1.0.0"
__all__ = [
    # Constants
    "MARKER_BBIO1", "MARKER_I2C1", "MAX_BULK_WRITE",
    "BitbangCommand", "I2CCommand", "I2CSpeed", "DeviceMode",
    # Exceptions
    "BusPirateError", "ConnectionError", "PortNotFoundError",
    "TimeoutError", "ResponseTimeoutError", "ModeTimeoutError",
    "ModeError", "PayloadTooLongError", "HandshakeNakError", "AbortedError",
    # Frame
    "FrameBuilder", "FrameIO", "TraceEvent",
    # Session / mode
    "AdapterSession", "ModeController",
    # I2C
    "Handshake", "I2CTransaction", "TransactionResult", "I2CEngine",
    # Sensors
    "RangeUnit", "RangeReading", "TemperatureReading",
    "srf10_range_transaction", "decode_srf10_range",
    "bmp180_temperature_transaction", "decode_bmp180_temperature",
    # Transport
    "Transport", "SerialTransport", "find_port",
    # Client
    "BusPirateClient",
]
