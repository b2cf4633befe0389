"""
Sensor descriptors and decoders.

SRF10 ultrasonic range finder:
    http://www.robot-electronics.co.uk/htm/srf10tech.htm
    [ 0xE0 0x00 0x51 %:65 [ 0xE1 r:3 ]

BMP180 pressure/temperature sensor:
    [ 0xEE 0xF4 0x2E %:5 [ 0xEF r:4 ]

Decoders are pure functions over TransactionResult; they perform no I/O.
"""

from dataclasses import dataclass
from enum import IntEnum

from .i2c import I2CTransaction, TransactionResult

# SRF10 defaults
SRF10_WRITE_ADDRESS = 0xE0
SRF10_READ_ADDRESS = 0xE1
SRF10_COMMAND_REGISTER = 0x00
SRF10_RANGE_DELAY_MS = 65    # acoustic round trip settle time
SRF10_READ_COUNT = 3

# BMP180 defaults
BMP180_WRITE_ADDRESS = 0xEE
BMP180_READ_ADDRESS = 0xEF
BMP180_CONTROL_REGISTER = 0xF4
BMP180_TEMPERATURE_COMMAND = 0x2E
BMP180_TEMPERATURE_DELAY_MS = 5
BMP180_READ_COUNT = 4


class RangeUnit(IntEnum):
    """SRF10 ranging commands."""
    INCHES = 0x50
    CENTIMETERS = 0x51
    MICROSECONDS = 0x52

    @property
    def symbol(self) -> str:
        return {
            RangeUnit.INCHES: "in",
            RangeUnit.CENTIMETERS: "cm",
            RangeUnit.MICROSECONDS: "us",
        }[self]


@dataclass
class RangeReading:
    """Decoded SRF10 reading."""
    distance: int
    unit: RangeUnit
    raw: bytes
    acked: bool = True

    def __repr__(self) -> str:
        flag = "" if self.acked else ", NAK"
        return f"RangeReading({self.distance}{self.unit.symbol}{flag})"


@dataclass
class TemperatureReading:
    """Raw (uncompensated) BMP180 temperature value."""
    raw_value: int
    raw: bytes
    acked: bool = True

    def __repr__(self) -> str:
        flag = "" if self.acked else ", NAK"
        return f"TemperatureReading(raw={self.raw_value}{flag})"


def srf10_range_transaction(unit: RangeUnit = RangeUnit.CENTIMETERS) -> I2CTransaction:
    """Start a ranging in unit, then read status/high/low bytes."""
    return I2CTransaction(
        write_address=SRF10_WRITE_ADDRESS,
        read_address=SRF10_READ_ADDRESS,
        register=SRF10_COMMAND_REGISTER,
        payload=bytes([RangeUnit(unit)]),
        read_count=SRF10_READ_COUNT,
        inter_delay_ms=SRF10_RANGE_DELAY_MS,
    )


def decode_srf10_range(result: TransactionResult) -> int:
    """Distance from bytes[1] (high) and bytes[2] (low); bytes[0] is discarded."""
    if len(result) < SRF10_READ_COUNT:
        raise ValueError(f"SRF10 reading needs {SRF10_READ_COUNT} bytes, got {len(result)}")
    return (result[1] << 8) | result[2]


def bmp180_temperature_transaction() -> I2CTransaction:
    """Trigger a temperature conversion, then read four bytes back."""
    return I2CTransaction(
        write_address=BMP180_WRITE_ADDRESS,
        read_address=BMP180_READ_ADDRESS,
        register=BMP180_CONTROL_REGISTER,
        payload=bytes([BMP180_TEMPERATURE_COMMAND]),
        read_count=BMP180_READ_COUNT,
        inter_delay_ms=BMP180_TEMPERATURE_DELAY_MS,
    )


def decode_bmp180_temperature(result: TransactionResult) -> int:
    """Raw temperature byte, bytes[3]."""
    # TODO: read the 0xF6/0xF7 result registers and apply the factory calibration (0xAA..0xBF)
    if len(result) < BMP180_READ_COUNT:
        raise ValueError(f"BMP180 reading needs {BMP180_READ_COUNT} bytes, got {len(result)}")
    return result[3]


def srf10_reading(result: TransactionResult, unit: RangeUnit = RangeUnit.CENTIMETERS) -> RangeReading:
    return RangeReading(decode_srf10_range(result), RangeUnit(unit), result.data, result.acked)


def bmp180_reading(result: TransactionResult) -> TemperatureReading:
    return TemperatureReading(decode_bmp180_temperature(result), result.data, result.acked)
