"""
Protocol constants for the Bus Pirate binary bitbang and I2C modes.

Reference: http://dangerousprototypes.com/docs/Bitbang
           http://dangerousprototypes.com/docs/I2C_(binary)
"""

from enum import Enum, IntEnum

# Terminal resynchronisation
CARRIAGE_RETURN = 13
SOFT_RESET = ord('#')
RESYNC_RETURNS = 10
BITBANG_ENTRY_REPEAT = 20

# Mode markers returned by the adapter
MARKER_BBIO1 = b"BBIO1"
MARKER_I2C1 = b"I2C1"

# Bulk write carries 1..16 bytes, length encoded as n - 1 in the low nibble
BULK_WRITE_BASE = 0x10
MAX_BULK_WRITE = 16

# Reply to an accepted bulk write header, STOP, ACK or NAK command
STATUS_OK = 0x01

# Handshake reply to START and to data bytes written on the bus; nonzero is NAK
BUS_ACK = 0x00


class BitbangCommand(IntEnum):
    """Raw bitbang mode commands."""
    RESET = 0x00
    MODE_I2C = 0x02


class I2CCommand(IntEnum):
    """I2C binary mode commands."""
    VERSION_CHECK = 0x01
    START = 0x02
    STOP = 0x03
    READ_BYTE = 0x04
    ACK = 0x06
    NAK = 0x07
    PERIPHERALS = 0x40
    SPEED = 0x60

    @classmethod
    def name_of(cls, cmd: int) -> str:
        """Get command name from byte."""
        if BULK_WRITE_BASE <= cmd < BULK_WRITE_BASE + MAX_BULK_WRITE:
            return f"BULK_WRITE[{cmd - BULK_WRITE_BASE + 1}]"
        if (cmd & 0xF0) == cls.PERIPHERALS:
            return f"PERIPHERALS(0x{cmd:02X})"
        if (cmd & 0xFC) == cls.SPEED:
            return f"SPEED({I2CSpeed(cmd & 0x03).name})"
        try:
            return cls(cmd).name
        except ValueError:
            return f"Unknown(0x{cmd:02X})"


class I2CSpeed(IntEnum):
    """Bus clock selection for the SPEED command (low two bits)."""
    KHZ_5 = 0x00
    KHZ_50 = 0x01
    KHZ_100 = 0x02
    KHZ_400 = 0x03


class DeviceMode(Enum):
    """Logical adapter mode as tracked by the host."""
    UNKNOWN = 0
    TERMINAL = 1
    BITBANG = 2
    I2C = 3


# Peripheral bits for the 0100wxyz command
PERIPH_POWER = 0x08
PERIPH_PULLUPS = 0x04
PERIPH_AUX = 0x02
PERIPH_CS = 0x01
