"""
Bus Pirate I2C Sequence Package

Reads an SRF10 range finder and a BMP180 temperature sensor through a
Bus Pirate in binary I2C mode.
"""

from .drivers.bus_pirate import BusPirateDriver

__all__ = ["BusPirateDriver"]
