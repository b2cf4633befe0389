"""
Sequences Package

Each sequence is a self-contained package with its own protocol library,
drivers, and entry point.

Available sequences:
- buspirate_i2c: Bus Pirate I2C sensor (SRF10, BMP180) sequence
"""

__all__ = ["buspirate_i2c"]
