"""
Custom exceptions for the Bus Pirate protocol.
"""

from typing import Sequence

from .constants import DeviceMode


class BusPirateError(Exception):
    """Base exception for Bus Pirate protocol errors."""
    pass


class ConnectionError(BusPirateError):
    """Serial transport error."""
    pass


class PortNotFoundError(ConnectionError):
    """No serial port matched the requested identifier."""

    def __init__(self, port: str, available: Sequence[str] = ()):
        self.port = port
        self.available = list(available)
        msg = f"Serial port {port!r} not found"
        if self.available:
            msg += f" (available: {', '.join(self.available)})"
        super().__init__(msg)


class TimeoutError(BusPirateError):
    """Adapter did not answer in time."""
    pass


class ResponseTimeoutError(TimeoutError):
    """Expected response bytes did not arrive."""

    def __init__(self, expected: int, received: bytes, timeout: float):
        self.expected = expected
        self.received = received
        self.timeout = timeout
        super().__init__(
            f"Expected {expected} byte(s) within {timeout}s, got {len(received)}"
        )


class ModeTimeoutError(TimeoutError):
    """Mode marker was not observed within the poll bound."""

    def __init__(self, marker: bytes, polls: int, received: bytes = b''):
        self.marker = marker
        self.polls = polls
        self.received = received
        super().__init__(
            f"No {marker.decode('ascii')} response after {polls} polls"
        )


class ModeError(BusPirateError):
    """Operation not allowed in the current adapter mode."""

    def __init__(self, required: DeviceMode, actual: DeviceMode):
        self.required = required
        self.actual = actual
        super().__init__(
            f"Adapter must be in {required.name} mode (currently {actual.name})"
        )


class PayloadTooLongError(BusPirateError, ValueError):
    """Bulk write length outside 1..16 bytes."""

    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(f"Bulk write of {length} bytes not supported (1..{limit})")


class HandshakeNakError(BusPirateError):
    """Peripheral answered NAK during a transaction."""

    def __init__(self, naks):
        self.naks = list(naks)
        stages = ", ".join(f"{h.stage}=0x{h.sent:02X}" for h in self.naks)
        super().__init__(f"NAK received: {stages}")


class AbortedError(BusPirateError):
    """Operation was cancelled by the caller."""
    pass
