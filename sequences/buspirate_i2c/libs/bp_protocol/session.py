"""
Adapter session: the connection handle shared by mode control and I2C.
"""

import logging
from typing import Optional

from .constants import DeviceMode
from .exceptions import ModeError
from .frame import FrameIO, TraceHook
from .transport import Transport

logger = logging.getLogger(__name__)


class AdapterSession:
    """One open transport plus the adapter mode tracked for it."""

    def __init__(
        self,
        transport: Transport,
        timeout: float = 0.2,
        trace: Optional[TraceHook] = None,
    ):
        self.transport = transport
        self.io = FrameIO(transport, timeout=timeout, trace=trace)
        self._mode = DeviceMode.UNKNOWN

    @property
    def mode(self) -> DeviceMode:
        return self._mode

    def advance_mode(self, mode: DeviceMode) -> None:
        """Move to a later mode. Backward moves are rejected."""
        if mode.value < self._mode.value:
            raise ValueError(
                f"Cannot move from {self._mode.name} back to {mode.name}"
            )
        if mode is not self._mode:
            logger.info(f"Adapter mode {self._mode.name} -> {mode.name}")
        self._mode = mode

    def reset_mode(self) -> None:
        """Forget the tracked mode, e.g. after a hard reset or reconnect."""
        self._mode = DeviceMode.UNKNOWN

    def require_mode(self, mode: DeviceMode) -> None:
        if self._mode is not mode:
            raise ModeError(mode, self._mode)

    def __repr__(self) -> str:
        return f"AdapterSession({self.transport!r}, mode={self._mode.name})"
