"""
Mode control: bring the adapter from an unknown terminal state into
verified I2C binary mode.

The Bus Pirate user terminal could be stuck in a configuration menu when
the host attempts to enter binary mode. The documented recovery is to send
<enter> at least 10 times, then '#' to reset, then 0x00 20+ times until the
BBIOx version string comes back.
"""

import logging
import threading
import time
from typing import Optional

from .constants import (
    CARRIAGE_RETURN, SOFT_RESET, RESYNC_RETURNS, BITBANG_ENTRY_REPEAT,
    MARKER_BBIO1, MARKER_I2C1,
    BitbangCommand, I2CCommand, DeviceMode,
)
from .exceptions import AbortedError, ModeTimeoutError, ResponseTimeoutError
from .session import AdapterSession

logger = logging.getLogger(__name__)


class ModeController:
    """Drives the reset -> bitbang -> I2C handshake sequence."""

    def __init__(
        self,
        poll_interval: float = 0.1,
        max_polls: int = 100,
        keepalive_every: int = 10,
        probe_timeout: float = 0.2,
        settle: float = 0.1,
    ):
        """
        Initialize mode controller.

        Args:
            poll_interval: Sleep between marker polls in seconds
            max_polls: Poll iterations before giving up with ModeTimeoutError
            keepalive_every: Re-send the prompting byte every N polls (0 disables)
            probe_timeout: Reply timeout for the I2C version probe
            settle: Pause after bitbang mode is reached
        """
        if max_polls < 1:
            raise ValueError("max_polls must be at least 1")
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.keepalive_every = keepalive_every
        self.probe_timeout = probe_timeout
        self.settle = settle

    def verify_i2c_mode(self, session: AdapterSession) -> bool:
        """
        Send the version check and compare the reply to 'I2C1'.

        Returns:
            True if the adapter answered as I2C protocol version 1
        """
        io = session.io
        io.write(I2CCommand.VERSION_CHECK, note='version check')
        try:
            reply = io.read_exact(len(MARKER_I2C1), timeout=self.probe_timeout)
        except ResponseTimeoutError as e:
            logger.debug(f"Version probe got {e.received!r}")
            return False
        return reply == MARKER_I2C1

    def enter_i2c_mode(
        self,
        session: AdapterSession,
        abort: Optional[threading.Event] = None,
    ) -> None:
        """
        Put the adapter into I2C binary mode.

        Args:
            session: Adapter session; its mode becomes I2C on success
            abort: Optional event; when set, polling stops between iterations

        Raises:
            ModeTimeoutError: If a mode marker is not seen within max_polls
            AbortedError: If abort was set while polling
            ConnectionError: On transport failure
        """
        io = session.io

        # First test to see if already in I2C mode
        io.clear()
        if self.verify_i2c_mode(session):
            logger.debug("Already in I2C mode")
            session.advance_mode(DeviceMode.I2C)
            return

        logger.debug("Not already in I2C mode. Attempting to enter.")
        # Whatever mode was tracked before, the adapter is about to be reset
        session.reset_mode()

        logger.debug(f"RETURN x {RESYNC_RETURNS}")
        io.write_repeated(CARRIAGE_RETURN, RESYNC_RETURNS, note='resync')
        io.clear()

        logger.debug("RESET")
        io.write(SOFT_RESET, note='soft reset')
        io.clear()
        session.advance_mode(DeviceMode.TERMINAL)

        logger.debug("Enter BBIO")
        io.write_repeated(BitbangCommand.RESET, BITBANG_ENTRY_REPEAT, note='enter bitbang')
        self._wait_for_marker(session, MARKER_BBIO1, BitbangCommand.RESET, abort)
        session.advance_mode(DeviceMode.BITBANG)
        time.sleep(self.settle)
        io.clear()

        logger.debug("Enter I2C mode")
        io.write(BitbangCommand.MODE_I2C, note='select I2C')
        io.clear()

        logger.debug("Get I2C version")
        io.write(I2CCommand.VERSION_CHECK, note='version check')
        self._wait_for_marker(session, MARKER_I2C1, I2CCommand.VERSION_CHECK, abort)
        session.advance_mode(DeviceMode.I2C)

    def _wait_for_marker(
        self,
        session: AdapterSession,
        marker: bytes,
        kick: int,
        abort: Optional[threading.Event],
    ) -> None:
        """Poll for marker, re-sending kick every keepalive_every polls."""
        io = session.io
        received = bytearray()

        for poll in range(1, self.max_polls + 1):
            if abort is not None and abort.is_set():
                io.clear()
                raise AbortedError(f"Aborted while waiting for {marker.decode('ascii')}")

            data = io.read_available()
            if data:
                received.extend(data)
                logger.debug(f"READ: ({len(data)} bytes) {data!r}")
                if marker in received:
                    logger.debug(f"In {marker.decode('ascii')} now")
                    return

            time.sleep(self.poll_interval)
            if self.keepalive_every and poll % self.keepalive_every == 0:
                logger.debug(f"No {marker.decode('ascii')} after {poll} polls, re-sending 0x{kick:02X}")
                io.write(kick, note='keepalive')

        logger.warning(f"Gave up waiting for {marker.decode('ascii')} after {self.max_polls} polls")
        raise ModeTimeoutError(marker, self.max_polls, bytes(received))
