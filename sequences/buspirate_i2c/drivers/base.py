"""
Base Driver Module

Abstract base class for serial hardware drivers whose protocol client
is synchronous.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional


class BaseDriver(ABC):
    """
    Abstract base driver class.

    Attributes:
        name: Driver identifier name
        config: Configuration dictionary
    """

    def __init__(
        self,
        name: str = "BaseDriver",
        config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize driver.

        Args:
            name: Driver identifier name
            config: Configuration dictionary (port, baudrate, etc.)
        """
        self.name = name
        self.config = config or {}
        self._connected = False
        self._abort = threading.Event()

    @abstractmethod
    async def connect(self) -> bool:
        """
        Connect to hardware.

        Returns:
            bool: True if connection successful
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from hardware and release the port."""
        ...

    @abstractmethod
    async def reset(self) -> None:
        """Bring the hardware back into its working mode."""
        ...

    async def identify(self) -> str:
        """Return device identification string."""
        return "Unknown"

    async def is_connected(self) -> bool:
        return self._connected

    def abort(self) -> None:
        """Ask a running poll loop to stop at its next iteration."""
        self._abort.set()

    async def _run_sync(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Run synchronous function in executor.

        The protocol client blocks on serial reads, so it runs in the
        default thread pool to keep the event loop responsive.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, connected={self._connected})"
