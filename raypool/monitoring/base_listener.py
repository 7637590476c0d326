# raypool/monitoring/base_listener.py
"""
Base class for WebSocket log listeners.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from .logs_event_processor import LogNotification


class BaseLogsListener(ABC):
    """
    Base abstract class for log listeners.
    Provides a stop event shared by subclasses.
    """

    def __init__(self):
        # Event to signal shutdown
        self._stop_event: asyncio.Event = asyncio.Event()

    @abstractmethod
    async def listen(
        self,
        on_event: Callable[[LogNotification], Awaitable[None]],
    ) -> None:
        """
        Subscribe to program logs and invoke the callback for every notification.

        Args:
            on_event: Async function called with each LogNotification.
        """
        ...

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    async def stop(self) -> None:
        """
        Signal to the listener to stop its loop and clean up.
        """
        if not self._stop_event.is_set():
            self._stop_event.set()
