"""In-flight work tracking for graceful shutdown.

HTTP requests and scheduler ticks both register here, so shutdown waits for a
callback being applied or a retry being dispatched before closing the pool.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from src.automation.core.logging import get_logger

logger = get_logger(__name__)


class RequestTracker:
    """Tracks in-flight units of work for graceful shutdown."""

    def __init__(self) -> None:
        self._in_flight = 0
        self._shutting_down = False
        self._lock = asyncio.Lock()
        self._drain_event = asyncio.Event()

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def in_flight_count(self) -> int:
        return self._in_flight

    @asynccontextmanager
    async def track_request(self) -> AsyncGenerator[None]:
        """Context manager wrapping one request or scheduler tick."""
        async with self._lock:
            self._in_flight += 1
        try:
            yield
        finally:
            async with self._lock:
                self._in_flight -= 1
                if self._in_flight == 0 and self._shutting_down:
                    logger.info("All in-flight work drained")
                    self._drain_event.set()

    async def start_shutdown(self) -> None:
        """Mark the application as shutting down."""
        logger.info("Request tracker entering shutdown mode")
        self._shutting_down = True
        async with self._lock:
            if self._in_flight == 0:
                self._drain_event.set()
            else:
                logger.info(f"Waiting for {self._in_flight} in-flight units of work")

    async def wait_for_drain(self, timeout: float) -> bool:
        """Wait for in-flight work to finish.

        Args:
            timeout: Maximum time to wait in seconds

        Returns:
            True if everything completed within timeout, False otherwise
        """
        try:
            await asyncio.wait_for(self._drain_event.wait(), timeout=timeout)
            return True
        except TimeoutError:
            logger.warning(
                f"Shutdown timeout after {timeout}s - {self._in_flight} units still in-flight"
            )
            return False

    def reset(self) -> None:
        """Reset tracker state. For testing only."""
        self._in_flight = 0
        self._shutting_down = False
        self._drain_event = asyncio.Event()


request_tracker = RequestTracker()
