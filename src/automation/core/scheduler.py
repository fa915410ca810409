"""In-process driver for execution maintenance ticks."""

import asyncio
import contextlib

from src.automation.core.logging import get_logger
from src.automation.core.shutdown import RequestTracker, request_tracker
from src.automation.services.maintenance_service import MaintenanceResult, MaintenanceService

logger = get_logger(__name__)


class ExecutionScheduler:
    """Runs MaintenanceService.run_tick every tick_seconds on the event loop.

    Safe to run in several processes at once: retries are claimed with a
    version-checked write, so each due retry is dispatched once.
    """

    def __init__(
        self,
        maintenance: MaintenanceService,
        tick_seconds: float,
        tracker: RequestTracker = request_tracker,
    ):
        self.maintenance = maintenance
        self.tick_seconds = tick_seconds
        self.tracker = tracker
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._loop(), name="execution-scheduler")
        logger.info("Execution scheduler started", tick_seconds=self.tick_seconds)

    async def stop(self, timeout: float = 30.0) -> None:
        """Stop after the current tick, cancelling it if it outlives timeout."""
        if self._task is None:
            return
        self._stopping.set()
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except TimeoutError:
            logger.warning("Execution scheduler tick did not finish, cancelling")
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        logger.info("Execution scheduler stopped")

    async def run_once(self) -> MaintenanceResult:
        async with self.tracker.track_request():
            return await self.maintenance.run_tick()

    async def _loop(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("Execution scheduler tick failed")
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=self.tick_seconds)
