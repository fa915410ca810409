"""Background maintenance: due retries and stale-execution reconciliation.

Driven either by the in-process scheduler or by the Temporal maintenance
workflow. Both read the persisted ``next_retry_at``, so a restart never
loses a scheduled retry.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.automation.core.config import Settings, get_settings
from src.automation.core.exceptions import ConcurrentModificationError
from src.automation.core.logging import get_logger
from src.automation.models.base import utc_now
from src.automation.services.factory import ExecutionServices, open_execution_services

logger = get_logger(__name__)

ServicesFactory = Callable[[], AbstractAsyncContextManager[ExecutionServices]]


@dataclass
class MaintenanceResult:
    processed: int = 0
    skipped: int = 0
    errors: int = 0

    def __add__(self, other: "MaintenanceResult") -> "MaintenanceResult":
        return MaintenanceResult(
            processed=self.processed + other.processed,
            skipped=self.skipped + other.skipped,
            errors=self.errors + other.errors,
        )


class MaintenanceService:
    """One tick of background work. Each execution gets its own session,
    so a failure on one record does not stop the batch."""

    def __init__(
        self,
        services_factory: ServicesFactory = open_execution_services,
        settings: Settings | None = None,
    ):
        self.services_factory = services_factory
        self.settings = settings or get_settings()

    async def run_tick(self, now: datetime | None = None) -> MaintenanceResult:
        now = now or utc_now()
        return await self.process_due_retries(now) + await self.reconcile_stale_executions(now)

    async def process_due_retries(self, now: datetime | None = None) -> MaintenanceResult:
        now = now or utc_now()
        async with self.services_factory() as services:
            due = await services.repo.list_due_retries(now, self.settings.scheduler_batch_size)
            execution_ids = [execution.id for execution in due]

        result = MaintenanceResult()
        for execution_id in execution_ids:
            await self._run_one(execution_id, "retry", now, result)
        if execution_ids:
            logger.info("Processed due retries", **vars(result))
        return result

    async def reconcile_stale_executions(self, now: datetime | None = None) -> MaintenanceResult:
        now = now or utc_now()
        async with self.services_factory() as services:
            stale = await services.monitor.find_stale(now)
            execution_ids = [execution.id for execution in stale]

        result = MaintenanceResult()
        for execution_id in execution_ids:
            await self._run_one(execution_id, "poll", now, result)
        if execution_ids:
            logger.info("Reconciled stale executions", **vars(result))
        return result

    async def _run_one(
        self,
        execution_id: UUID,
        action: str,
        now: datetime,
        result: MaintenanceResult,
    ) -> None:
        try:
            async with self.services_factory() as services:
                execution = await services.repo.get_by_id(execution_id)
                if execution is None:
                    result.skipped += 1
                    return
                if action == "retry":
                    outcome = await services.retry.run_retry(execution, now=now)
                    if outcome is None:
                        result.skipped += 1
                        return
                else:
                    await services.monitor.poll(execution, now=now)
                result.processed += 1
        except ConcurrentModificationError:
            # Another writer (callback, cancel, second scheduler) got there first
            result.skipped += 1
            logger.info(
                "Execution changed concurrently, skipped",
                execution_id=str(execution_id),
                action=action,
            )
        except Exception:
            result.errors += 1
            logger.exception(
                "Maintenance action failed", execution_id=str(execution_id), action=action
            )
