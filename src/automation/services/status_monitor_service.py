"""Status monitor: polls the runner for executions whose callback never came."""

from datetime import datetime, timedelta
from uuid import UUID

from src.automation.core.config import Settings, get_settings
from src.automation.core.exceptions import ExecutionNotFoundError, RunnerStatusError
from src.automation.core.logging import get_logger
from src.automation.core.sanitize import sanitize_payload
from src.automation.models import ExecutionStatus, WorkflowExecution
from src.automation.models.base import utc_now
from src.automation.repositories import WorkflowExecutionRepository
from src.automation.runner import WorkflowRunnerClient
from src.automation.services.callback_service import CallbackService
from src.automation.services.retry_service import RetryService
from src.automation.services.transitions import ExecutionWriter

logger = get_logger(__name__)


class StatusMonitorService:
    """Treats a polled runner result exactly like a pushed callback."""

    def __init__(
        self,
        repo: WorkflowExecutionRepository,
        runner: WorkflowRunnerClient,
        callback_service: CallbackService,
        retry_service: RetryService,
        settings: Settings | None = None,
    ):
        self.repo = repo
        self.runner = runner
        self.callback_service = callback_service
        self.retry_service = retry_service
        self.settings = settings or get_settings()
        self.writer = ExecutionWriter(repo)

    async def find_stale(
        self, now: datetime | None = None, limit: int | None = None
    ) -> list[WorkflowExecution]:
        """RUNNING executions past the callback grace period and due for a poll."""
        now = now or utc_now()
        return await self.repo.list_stale_running(
            started_before=now - timedelta(seconds=self.settings.status_poll_grace_seconds),
            polled_before=now - timedelta(seconds=self.settings.status_poll_interval_seconds),
            limit=limit or self.settings.scheduler_batch_size,
        )

    async def poll(
        self, execution: WorkflowExecution, now: datetime | None = None
    ) -> WorkflowExecution:
        """Query the runner once and apply the outcome.

        A poll that fails (timeout, transport error, non-2xx) counts as a
        failed attempt.
        """
        now = now or utc_now()
        if execution.status_enum is not ExecutionStatus.RUNNING or not execution.external_handle:
            return execution

        try:
            result = await self.runner.get_execution(execution.external_handle)
        except RunnerStatusError as e:
            logger.warning(
                "Runner status poll failed",
                execution_id=str(execution.id),
                external_handle=execution.external_handle,
                error=e.message,
            )
            return await self.retry_service.handle_failure(execution, e.message, now=now)

        if not result.finished:
            return await self.writer.touch(
                execution,
                last_polled_at=now,
                runner_data=sanitize_payload(result.data),
            )

        logger.info(
            "Runner reports execution finished",
            execution_id=str(execution.id),
            success=result.success,
        )
        if result.success:
            return await self.callback_service.complete(execution, result.data, now=now)
        return await self.retry_service.handle_failure(
            execution, result.error or "Workflow failed on runner", now=now
        )

    async def sync(self, execution_id: UUID, tenant_id: UUID) -> WorkflowExecution:
        """Poll one execution on demand, regardless of the grace period."""
        execution = await self.repo.get_for_tenant(execution_id, tenant_id)
        if execution is None:
            raise ExecutionNotFoundError(execution_id)
        return await self.poll(execution)
