"""Retry controller: failure handling, backoff scheduling and re-dispatch."""

from datetime import datetime, timedelta

from src.automation.core.config import Settings, get_settings
from src.automation.core.events import (
    EventBus,
    ExecutionCancelled,
    ExecutionFailed,
    ExecutionFailedPermanently,
    ExecutionRetriesExhausted,
    event_bus,
)
from src.automation.core.exceptions import (
    DispatchError,
    InvalidTransitionError,
    RetryCeilingExceededError,
)
from src.automation.core.logging import get_logger
from src.automation.models import ExecutionStatus, WorkflowExecution
from src.automation.models.base import utc_now
from src.automation.repositories import WorkflowExecutionRepository
from src.automation.services.dispatch_service import DispatchService
from src.automation.services.transitions import ExecutionWriter, retry_delay

logger = get_logger(__name__)

DEFAULT_FAILURE_MESSAGE = "Workflow failed"
MAX_ERROR_MESSAGE_LENGTH = 1000


class RetryService:
    """Decides between RETRYING and FAILED, and runs due retries.

    Retries are durable: the due time is stored in ``next_retry_at`` and
    picked up by the scheduler, never held in process memory.
    """

    def __init__(
        self,
        repo: WorkflowExecutionRepository,
        dispatcher: DispatchService,
        bus: EventBus = event_bus,
        settings: Settings | None = None,
    ):
        self.repo = repo
        self.dispatcher = dispatcher
        self.bus = bus
        self.settings = settings or get_settings()
        self.writer = ExecutionWriter(repo)

    @property
    def max_retries(self) -> int:
        return self.settings.retry_max_attempts

    def delay_for(self, retry_number: int) -> float:
        return retry_delay(
            retry_number,
            self.settings.retry_base_delay_seconds,
            self.settings.retry_backoff_multiplier,
        )

    @property
    def claim_lease(self) -> timedelta:
        """How long a claimed retry is hidden from other schedulers."""
        return timedelta(seconds=self.settings.runner_request_timeout_seconds * 2)

    async def handle_failure(
        self,
        execution: WorkflowExecution,
        error_message: str | None,
        now: datetime | None = None,
    ) -> WorkflowExecution:
        """Record a failed attempt and schedule a retry while budget remains.

        The failure and the retry decision are one write: the record goes
        straight to RETRYING (with a due time) or to FAILED.
        """
        now = now or utc_now()
        message = (error_message or DEFAULT_FAILURE_MESSAGE)[:MAX_ERROR_MESSAGE_LENGTH]
        will_retry = execution.retry_count < self.max_retries

        if will_retry:
            retry_count = execution.retry_count + 1
            delay = self.delay_for(retry_count)
            await self.writer.transition(
                execution,
                ExecutionStatus.RETRYING,
                retry_count=retry_count,
                error_message=message,
                failed_at=now,
                last_retry_at=now,
                next_retry_at=now + timedelta(seconds=delay),
            )
            logger.info(
                "Scheduled workflow retry",
                execution_id=str(execution.id),
                retry_attempt=retry_count,
                retry_delay_seconds=delay,
                workflow_type=execution.workflow_type,
            )
        else:
            await self.writer.transition(
                execution,
                ExecutionStatus.FAILED,
                error_message=message,
                failed_at=now,
                next_retry_at=None,
            )

        await self.bus.publish(
            ExecutionFailed(
                execution_id=execution.id,
                tenant_id=execution.tenant_id,
                workflow_type=execution.workflow_type,
                subject_id=execution.subject_id,
                occurred_at=now,
                error_message=message,
                retry_count=execution.retry_count,
                will_retry=will_retry,
            )
        )
        if not will_retry:
            await self.bus.publish(
                ExecutionRetriesExhausted(
                    execution_id=execution.id,
                    tenant_id=execution.tenant_id,
                    workflow_type=execution.workflow_type,
                    subject_id=execution.subject_id,
                    occurred_at=now,
                    error_message=message,
                    retry_count=execution.retry_count,
                    max_retries=self.max_retries,
                )
            )
        return execution

    async def fail_permanently(
        self,
        execution: WorkflowExecution,
        error_message: str,
        now: datetime | None = None,
    ) -> WorkflowExecution:
        """Structural failure: FAILED without consuming retry budget."""
        now = now or utc_now()
        message = error_message[:MAX_ERROR_MESSAGE_LENGTH]
        await self.writer.transition(
            execution,
            ExecutionStatus.FAILED,
            error_message=message,
            failed_at=now,
            next_retry_at=None,
        )
        await self.bus.publish(
            ExecutionFailed(
                execution_id=execution.id,
                tenant_id=execution.tenant_id,
                workflow_type=execution.workflow_type,
                subject_id=execution.subject_id,
                occurred_at=now,
                error_message=message,
                retry_count=execution.retry_count,
                will_retry=False,
            )
        )
        await self.bus.publish(
            ExecutionFailedPermanently(
                execution_id=execution.id,
                tenant_id=execution.tenant_id,
                workflow_type=execution.workflow_type,
                subject_id=execution.subject_id,
                occurred_at=now,
                error_message=message,
                retry_count=execution.retry_count,
            )
        )
        return execution

    async def run_retry(
        self,
        execution: WorkflowExecution,
        now: datetime | None = None,
    ) -> WorkflowExecution | None:
        """Re-dispatch a RETRYING execution whose backoff has elapsed.

        Returns None when the execution is not (or no longer) due.

        Raises:
            ConcurrentModificationError: If another writer changed the record,
                e.g. a cancel that landed while the runner was being called.
        """
        now = now or utc_now()
        if (
            execution.status_enum is not ExecutionStatus.RETRYING
            or execution.next_retry_at is None
            or execution.next_retry_at > now
        ):
            return None

        # Claim: a second scheduler reading the old due time loses the version check
        await self.writer.touch(execution, next_retry_at=now + self.claim_lease)
        logger.info(
            "Running workflow retry",
            execution_id=str(execution.id),
            retry_attempt=execution.retry_count,
            workflow_type=execution.workflow_type,
        )
        return await self._redispatch(execution)

    async def retry_now(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Caller-initiated retry.

        PENDING re-attempts the first dispatch without consuming retry budget.
        RETRYING dispatches immediately instead of waiting out the backoff.

        Raises:
            DispatchError: If a PENDING execution still cannot be dispatched.
            RetryCeilingExceededError: If the execution already FAILED.
            InvalidTransitionError: For RUNNING, COMPLETED or CANCELLED executions.
        """
        match execution.status_enum:
            case ExecutionStatus.PENDING:
                return await self.dispatcher.dispatch(execution)
            case ExecutionStatus.RETRYING:
                await self.writer.touch(execution, next_retry_at=utc_now() + self.claim_lease)
                return await self._redispatch(execution)
            case ExecutionStatus.FAILED:
                raise RetryCeilingExceededError(
                    execution.id, execution.retry_count, self.max_retries
                )
            case status:
                raise InvalidTransitionError(
                    execution.id, status.value, ExecutionStatus.RUNNING.value
                )

    async def cancel_scheduled(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Cancel a non-terminal execution and drop any pending retry timer."""
        previous_status = execution.status
        now = utc_now()
        await self.writer.transition(execution, ExecutionStatus.CANCELLED, next_retry_at=None)
        await self.bus.publish(
            ExecutionCancelled(
                execution_id=execution.id,
                tenant_id=execution.tenant_id,
                workflow_type=execution.workflow_type,
                subject_id=execution.subject_id,
                occurred_at=now,
                previous_status=previous_status,
            )
        )
        return execution

    async def _redispatch(self, execution: WorkflowExecution) -> WorkflowExecution:
        try:
            return await self.dispatcher.dispatch(execution)
        except DispatchError as e:
            if e.transient:
                return await self.handle_failure(execution, e.message)
            return await self.fail_permanently(execution, e.message)
