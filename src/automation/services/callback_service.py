"""Callback handler: applies runner completion and failure notifications."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from src.automation.core.events import EventBus, ExecutionCompleted, event_bus
from src.automation.core.exceptions import (
    CallbackConflictError,
    ConcurrentModificationError,
    ExecutionNotFoundError,
)
from src.automation.core.logging import get_logger
from src.automation.core.metrics import EXECUTION_DURATION
from src.automation.core.sanitize import sanitize_payload
from src.automation.models import ExecutionStatus, WorkflowExecution
from src.automation.models.base import utc_now
from src.automation.repositories import WorkflowExecutionRepository
from src.automation.services.retry_service import RetryService
from src.automation.services.transitions import ExecutionWriter

logger = get_logger(__name__)

OUTCOME_STATUSES = frozenset({ExecutionStatus.COMPLETED, ExecutionStatus.FAILED})


@dataclass(frozen=True)
class CallbackResult:
    execution: WorkflowExecution
    applied: bool


class CallbackService:
    """Applies completion and failure outcomes to RUNNING executions.

    Also the landing point for polled outcomes, so a pushed callback and a
    polled result go through exactly the same transition logic.
    """

    max_attempts = 3

    def __init__(
        self,
        repo: WorkflowExecutionRepository,
        retry_service: RetryService,
        bus: EventBus = event_bus,
    ):
        self.repo = repo
        self.retry_service = retry_service
        self.bus = bus
        self.writer = ExecutionWriter(repo)

    async def handle_callback(
        self,
        execution_id: UUID,
        status: ExecutionStatus | str,
        data: dict[str, Any] | None = None,
        error: str | None = None,
        tenant_id: UUID | None = None,
        external_handle: str | None = None,
    ) -> CallbackResult:
        """Apply a runner callback.

        Repeating a callback is safe: a record already in the reported
        terminal state is acknowledged without being touched.

        Raises:
            ExecutionNotFoundError: Unknown id, or tenant_id does not own it.
            CallbackConflictError: The callback contradicts the record.
        """
        target = ExecutionStatus(status)
        if target not in OUTCOME_STATUSES:
            raise CallbackConflictError(
                f"Callback status must be completed or failed, got {target.value}",
                execution_id,
            )

        for attempt in range(1, self.max_attempts + 1):
            execution = await self.repo.reload(execution_id)
            if execution is None or (tenant_id is not None and execution.tenant_id != tenant_id):
                raise ExecutionNotFoundError(execution_id)
            try:
                return await self._apply(execution, target, data, error, external_handle)
            except ConcurrentModificationError:
                if attempt == self.max_attempts:
                    raise
                logger.info(
                    "Execution changed while applying callback, re-evaluating",
                    execution_id=str(execution_id),
                    attempt=attempt,
                )
        raise AssertionError("unreachable")

    async def _apply(
        self,
        execution: WorkflowExecution,
        target: ExecutionStatus,
        data: dict[str, Any] | None,
        error: str | None,
        external_handle: str | None,
    ) -> CallbackResult:
        current = execution.status_enum

        if current.is_terminal:
            if current is target:
                logger.info(
                    "Duplicate callback ignored",
                    execution_id=str(execution.id),
                    status=target.value,
                )
                return CallbackResult(execution, applied=False)
            logger.warning(
                "Callback conflicts with terminal execution",
                execution_id=str(execution.id),
                current_status=current.value,
                callback_status=target.value,
            )
            raise CallbackConflictError(
                f"Execution {execution.id} is already {current.value}", execution.id
            )

        if external_handle is not None and external_handle != execution.external_handle:
            logger.warning(
                "Callback from a superseded runner attempt",
                execution_id=str(execution.id),
                callback_handle=external_handle,
                current_handle=execution.external_handle,
            )
            raise CallbackConflictError(
                f"Callback handle {external_handle} is not the current attempt of "
                f"execution {execution.id}",
                execution.id,
            )

        # The failure of the current attempt was already recorded
        if current is ExecutionStatus.RETRYING and target is ExecutionStatus.FAILED:
            logger.info("Duplicate failure callback ignored", execution_id=str(execution.id))
            return CallbackResult(execution, applied=False)

        if current is not ExecutionStatus.RUNNING:
            raise CallbackConflictError(
                f"Execution {execution.id} is {current.value} and not awaiting a callback",
                execution.id,
            )

        if target is ExecutionStatus.COMPLETED:
            return CallbackResult(await self.complete(execution, data), applied=True)

        failed = await self.retry_service.handle_failure(execution, error)
        return CallbackResult(failed, applied=True)

    async def complete(
        self,
        execution: WorkflowExecution,
        output: dict[str, Any] | None,
        now: datetime | None = None,
    ) -> WorkflowExecution:
        """RUNNING -> COMPLETED, then run completion subscribers.

        A completion without a result is stored with an empty output_data.
        """
        now = now or utc_now()
        await self.writer.transition(
            execution,
            ExecutionStatus.COMPLETED,
            output_data=sanitize_payload(output if output is not None else {}),
            completed_at=now,
        )

        duration = execution.duration_seconds
        if duration is not None:
            EXECUTION_DURATION.labels(workflow_type=execution.workflow_type).observe(duration)

        await self.bus.publish(
            ExecutionCompleted(
                execution_id=execution.id,
                tenant_id=execution.tenant_id,
                workflow_type=execution.workflow_type,
                subject_id=execution.subject_id,
                occurred_at=now,
                output_data=execution.output_data,
                duration_seconds=duration,
            )
        )
        return execution
