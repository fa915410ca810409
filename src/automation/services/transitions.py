"""Execution state machine and the single write path for status changes."""

from typing import Any

from src.automation.core.exceptions import InvalidTransitionError
from src.automation.core.logging import get_logger
from src.automation.core.metrics import EXECUTION_TRANSITIONS
from src.automation.models import ExecutionStatus, WorkflowExecution
from src.automation.repositories import WorkflowExecutionRepository

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[ExecutionStatus, frozenset[ExecutionStatus]] = {
    ExecutionStatus.PENDING: frozenset({ExecutionStatus.RUNNING, ExecutionStatus.CANCELLED}),
    ExecutionStatus.RUNNING: frozenset(
        {
            ExecutionStatus.COMPLETED,
            ExecutionStatus.RETRYING,
            ExecutionStatus.FAILED,
            ExecutionStatus.CANCELLED,
        }
    ),
    # RETRYING -> RETRYING when a re-dispatch itself fails transiently
    ExecutionStatus.RETRYING: frozenset(
        {
            ExecutionStatus.RUNNING,
            ExecutionStatus.RETRYING,
            ExecutionStatus.FAILED,
            ExecutionStatus.CANCELLED,
        }
    ),
    ExecutionStatus.COMPLETED: frozenset(),
    ExecutionStatus.FAILED: frozenset(),
    ExecutionStatus.CANCELLED: frozenset(),
}


def can_transition(current: ExecutionStatus, target: ExecutionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(execution: WorkflowExecution, target: ExecutionStatus) -> None:
    """Raise InvalidTransitionError unless execution may move to target."""
    current = execution.status_enum
    if not can_transition(current, target):
        raise InvalidTransitionError(execution.id, current.value, target.value)


def retry_delay(retry_number: int, base_seconds: float, multiplier: float) -> float:
    """Backoff before the given retry (1-based): base * multiplier^(n-1)."""
    if retry_number < 1:
        raise ValueError("retry_number starts at 1")
    return base_seconds * multiplier ** (retry_number - 1)


class ExecutionWriter:
    """Version-checked writes with audit logging and transition metrics.

    Every status change goes through transition(); field-only updates that
    must not race a status change (retry claims, poll bookkeeping) go
    through touch().
    """

    def __init__(self, repo: WorkflowExecutionRepository):
        self.repo = repo

    async def transition(
        self,
        execution: WorkflowExecution,
        target: ExecutionStatus,
        **changes: Any,
    ) -> WorkflowExecution:
        """Move execution to target.

        Raises:
            InvalidTransitionError: If the state machine forbids the move.
            ConcurrentModificationError: If the record changed since it was read.
        """
        from_status = execution.status
        ensure_transition(execution, target)

        await self.repo.update(execution, execution.version, status=target.value, **changes)

        EXECUTION_TRANSITIONS.labels(
            workflow_type=execution.workflow_type,
            from_status=from_status,
            to_status=target.value,
        ).inc()
        logger.info(
            "Workflow execution status changed",
            execution_id=str(execution.id),
            tenant_id=str(execution.tenant_id),
            workflow_type=execution.workflow_type,
            from_status=from_status,
            to_status=target.value,
            retry_count=execution.retry_count,
            version=execution.version,
        )
        return execution

    async def touch(self, execution: WorkflowExecution, **changes: Any) -> WorkflowExecution:
        """Update fields without changing status, still version-checked."""
        return await self.repo.update(execution, execution.version, **changes)
