"""Trigger dispatcher: hands an execution to the workflow runner."""

from src.automation.core.exceptions import (
    ConcurrentModificationError,
    DispatchError,
    InvalidTransitionError,
)
from src.automation.core.logging import get_logger
from src.automation.core.metrics import DISPATCH_FAILURES
from src.automation.models import ExecutionStatus, WorkflowExecution
from src.automation.models.base import utc_now
from src.automation.repositories import WorkflowExecutionRepository
from src.automation.runner import WorkflowRunnerClient
from src.automation.services.transitions import ExecutionWriter
from src.automation.services.workflow_catalog import build_runner_payload

logger = get_logger(__name__)

DISPATCHABLE_STATUSES = frozenset({ExecutionStatus.PENDING, ExecutionStatus.RETRYING})


class DispatchService:
    """Sends one dispatch attempt. Never retries on its own."""

    def __init__(self, repo: WorkflowExecutionRepository, runner: WorkflowRunnerClient):
        self.repo = repo
        self.runner = runner
        self.writer = ExecutionWriter(repo)

    async def dispatch(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Trigger the runner and move the execution to RUNNING.

        On failure the record is left untouched and the error propagates;
        what happens next is the caller's decision.

        Raises:
            DispatchError: If the runner could not take the workflow.
            InvalidTransitionError: If the execution is not PENDING or RETRYING.
            ConcurrentModificationError: If the record changed while the runner
                was being called. The runner handle is abandoned.
        """
        if execution.status_enum not in DISPATCHABLE_STATUSES:
            raise InvalidTransitionError(
                execution.id, execution.status, ExecutionStatus.RUNNING.value
            )

        workflow_type = execution.workflow_type_enum
        payload = build_runner_payload(execution)

        try:
            handle = await self.runner.trigger(workflow_type.webhook_path, payload)
        except DispatchError as e:
            e.execution_id = execution.id
            DISPATCH_FAILURES.labels(
                workflow_type=workflow_type.value, transient=str(e.transient).lower()
            ).inc()
            logger.warning(
                "Workflow dispatch failed",
                execution_id=str(execution.id),
                workflow_type=workflow_type.value,
                transient=e.transient,
                upstream_status=e.upstream_status,
                error=e.message,
            )
            raise

        try:
            return await self.writer.transition(
                execution,
                ExecutionStatus.RUNNING,
                external_handle=handle,
                started_at=utc_now(),
                next_retry_at=None,
                last_polled_at=None,
            )
        except ConcurrentModificationError:
            logger.warning(
                "Execution changed during dispatch, abandoning runner handle",
                execution_id=str(execution.id),
                external_handle=handle,
            )
            raise
