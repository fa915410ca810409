"""Engine facade: start, inspect, retry and cancel workflow executions."""

from typing import Any
from uuid import UUID

from src.automation.core.exceptions import (
    ConcurrentModificationError,
    ExecutionNotFoundError,
    InvalidTransitionError,
)
from src.automation.core.logging import get_logger
from src.automation.core.sanitize import sanitize_payload
from src.automation.models import ExecutionStatus, WorkflowExecution, WorkflowType
from src.automation.repositories import WorkflowExecutionRepository
from src.automation.services.dispatch_service import DispatchService
from src.automation.services.retry_service import RetryService

logger = get_logger(__name__)


class ExecutionService:
    """Entry point used by the API and by other services in the platform."""

    max_attempts = 3

    def __init__(
        self,
        repo: WorkflowExecutionRepository,
        dispatcher: DispatchService,
        retry_service: RetryService,
    ):
        self.repo = repo
        self.dispatcher = dispatcher
        self.retry_service = retry_service

    async def start(
        self,
        workflow_type: WorkflowType | str,
        tenant_id: UUID,
        subject_id: UUID | None = None,
        payload: dict[str, Any] | None = None,
    ) -> WorkflowExecution:
        """Create a PENDING execution and dispatch it.

        The sanitized payload is stored as the execution's input snapshot;
        every later attempt re-sends that snapshot.

        Raises:
            UnknownWorkflowTypeError: If workflow_type is not in the catalog.
            DispatchError: If the first dispatch fails. The PENDING record is
                kept and its id is attached to the error.
        """
        workflow_type = WorkflowType.parse(workflow_type)
        execution = await self.repo.create(
            workflow_type=workflow_type.value,
            tenant_id=tenant_id,
            subject_id=subject_id,
            input_data=sanitize_payload(payload or {}),
        )
        logger.info(
            "Workflow execution created",
            execution_id=str(execution.id),
            workflow_type=workflow_type.value,
            subject_id=str(subject_id) if subject_id else None,
        )
        return await self.dispatcher.dispatch(execution)

    async def get(self, execution_id: UUID, tenant_id: UUID) -> WorkflowExecution:
        execution = await self.repo.get_for_tenant(execution_id, tenant_id)
        if execution is None:
            raise ExecutionNotFoundError(execution_id)
        return execution

    async def list(
        self,
        tenant_id: UUID,
        status: ExecutionStatus | None = None,
        workflow_type: WorkflowType | None = None,
        subject_id: UUID | None = None,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[WorkflowExecution], str | None, bool]:
        return await self.repo.list_by_tenant(
            tenant_id,
            status=status.value if status else None,
            workflow_type=workflow_type.value if workflow_type else None,
            subject_id=subject_id,
            cursor=cursor,
            limit=limit,
        )

    async def retry(self, execution_id: UUID, tenant_id: UUID) -> WorkflowExecution:
        execution = await self.get(execution_id, tenant_id)
        return await self.retry_service.retry_now(execution)

    async def cancel(self, execution_id: UUID, tenant_id: UUID) -> WorkflowExecution:
        """Cancel a non-terminal execution. Cancelling twice is a no-op.

        Raises:
            InvalidTransitionError: If the execution already COMPLETED or FAILED.
        """
        execution: WorkflowExecution | None = await self.get(execution_id, tenant_id)
        for attempt in range(1, self.max_attempts + 1):
            if execution is None:
                raise ExecutionNotFoundError(execution_id)
            if execution.status_enum is ExecutionStatus.CANCELLED:
                return execution
            if execution.status_enum.is_terminal:
                raise InvalidTransitionError(
                    execution.id, execution.status, ExecutionStatus.CANCELLED.value
                )
            try:
                return await self.retry_service.cancel_scheduled(execution)
            except ConcurrentModificationError:
                if attempt == self.max_attempts:
                    raise
                logger.info(
                    "Execution changed while cancelling, re-evaluating",
                    execution_id=str(execution_id),
                    attempt=attempt,
                )
                execution = await self.repo.reload(execution_id)
        raise AssertionError("unreachable")
