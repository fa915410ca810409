"""Workflow execution endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from src.automation.api.dependencies import (
    AnalyticsServiceDep,
    ExecutionServiceDep,
    StatusMonitorServiceDep,
    TenantId,
)
from src.automation.models import ExecutionStatus, WorkflowType
from src.automation.schemas import (
    ExecutionAnalytics,
    ExecutionRead,
    ExecutionStartRequest,
    PaginatedResponse,
)

router = APIRouter(prefix="/executions", tags=["executions"])

_EXECUTION_EXAMPLE = {
    "id": "0b6c3f5e-7c1a-4a8e-9f0e-2a5d6c1b9e11",
    "workflow_type": "content_generation",
    "tenant_id": "550e8400-e29b-41d4-a716-446655440000",
    "subject_id": "7d9f1c2a-3b4e-4f5a-8b6c-9d0e1f2a3b4c",
    "status": "running",
    "external_handle": "4821",
    "retry_count": 0,
    "error_message": None,
}


@router.post(
    "",
    response_model=ExecutionRead,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        202: {
            "description": "Workflow dispatched to the runner",
            "content": {"application/json": {"example": _EXECUTION_EXAMPLE}},
        },
        422: {"description": "Unknown workflow type or invalid payload"},
        502: {
            "description": "Runner did not accept the workflow; the execution stays pending",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "Runner returned 503 on /webhook/content-generation",
                        "request_id": "a1b2c3",
                        "execution_id": "0b6c3f5e-7c1a-4a8e-9f0e-2a5d6c1b9e11",
                    }
                }
            },
        },
    },
)
async def start_execution(
    request: ExecutionStartRequest,
    tenant_id: TenantId,
    service: ExecutionServiceDep,
) -> ExecutionRead:
    """
    Start a workflow for the calling tenant.

    Returns as soon as the runner accepted the workflow. Completion arrives
    later through the runner callback or the status monitor.
    """
    execution = await service.start(
        request.workflow_type,
        tenant_id,
        subject_id=request.subject_id,
        payload=request.payload,
    )
    return ExecutionRead.model_validate(execution)


@router.get("", response_model=PaginatedResponse[ExecutionRead])
async def list_executions(
    tenant_id: TenantId,
    service: ExecutionServiceDep,
    status_filter: Annotated[ExecutionStatus | None, Query(alias="status")] = None,
    workflow_type: WorkflowType | None = None,
    subject_id: UUID | None = None,
    cursor: str | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> PaginatedResponse[ExecutionRead]:
    """List the tenant's executions, newest first."""
    items, next_cursor, has_more = await service.list(
        tenant_id,
        status=status_filter,
        workflow_type=workflow_type,
        subject_id=subject_id,
        cursor=cursor,
        limit=limit,
    )
    return PaginatedResponse[ExecutionRead](
        items=[ExecutionRead.model_validate(item) for item in items],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.get(
    "/analytics",
    response_model=ExecutionAnalytics,
    responses={400: {"description": "Invalid time range"}},
)
async def get_execution_analytics(
    tenant_id: TenantId,
    service: AnalyticsServiceDep,
    time_range: Annotated[str, Query(alias="range", examples=["30d", "24h"])] = "30d",
) -> ExecutionAnalytics:
    """Execution counts, success rate and average duration over a time range."""
    try:
        return await service.summarize(tenant_id, time_range)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e


@router.get(
    "/{execution_id}",
    response_model=ExecutionRead,
    responses={404: {"description": "Execution not found"}},
)
async def get_execution(
    execution_id: UUID,
    tenant_id: TenantId,
    service: ExecutionServiceDep,
) -> ExecutionRead:
    execution = await service.get(execution_id, tenant_id)
    return ExecutionRead.model_validate(execution)


@router.post(
    "/{execution_id}/retry",
    response_model=ExecutionRead,
    responses={
        404: {"description": "Execution not found"},
        409: {"description": "Execution is running, finished or out of retries"},
        502: {"description": "Runner did not accept the workflow"},
    },
)
async def retry_execution(
    execution_id: UUID,
    tenant_id: TenantId,
    service: ExecutionServiceDep,
) -> ExecutionRead:
    """
    Retry now.

    Pending executions re-attempt their first dispatch. Retrying executions
    are dispatched without waiting for the backoff. Failed executions are
    terminal and need a new execution.
    """
    execution = await service.retry(execution_id, tenant_id)
    return ExecutionRead.model_validate(execution)


@router.post(
    "/{execution_id}/cancel",
    response_model=ExecutionRead,
    responses={
        404: {"description": "Execution not found"},
        409: {"description": "Execution already completed or failed"},
    },
)
async def cancel_execution(
    execution_id: UUID,
    tenant_id: TenantId,
    service: ExecutionServiceDep,
) -> ExecutionRead:
    """Cancel an execution and any scheduled retry. Cancelling twice is a no-op."""
    execution = await service.cancel(execution_id, tenant_id)
    return ExecutionRead.model_validate(execution)


@router.post(
    "/{execution_id}/sync",
    response_model=ExecutionRead,
    responses={
        404: {"description": "Execution not found"},
        502: {"description": "Runner status could not be read"},
    },
)
async def sync_execution(
    execution_id: UUID,
    tenant_id: TenantId,
    monitor: StatusMonitorServiceDep,
) -> ExecutionRead:
    """Poll the runner for this execution now instead of waiting for a callback."""
    execution = await monitor.sync(execution_id, tenant_id)
    return ExecutionRead.model_validate(execution)
