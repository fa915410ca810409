"""Inbound runner callbacks."""

from fastapi import APIRouter

from src.automation.api.dependencies import CallbackServiceDep, WebhookAuth
from src.automation.core.logging import bind_execution_context
from src.automation.schemas import WorkflowCallbackAck, WorkflowCallbackRequest

router = APIRouter(prefix="/webhooks", tags=["webhooks"], dependencies=[WebhookAuth])


@router.post(
    "/workflow-callback",
    response_model=WorkflowCallbackAck,
    responses={
        200: {
            "description": "Callback applied, or acknowledged as a duplicate",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "execution_id": "0b6c3f5e-7c1a-4a8e-9f0e-2a5d6c1b9e11",
                        "status": "completed",
                        "applied": True,
                    }
                }
            },
        },
        401: {"description": "Invalid or missing webhook secret"},
        404: {"description": "Execution not found"},
        409: {"description": "Callback contradicts the execution's state"},
    },
)
async def workflow_callback(
    request: WorkflowCallbackRequest,
    service: CallbackServiceDep,
) -> WorkflowCallbackAck:
    """
    Completion or failure notification from the workflow runner.

    Safe to deliver more than once.
    """
    bind_execution_context(request.execution_id)
    result = await service.handle_callback(
        request.execution_id,
        request.status,
        data=request.data,
        error=request.error,
        tenant_id=request.tenant_id,
        external_handle=request.external_handle,
    )
    return WorkflowCallbackAck(
        execution_id=result.execution.id,
        status=result.execution.status_enum,
        applied=result.applied,
    )
