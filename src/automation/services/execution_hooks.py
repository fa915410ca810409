"""Default subscribers for execution events."""

from src.automation.core.events import (
    EventBus,
    ExecutionCancelled,
    ExecutionCompleted,
    ExecutionFailed,
    ExecutionFailedPermanently,
    ExecutionRetriesExhausted,
    event_bus,
)
from src.automation.core.logging import get_logger
from src.automation.models import WorkflowType

logger = get_logger(__name__)

COMPLETION_MESSAGES = {
    WorkflowType.PROPERTY_INGESTION: "Property ingestion workflow completed",
    WorkflowType.CONTENT_GENERATION: "Content generation workflow completed",
    WorkflowType.SOCIAL_CAMPAIGN: "Social campaign workflow completed",
    WorkflowType.EMAIL_AUTOMATION: "Email automation workflow completed",
    WorkflowType.BRAND_PROCESSING: "Brand processing workflow completed",
    WorkflowType.DATA_ENRICHMENT: "Data enrichment workflow completed",
    WorkflowType.LEAD_PROCESSING: "Lead processing workflow completed",
    WorkflowType.ANALYTICS_COLLECTION: "Analytics collection workflow completed",
}


async def log_completion(event: ExecutionCompleted) -> None:
    logger.info(
        COMPLETION_MESSAGES.get(WorkflowType(event.workflow_type), "Workflow completed"),
        execution_id=str(event.execution_id),
        tenant_id=str(event.tenant_id),
        subject_id=str(event.subject_id) if event.subject_id else None,
        duration_seconds=event.duration_seconds,
    )


async def log_failure(event: ExecutionFailed) -> None:
    logger.warning(
        "Workflow attempt failed",
        execution_id=str(event.execution_id),
        workflow_type=event.workflow_type,
        retry_count=event.retry_count,
        will_retry=event.will_retry,
        error=event.error_message,
    )


async def alert_retries_exhausted(event: ExecutionRetriesExhausted) -> None:
    logger.error(
        "Workflow failed after all retries, manual attention required",
        execution_id=str(event.execution_id),
        tenant_id=str(event.tenant_id),
        workflow_type=event.workflow_type,
        retry_count=event.retry_count,
        max_retries=event.max_retries,
        error=event.error_message,
    )


async def alert_failed_permanently(event: ExecutionFailedPermanently) -> None:
    logger.error(
        "Workflow failed permanently, manual attention required",
        execution_id=str(event.execution_id),
        tenant_id=str(event.tenant_id),
        workflow_type=event.workflow_type,
        retry_count=event.retry_count,
        error=event.error_message,
    )


async def log_cancellation(event: ExecutionCancelled) -> None:
    logger.info(
        "Workflow cancelled",
        execution_id=str(event.execution_id),
        workflow_type=event.workflow_type,
        previous_status=event.previous_status,
    )


def register_default_hooks(bus: EventBus = event_bus) -> None:
    bus.subscribe(ExecutionCompleted, log_completion)
    bus.subscribe(ExecutionFailed, log_failure)
    bus.subscribe(ExecutionRetriesExhausted, alert_retries_exhausted)
    bus.subscribe(ExecutionFailedPermanently, alert_failed_permanently)
    bus.subscribe(ExecutionCancelled, log_cancellation)
