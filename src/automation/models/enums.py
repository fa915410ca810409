"""Shared enums for models."""

from enum import Enum

from src.automation.core.exceptions import UnknownWorkflowTypeError


class WorkflowType(str, Enum):
    """Closed set of automations the engine can hand to the runner."""

    PROPERTY_INGESTION = "property_ingestion"
    CONTENT_GENERATION = "content_generation"
    SOCIAL_CAMPAIGN = "social_campaign"
    EMAIL_AUTOMATION = "email_automation"
    BRAND_PROCESSING = "brand_processing"
    DATA_ENRICHMENT = "data_enrichment"
    LEAD_PROCESSING = "lead_processing"
    ANALYTICS_COLLECTION = "analytics_collection"

    @classmethod
    def parse(cls, value: "WorkflowType | str") -> "WorkflowType":
        """Parse a workflow type name (snake or kebab case).

        Raises:
            UnknownWorkflowTypeError: If the name is not in the catalog.
        """
        try:
            return cls(value if isinstance(value, cls) else str(value).replace("-", "_"))
        except ValueError as e:
            raise UnknownWorkflowTypeError(str(value)) from e

    @property
    def webhook_path(self) -> str:
        """Runner webhook segment, e.g. ``content-generation``."""
        return self.value.replace("_", "-")


class ExecutionStatus(str, Enum):
    """Workflow execution lifecycle status."""

    PENDING = "pending"
    RUNNING = "running"
    RETRYING = "retrying"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {ExecutionStatus.COMPLETED, ExecutionStatus.FAILED, ExecutionStatus.CANCELLED}
)
