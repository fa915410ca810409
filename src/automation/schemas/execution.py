"""Workflow execution schemas for API requests and responses."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.automation.models.enums import ExecutionStatus, WorkflowType


class ExecutionStartRequest(BaseModel):
    """Ask the engine to start an automation for the calling tenant."""

    workflow_type: WorkflowType
    subject_id: UUID | None = Field(
        default=None,
        description="Domain object the workflow acts on, e.g. a property id.",
    )
    payload: dict[str, Any] = Field(default_factory=dict)

    @field_validator("workflow_type", mode="before")
    @classmethod
    def accept_kebab_case(cls, v: object) -> object:
        return v.replace("-", "_") if isinstance(v, str) else v


class ExecutionRead(BaseModel):
    """Execution snapshot. May be stale, never partially written."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workflow_type: WorkflowType
    tenant_id: UUID
    subject_id: UUID | None
    status: ExecutionStatus
    external_handle: str | None
    retry_count: int
    error_message: str | None
    input_data: dict[str, Any] | None
    output_data: dict[str, Any] | None
    next_retry_at: datetime | None
    created_at: datetime
    started_at: datetime | None
    completed_at: datetime | None
    failed_at: datetime | None
    last_retry_at: datetime | None
    updated_at: datetime
