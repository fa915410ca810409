"""Runner callback schemas."""

from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.automation.models.enums import ExecutionStatus


class WorkflowCallbackRequest(BaseModel):
    """Completion or failure notification pushed by the runner.

    Field names follow the runner's camelCase wire format.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    execution_id: UUID = Field(alias="executionId")
    status: Literal["completed", "failed"]
    data: dict[str, Any] | None = None
    error: str | None = None
    tenant_id: UUID | None = Field(default=None, alias="tenantId")
    external_handle: str | None = Field(
        default=None,
        alias="externalHandle",
        description="Runner execution id of the attempt reporting. Stale attempts are rejected.",
    )

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v


class WorkflowCallbackAck(BaseModel):
    success: bool = True
    execution_id: UUID
    status: ExecutionStatus
    applied: bool = Field(description="False when the callback was a duplicate no-op.")
