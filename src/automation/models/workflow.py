"""Workflow execution tracking model."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Column, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.automation.models.base import utc_now
from src.automation.models.enums import ExecutionStatus, WorkflowType


class WorkflowExecution(SQLModel, table=True):
    """One requested automation, tracked across all of its dispatch attempts.

    Records are never deleted; terminal rows are kept for analytics and audit.
    """

    __tablename__ = "workflow_executions"
    __table_args__ = (
        Index("ix_workflow_executions_tenant_created", "tenant_id", "created_at"),
        Index("ix_workflow_executions_status_retry", "status", "next_retry_at"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    workflow_type: str = Field(max_length=50, index=True)  # WorkflowType value
    tenant_id: UUID = Field(index=True)
    subject_id: UUID | None = Field(default=None, index=True)  # e.g. property id

    # Sanitized snapshot of the request; retries re-dispatch from this
    input_data: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSONB, nullable=True),
    )
    output_data: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSONB, nullable=True),
    )
    runner_data: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSONB, nullable=True),
    )

    status: str = Field(default=ExecutionStatus.PENDING.value, max_length=20, index=True)
    external_handle: str | None = Field(default=None, max_length=255, index=True)
    retry_count: int = Field(default=0)
    error_message: str | None = Field(default=None, max_length=1000)

    # Optimistic concurrency: every write must name the version it read
    version: int = Field(default=1)

    # Durable retry timer
    next_retry_at: datetime | None = Field(default=None)
    last_polled_at: datetime | None = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    failed_at: datetime | None = Field(default=None)
    last_retry_at: datetime | None = Field(default=None)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def status_enum(self) -> ExecutionStatus:
        return ExecutionStatus(self.status)

    @property
    def workflow_type_enum(self) -> WorkflowType:
        return WorkflowType(self.workflow_type)

    @property
    def duration_seconds(self) -> float | None:
        """Dispatch-to-completion time, only for completed executions."""
        if (
            self.status != ExecutionStatus.COMPLETED.value
            or self.started_at is None
            or self.completed_at is None
        ):
            return None
        return (self.completed_at - self.started_at).total_seconds()
