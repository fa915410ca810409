"""Execution analytics schemas."""

from pydantic import BaseModel, Field


class OutcomeCounts(BaseModel):
    total: int = 0
    completed: int = 0
    failed: int = 0


class ExecutionAnalytics(BaseModel):
    """Per-tenant execution statistics over a time range."""

    time_range: str
    total: int
    by_status: dict[str, int]
    by_type: dict[str, OutcomeCounts]
    by_day: dict[str, OutcomeCounts]
    success_rate: float = Field(description="Completed / (completed + failed), in percent.")
    avg_duration_seconds: float | None = Field(
        description="Mean completed_at - started_at over completed executions."
    )
