"""Analytics aggregator: per-tenant execution statistics."""

import re
from collections import defaultdict
from datetime import datetime, timedelta
from uuid import UUID

from src.automation.models import ExecutionStatus, WorkflowExecution
from src.automation.models.base import utc_now
from src.automation.repositories import WorkflowExecutionRepository
from src.automation.schemas.analytics import ExecutionAnalytics, OutcomeCounts

DEFAULT_TIME_RANGE = "30d"
MAX_TIME_RANGE = timedelta(days=3650)
_TIME_RANGE_PATTERN = re.compile(r"^(\d+)([dh])$")


def parse_time_range(time_range: str) -> timedelta:
    """Parse ``<n>d`` or ``<n>h`` into a timedelta.

    Raises:
        ValueError: For anything else, a zero-length range, or one longer
            than MAX_TIME_RANGE.
    """
    match = _TIME_RANGE_PATTERN.match(time_range.strip())
    if not match or int(match.group(1)) == 0:
        raise ValueError(f"Invalid time range '{time_range}', expected e.g. '30d' or '24h'")
    amount = int(match.group(1))
    limit = MAX_TIME_RANGE.days if match.group(2) == "d" else MAX_TIME_RANGE.days * 24
    if amount > limit:
        raise ValueError(f"Time range '{time_range}' exceeds {MAX_TIME_RANGE.days} days")
    return timedelta(days=amount) if match.group(2) == "d" else timedelta(hours=amount)


def _count_outcome(counts: OutcomeCounts, status: str) -> None:
    counts.total += 1
    if status == ExecutionStatus.COMPLETED.value:
        counts.completed += 1
    elif status == ExecutionStatus.FAILED.value:
        counts.failed += 1


def summarize_executions(
    executions: list[WorkflowExecution], time_range: str
) -> ExecutionAnalytics:
    """Aggregate a list of executions. Pure function over the records."""
    by_status = {status.value: 0 for status in ExecutionStatus}
    by_type: dict[str, OutcomeCounts] = defaultdict(OutcomeCounts)
    by_day: dict[str, OutcomeCounts] = defaultdict(OutcomeCounts)
    durations: list[float] = []

    for execution in executions:
        by_status[execution.status] = by_status.get(execution.status, 0) + 1
        _count_outcome(by_type[execution.workflow_type], execution.status)
        _count_outcome(by_day[execution.created_at.date().isoformat()], execution.status)
        if execution.duration_seconds is not None:
            durations.append(execution.duration_seconds)

    completed = by_status[ExecutionStatus.COMPLETED.value]
    failed = by_status[ExecutionStatus.FAILED.value]
    finished = completed + failed
    success_rate = round(completed / finished * 100, 1) if finished else 0.0

    return ExecutionAnalytics(
        time_range=time_range,
        total=len(executions),
        by_status=by_status,
        by_type=dict(by_type),
        by_day=dict(sorted(by_day.items())),
        success_rate=success_rate,
        avg_duration_seconds=round(sum(durations) / len(durations), 3) if durations else None,
    )


class AnalyticsService:
    """Read-only: never mutates execution records."""

    def __init__(self, repo: WorkflowExecutionRepository):
        self.repo = repo

    async def summarize(
        self,
        tenant_id: UUID,
        time_range: str = DEFAULT_TIME_RANGE,
        now: datetime | None = None,
    ) -> ExecutionAnalytics:
        since = (now or utc_now()) - parse_time_range(time_range)
        executions = await self.repo.list_in_range(tenant_id, since)
        return summarize_executions(executions, time_range)
