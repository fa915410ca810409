"""Tests for the analytics aggregator."""

from datetime import datetime, timedelta

import pytest

from src.automation.models import ExecutionStatus
from src.automation.services.analytics_service import parse_time_range, summarize_executions
from tests.factories import WorkflowExecutionFactory, utc_now

pytestmark = pytest.mark.unit


class TestParseTimeRange:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("30d", timedelta(days=30)),
            ("7d", timedelta(days=7)),
            ("24h", timedelta(hours=24)),
            ("3650d", timedelta(days=3650)),
            ("87600h", timedelta(hours=87600)),
            (" 1h ", timedelta(hours=1)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_time_range(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["", "30", "d", "0d", "-1d", "2w", "1.5d", "1000000d", "3651d", "87601h", "9" * 30 + "d"],
    )
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_time_range(value)


class TestSummarize:
    def test_empty(self):
        summary = summarize_executions([], "30d")

        assert summary.total == 0
        assert summary.success_rate == 0.0
        assert summary.avg_duration_seconds is None
        assert set(summary.by_status) == {status.value for status in ExecutionStatus}
        assert all(count == 0 for count in summary.by_status.values())

    def test_counts_and_rates(self):
        day = datetime(2026, 3, 2, 12, 0)
        executions = [
            WorkflowExecutionFactory.completed(
                duration=timedelta(seconds=10), created_at=day, workflow_type="lead_processing"
            ),
            WorkflowExecutionFactory.completed(
                duration=timedelta(seconds=20), created_at=day, workflow_type="lead_processing"
            ),
            WorkflowExecutionFactory.failed(created_at=day - timedelta(days=1)),
            WorkflowExecutionFactory.build(created_at=day),
        ]

        summary = summarize_executions(executions, "7d")

        assert summary.total == 4
        assert summary.by_status["completed"] == 2
        assert summary.by_status["failed"] == 1
        assert summary.by_status["pending"] == 1
        assert summary.success_rate == 66.7
        assert summary.avg_duration_seconds == 15.0
        assert summary.by_type["lead_processing"].completed == 2
        assert summary.by_type["content_generation"].total == 2
        assert summary.by_type["content_generation"].failed == 1
        assert list(summary.by_day) == ["2026-03-01", "2026-03-02"]
        assert summary.by_day["2026-03-02"].total == 3

    def test_unfinished_do_not_affect_success_rate(self):
        executions = [
            WorkflowExecutionFactory.completed(),
            WorkflowExecutionFactory.running(),
            WorkflowExecutionFactory.retrying(),
        ]

        assert summarize_executions(executions, "30d").success_rate == 100.0


class TestAnalyticsService:
    async def test_scoped_to_tenant_and_range(self, repo, services, tenant_id):
        now = utc_now()
        repo.insert(WorkflowExecutionFactory.completed(tenant_id=tenant_id))
        repo.insert(
            WorkflowExecutionFactory.failed(
                tenant_id=tenant_id, created_at=now - timedelta(days=40)
            )
        )
        repo.insert(WorkflowExecutionFactory.completed())

        summary = await services.analytics.summarize(tenant_id, "30d", now=now)

        assert summary.total == 1
        assert summary.success_rate == 100.0
        assert summary.time_range == "30d"

    async def test_is_read_only(self, repo, services, tenant_id):
        repo.insert(WorkflowExecutionFactory.running(tenant_id=tenant_id))

        await services.analytics.summarize(tenant_id)

        assert repo.writes == 0
