"""Tests for the status monitor."""

from datetime import timedelta
from uuid import uuid4

import pytest

from src.automation.core.events import ExecutionCompleted
from src.automation.core.exceptions import ExecutionNotFoundError
from src.automation.models import ExecutionStatus
from tests.factories import WorkflowExecutionFactory, utc_now

pytestmark = pytest.mark.unit

PAST_GRACE = timedelta(minutes=10)


class TestFindStale:
    async def test_respects_grace_period(self, repo, services):
        stale = repo.insert(WorkflowExecutionFactory.running(started_ago=PAST_GRACE))
        repo.insert(WorkflowExecutionFactory.running(started_ago=timedelta(seconds=30)))

        found = await services.monitor.find_stale()

        assert [e.id for e in found] == [stale.id]

    async def test_skips_recently_polled(self, repo, services):
        repo.insert(
            WorkflowExecutionFactory.running(
                started_ago=PAST_GRACE, last_polled_at=utc_now() - timedelta(seconds=10)
            )
        )
        polled_long_ago = repo.insert(
            WorkflowExecutionFactory.running(
                started_ago=PAST_GRACE, last_polled_at=utc_now() - timedelta(minutes=5)
            )
        )

        found = await services.monitor.find_stale()

        assert [e.id for e in found] == [polled_long_ago.id]

    async def test_ignores_other_statuses(self, repo, services):
        repo.insert(WorkflowExecutionFactory.retrying())
        repo.insert(WorkflowExecutionFactory.completed())

        assert await services.monitor.find_stale() == []


class TestPoll:
    async def test_finished_success_completes_exactly_once(self, repo, services, bus, fake_runner):
        completions = []

        async def record(event):
            completions.append(event)

        bus.subscribe(ExecutionCompleted, record)
        execution = repo.insert(WorkflowExecutionFactory.running(started_ago=PAST_GRACE))
        fake_runner.report("run-1", finished=True, success=True, data={"posts": 3})

        for stale in await services.monitor.find_stale():
            await services.monitor.poll(stale)
        for stale in await services.monitor.find_stale():
            await services.monitor.poll(stale)

        stored = repo.stored(execution.id)
        assert stored.status == ExecutionStatus.COMPLETED.value
        assert stored.output_data == {"posts": 3}
        assert len(completions) == 1
        assert fake_runner.polls == ["run-1"]

    async def test_finished_success_without_data_stores_empty_output(
        self, repo, services, fake_runner
    ):
        execution = repo.insert(WorkflowExecutionFactory.running(started_ago=PAST_GRACE))
        fake_runner.report("run-1", finished=True, success=True, data=None)

        await services.monitor.poll(execution)

        stored = repo.stored(execution.id)
        assert stored.status == ExecutionStatus.COMPLETED.value
        assert stored.output_data == {}

    async def test_late_callback_after_poll_is_duplicate(self, repo, services, fake_runner):
        execution = repo.insert(WorkflowExecutionFactory.running(started_ago=PAST_GRACE))
        fake_runner.report("run-1", finished=True, success=True)

        await services.monitor.poll(execution)
        result = await services.callbacks.handle_callback(execution.id, "completed")

        assert result.applied is False

    async def test_finished_failure_goes_to_retry(self, repo, services, fake_runner):
        execution = repo.insert(WorkflowExecutionFactory.running(started_ago=PAST_GRACE))
        fake_runner.report("run-1", finished=True, success=False, error="Step 3 failed")

        await services.monitor.poll(execution)

        stored = repo.stored(execution.id)
        assert stored.status == ExecutionStatus.RETRYING.value
        assert stored.retry_count == 1
        assert stored.error_message == "Step 3 failed"

    async def test_unfinished_touches_poll_time(self, repo, services, fake_runner):
        execution = repo.insert(WorkflowExecutionFactory.running(started_ago=PAST_GRACE))
        fake_runner.report("run-1", finished=False, data={"step": "generate_images"})
        now = utc_now()

        await services.monitor.poll(execution, now=now)

        stored = repo.stored(execution.id)
        assert stored.status == ExecutionStatus.RUNNING.value
        assert stored.last_polled_at == now
        assert stored.runner_data == {"step": "generate_images"}

    async def test_poll_error_counts_as_failure(self, repo, services, fake_runner):
        execution = repo.insert(WorkflowExecutionFactory.running(started_ago=PAST_GRACE))
        fake_runner.statuses["run-1"] = 500

        await services.monitor.poll(execution)

        stored = repo.stored(execution.id)
        assert stored.status == ExecutionStatus.RETRYING.value
        assert "run-1" in stored.error_message

    async def test_non_running_is_left_alone(self, repo, services, fake_runner):
        execution = repo.insert(WorkflowExecutionFactory.retrying())

        await services.monitor.poll(execution)

        assert fake_runner.polls == []
        assert repo.writes == 0


class TestSync:
    async def test_polls_regardless_of_grace(self, repo, services, fake_runner, tenant_id):
        execution = repo.insert(WorkflowExecutionFactory.running(tenant_id=tenant_id))
        fake_runner.report("run-1", finished=True, success=True)

        synced = await services.monitor.sync(execution.id, tenant_id)

        assert synced.status == ExecutionStatus.COMPLETED.value

    async def test_other_tenant_not_found(self, repo, services):
        execution = repo.insert(WorkflowExecutionFactory.running())

        with pytest.raises(ExecutionNotFoundError):
            await services.monitor.sync(execution.id, uuid4())
