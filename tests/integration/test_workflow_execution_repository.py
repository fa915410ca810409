"""Execution store tests against PostgreSQL."""

from datetime import timedelta
from uuid import uuid4

import pytest

from src.automation.core.exceptions import ConcurrentModificationError
from src.automation.models import ExecutionStatus, WorkflowExecution
from src.automation.repositories import WorkflowExecutionRepository
from tests.factories import WorkflowExecutionFactory, utc_now

pytestmark = pytest.mark.integration


async def insert(
    repo: WorkflowExecutionRepository, execution: WorkflowExecution
) -> WorkflowExecution:
    repo.add(execution)
    await repo.session.commit()
    return execution


class TestCreateAndRead:
    async def test_create_initializes_pending(self, execution_repo, test_tenant):
        execution = await execution_repo.create(
            workflow_type="content_generation",
            tenant_id=test_tenant,
            subject_id=None,
            input_data={"contentTypes": ["ai_description"]},
        )

        assert execution.status == ExecutionStatus.PENDING.value
        assert execution.retry_count == 0
        assert execution.version == 1
        reloaded = await execution_repo.reload(execution.id)
        assert reloaded.input_data == {"contentTypes": ["ai_description"]}

    async def test_get_for_tenant_scopes_reads(self, execution_repo, test_tenant):
        execution = await insert(
            execution_repo, WorkflowExecutionFactory.build(tenant_id=test_tenant)
        )

        assert await execution_repo.get_for_tenant(execution.id, test_tenant) is not None
        assert await execution_repo.get_for_tenant(execution.id, uuid4()) is None


class TestVersionedUpdate:
    async def test_update_bumps_version(self, execution_repo, test_tenant):
        execution = await insert(
            execution_repo, WorkflowExecutionFactory.build(tenant_id=test_tenant)
        )

        await execution_repo.update(
            execution, 1, status=ExecutionStatus.RUNNING.value, external_handle="run-1"
        )

        reloaded = await execution_repo.reload(execution.id)
        assert reloaded.version == 2
        assert reloaded.status == ExecutionStatus.RUNNING.value
        assert reloaded.external_handle == "run-1"

    async def test_stale_version_is_rejected(self, execution_repo, test_tenant):
        execution = await insert(
            execution_repo, WorkflowExecutionFactory.build(tenant_id=test_tenant)
        )
        await execution_repo.update(execution, 1, status=ExecutionStatus.CANCELLED.value)

        with pytest.raises(ConcurrentModificationError):
            await execution_repo.update(execution, 1, status=ExecutionStatus.RUNNING.value)

        reloaded = await execution_repo.reload(execution.id)
        assert reloaded.status == ExecutionStatus.CANCELLED.value
        assert reloaded.version == 2


class TestSchedulerQueries:
    async def test_list_due_retries(self, execution_repo, test_tenant):
        now = utc_now()
        due = await insert(
            execution_repo,
            WorkflowExecutionFactory.retrying(tenant_id=test_tenant, due_in=timedelta(seconds=-5)),
        )
        await insert(
            execution_repo,
            WorkflowExecutionFactory.retrying(tenant_id=test_tenant, due_in=timedelta(minutes=5)),
        )

        found = await execution_repo.list_due_retries(now, limit=100)

        assert due.id in {e.id for e in found}
        assert all(e.next_retry_at <= now for e in found)

    async def test_list_stale_running(self, execution_repo, test_tenant):
        now = utc_now()
        stale = await insert(
            execution_repo,
            WorkflowExecutionFactory.running(tenant_id=test_tenant, started_ago=timedelta(hours=1)),
        )
        fresh = await insert(
            execution_repo, WorkflowExecutionFactory.running(tenant_id=test_tenant, handle="run-2")
        )

        found = await execution_repo.list_stale_running(
            started_before=now - timedelta(minutes=5),
            polled_before=now - timedelta(minutes=1),
            limit=100,
        )

        ids = {e.id for e in found}
        assert stale.id in ids
        assert fresh.id not in ids


class TestTenantQueries:
    async def test_pagination(self, execution_repo, test_tenant):
        base = utc_now()
        for minutes in range(5):
            await insert(
                execution_repo,
                WorkflowExecutionFactory.build(
                    tenant_id=test_tenant, created_at=base - timedelta(minutes=minutes)
                ),
            )

        first, cursor, has_more = await execution_repo.list_by_tenant(test_tenant, limit=3)
        second, _, more_after = await execution_repo.list_by_tenant(
            test_tenant, cursor=cursor, limit=3
        )

        assert len(first) == 3
        assert has_more is True
        assert len(second) == 2
        assert more_after is False
        assert {e.id for e in first}.isdisjoint({e.id for e in second})

    async def test_list_in_range(self, execution_repo, test_tenant):
        now = utc_now()
        recent = await insert(execution_repo, WorkflowExecutionFactory.build(tenant_id=test_tenant))
        await insert(
            execution_repo,
            WorkflowExecutionFactory.build(
                tenant_id=test_tenant, created_at=now - timedelta(days=40)
            ),
        )

        found = await execution_repo.list_in_range(test_tenant, now - timedelta(days=30))

        assert [e.id for e in found] == [recent.id]
