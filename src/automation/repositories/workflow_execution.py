"""Repository for WorkflowExecution entity (the execution store)."""

from datetime import datetime
from typing import Any, cast
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import select

from src.automation.core.exceptions import ConcurrentModificationError
from src.automation.models import ExecutionStatus, WorkflowExecution
from src.automation.models.base import utc_now
from src.automation.repositories.base import BaseRepository


class WorkflowExecutionRepository(BaseRepository[WorkflowExecution]):
    """Execution store in the public schema.

    Unlike the other repositories, writes here commit immediately: each
    state transition is one atomic, version-checked row update.
    """

    model = WorkflowExecution

    async def create(
        self,
        workflow_type: str,
        tenant_id: UUID,
        subject_id: UUID | None,
        input_data: dict[str, Any] | None,
    ) -> WorkflowExecution:
        """Insert a new PENDING execution with retry_count 0 and version 1."""
        execution = WorkflowExecution(
            workflow_type=workflow_type,
            tenant_id=tenant_id,
            subject_id=subject_id,
            input_data=input_data,
            status=ExecutionStatus.PENDING.value,
            retry_count=0,
            version=1,
        )
        self.add(execution)
        await self.session.commit()
        await self.session.refresh(execution)
        return execution

    async def get_for_tenant(self, id: UUID, tenant_id: UUID) -> WorkflowExecution | None:
        """Get an execution only if it belongs to the tenant."""
        result = await self.session.execute(
            select(WorkflowExecution).where(
                WorkflowExecution.id == id,
                WorkflowExecution.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def update(
        self,
        execution: WorkflowExecution,
        expected_version: int,
        **changes: Any,
    ) -> WorkflowExecution:
        """Apply changes only if the row still carries expected_version.

        Bumps version and updated_at. The in-memory record is refreshed with
        the written values without being marked dirty, so no later flush can
        overwrite a concurrent writer.

        Raises:
            ConcurrentModificationError: If another writer got there first.
        """
        execution_id = execution.id
        values = {**changes, "version": expected_version + 1, "updated_at": utc_now()}
        stmt = (
            update(WorkflowExecution)
            .where(
                WorkflowExecution.id == execution_id,  # type: ignore[arg-type]
                WorkflowExecution.version == expected_version,  # type: ignore[arg-type]
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if (cast(CursorResult[Any], result).rowcount or 0) == 0:
            # Nothing was written; end the transaction without expiring loaded records
            await self.session.commit()
            raise ConcurrentModificationError(execution_id, expected_version)

        await self.session.commit()
        for key, value in values.items():
            set_committed_value(execution, key, value)
        return execution

    async def reload(self, execution_id: UUID) -> WorkflowExecution | None:
        """Re-read a record, bypassing the identity map."""
        result = await self.session.execute(
            select(WorkflowExecution)
            .where(WorkflowExecution.id == execution_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_by_tenant(
        self,
        tenant_id: UUID,
        status: str | None = None,
        workflow_type: str | None = None,
        subject_id: UUID | None = None,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[WorkflowExecution], str | None, bool]:
        """List executions for a tenant with cursor pagination.

        Returns:
            Tuple of (executions, next_cursor, has_more)
        """
        query = select(WorkflowExecution).where(WorkflowExecution.tenant_id == tenant_id)

        if status:
            query = query.where(WorkflowExecution.status == status)
        if workflow_type:
            query = query.where(WorkflowExecution.workflow_type == workflow_type)
        if subject_id:
            query = query.where(WorkflowExecution.subject_id == subject_id)

        return await self.paginate(query, cursor, limit, WorkflowExecution.created_at)

    async def list_in_range(
        self,
        tenant_id: UUID,
        since: datetime,
        until: datetime | None = None,
    ) -> list[WorkflowExecution]:
        """List a tenant's executions created in [since, until)."""
        query = select(WorkflowExecution).where(
            WorkflowExecution.tenant_id == tenant_id,
            WorkflowExecution.created_at >= since,  # type: ignore[operator]
        )
        if until is not None:
            query = query.where(WorkflowExecution.created_at < until)  # type: ignore[operator]
        result = await self.session.execute(query.order_by(WorkflowExecution.created_at))
        return list(result.scalars().all())

    async def list_due_retries(self, now: datetime, limit: int) -> list[WorkflowExecution]:
        """RETRYING executions whose backoff has elapsed, oldest due first."""
        result = await self.session.execute(
            select(WorkflowExecution)
            .where(
                WorkflowExecution.status == ExecutionStatus.RETRYING.value,
                WorkflowExecution.next_retry_at.is_not(None),  # type: ignore[union-attr]
                WorkflowExecution.next_retry_at <= now,  # type: ignore[operator]
            )
            .order_by(WorkflowExecution.next_retry_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_stale_running(
        self,
        started_before: datetime,
        polled_before: datetime,
        limit: int,
    ) -> list[WorkflowExecution]:
        """RUNNING executions past the callback grace period and due for a poll."""
        result = await self.session.execute(
            select(WorkflowExecution)
            .where(
                WorkflowExecution.status == ExecutionStatus.RUNNING.value,
                WorkflowExecution.external_handle.is_not(None),  # type: ignore[union-attr]
                WorkflowExecution.started_at <= started_before,  # type: ignore[operator]
                (
                    WorkflowExecution.last_polled_at.is_(None)  # type: ignore[union-attr]
                    | (WorkflowExecution.last_polled_at <= polled_before)  # type: ignore[operator]
                ),
            )
            .order_by(WorkflowExecution.started_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_status_since(self, since: datetime) -> dict[str, int]:
        """Execution counts per status for records created since a point in time."""
        result = await self.session.execute(
            select(WorkflowExecution.status, func.count())
            .where(WorkflowExecution.created_at >= since)  # type: ignore[operator]
            .group_by(WorkflowExecution.status)
        )
        return {status: count for status, count in result.all()}
