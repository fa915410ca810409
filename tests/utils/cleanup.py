"""Database cleanup utilities for test fixtures."""

from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection


async def cleanup_tenant_executions(conn: AsyncConnection, tenant_id: UUID) -> None:
    """Delete every execution owned by a test tenant.

    Execution records are append-only in the application, so tests remove
    their own rows explicitly.
    """
    await conn.execute(
        text("DELETE FROM public.workflow_executions WHERE tenant_id = :id"),
        {"id": tenant_id},
    )
