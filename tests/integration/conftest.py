"""Integration test fixtures for database and HTTP client operations.

These fixtures require a PostgreSQL database reachable at DATABASE_URL.
Tests are skipped when it is not.
"""

import asyncio
from collections.abc import AsyncGenerator
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from src.automation.api.dependencies import DBSession, get_execution_services
from src.automation.core import db
from src.automation.core.config import get_settings
from src.automation.core.db import run_migrations_sync
from src.automation.core.events import EventBus
from src.automation.core.health import reset_health_cache
from src.automation.main import create_app
from src.automation.repositories import WorkflowExecutionRepository
from src.automation.runner import WorkflowRunnerClient
from src.automation.services import ExecutionServices, build_execution_services
from tests.utils.cleanup import cleanup_tenant_executions


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create test database engine and ensure migrations are applied."""
    await db.dispose_engine()

    settings = get_settings()
    test_engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with test_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OSError, OperationalError, DBAPIError) as e:
        await test_engine.dispose()
        pytest.skip(f"PostgreSQL not reachable: {e}")

    await asyncio.to_thread(run_migrations_sync)

    yield test_engine
    await test_engine.dispose()
    await db.dispose_engine()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session on the public schema. Repository writes commit on their own."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def test_tenant(engine: AsyncEngine) -> AsyncGenerator[UUID]:
    """A fresh tenant id whose executions are removed after the test."""
    tenant_id = uuid4()
    yield tenant_id

    async with engine.connect() as conn:
        await cleanup_tenant_executions(conn, tenant_id)
        await conn.commit()


@pytest.fixture
def execution_repo(db_session: AsyncSession) -> WorkflowExecutionRepository:
    return WorkflowExecutionRepository(db_session)


@pytest.fixture
def db_services(
    execution_repo: WorkflowExecutionRepository,
    runner_client: WorkflowRunnerClient,
    settings,
) -> ExecutionServices:
    """Execution services on PostgreSQL with the mocked runner."""
    return build_execution_services(
        execution_repo, runner_client, bus=EventBus(), settings=settings
    )


@pytest.fixture
async def client(
    engine: AsyncEngine,
    test_tenant: UUID,
    runner_client: WorkflowRunnerClient,
    settings,
) -> AsyncGenerator[AsyncClient]:
    """API client with tenant header, real database and mocked runner."""
    await db.dispose_engine()
    reset_health_cache()

    app = create_app()

    def services_on_request_session(session: DBSession) -> ExecutionServices:
        return build_execution_services(
            WorkflowExecutionRepository(session), runner_client, bus=EventBus(), settings=settings
        )

    app.dependency_overrides[get_execution_services] = services_on_request_session
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Tenant-ID": str(test_tenant)},
    ) as ac:
        yield ac

    await db.dispose_engine()
