"""Wiring of the execution services around one repository."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from src.automation.core.config import Settings
from src.automation.core.db import get_session
from src.automation.core.events import EventBus, event_bus
from src.automation.repositories import WorkflowExecutionRepository
from src.automation.runner import WorkflowRunnerClient, get_runner_client
from src.automation.services.analytics_service import AnalyticsService
from src.automation.services.callback_service import CallbackService
from src.automation.services.dispatch_service import DispatchService
from src.automation.services.execution_service import ExecutionService
from src.automation.services.retry_service import RetryService
from src.automation.services.status_monitor_service import StatusMonitorService


@dataclass
class ExecutionServices:
    repo: WorkflowExecutionRepository
    dispatcher: DispatchService
    retry: RetryService
    callbacks: CallbackService
    monitor: StatusMonitorService
    analytics: AnalyticsService
    executions: ExecutionService


def build_execution_services(
    repo: WorkflowExecutionRepository,
    runner: WorkflowRunnerClient,
    bus: EventBus = event_bus,
    settings: Settings | None = None,
) -> ExecutionServices:
    dispatcher = DispatchService(repo, runner)
    retry = RetryService(repo, dispatcher, bus=bus, settings=settings)
    callbacks = CallbackService(repo, retry, bus=bus)
    return ExecutionServices(
        repo=repo,
        dispatcher=dispatcher,
        retry=retry,
        callbacks=callbacks,
        monitor=StatusMonitorService(repo, runner, callbacks, retry, settings=settings),
        analytics=AnalyticsService(repo),
        executions=ExecutionService(repo, dispatcher, retry),
    )


@asynccontextmanager
async def open_execution_services(
    runner: WorkflowRunnerClient | None = None,
) -> AsyncIterator[ExecutionServices]:
    """Services bound to a fresh database session, for work outside a request."""
    async with get_session() as session:
        yield build_execution_services(
            WorkflowExecutionRepository(session), runner or get_runner_client()
        )
