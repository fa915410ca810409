"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.automation.api.dependencies.repositories import WorkflowExecRepo
from src.automation.runner import WorkflowRunnerClient, get_runner_client
from src.automation.services import (
    AnalyticsService,
    CallbackService,
    ExecutionService,
    ExecutionServices,
    StatusMonitorService,
    build_execution_services,
)

RunnerClient = Annotated[WorkflowRunnerClient, Depends(get_runner_client)]


def get_execution_services(repo: WorkflowExecRepo, runner: RunnerClient) -> ExecutionServices:
    """Wire all execution services around the request's repository."""
    return build_execution_services(repo, runner)


ExecutionServicesDep = Annotated[ExecutionServices, Depends(get_execution_services)]


def get_execution_service(services: ExecutionServicesDep) -> ExecutionService:
    return services.executions


def get_callback_service(services: ExecutionServicesDep) -> CallbackService:
    return services.callbacks


def get_status_monitor_service(services: ExecutionServicesDep) -> StatusMonitorService:
    return services.monitor


def get_analytics_service(services: ExecutionServicesDep) -> AnalyticsService:
    return services.analytics


ExecutionServiceDep = Annotated[ExecutionService, Depends(get_execution_service)]
CallbackServiceDep = Annotated[CallbackService, Depends(get_callback_service)]
StatusMonitorServiceDep = Annotated[StatusMonitorService, Depends(get_status_monitor_service)]
AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]
