"""FastAPI dependency injection definitions."""

# Database
from src.automation.api.dependencies.db import DBSession, get_db_session

# Repositories
from src.automation.api.dependencies.repositories import (
    WorkflowExecRepo,
    get_workflow_execution_repository,
)

# Services
from src.automation.api.dependencies.services import (
    AnalyticsServiceDep,
    CallbackServiceDep,
    ExecutionServiceDep,
    ExecutionServicesDep,
    RunnerClient,
    StatusMonitorServiceDep,
    get_execution_services,
)

# Tenant
from src.automation.api.dependencies.tenant import TenantId, get_tenant_id_from_header

# Webhooks
from src.automation.api.dependencies.webhook import WebhookAuth, verify_webhook_secret

__all__ = [
    "AnalyticsServiceDep",
    "CallbackServiceDep",
    "DBSession",
    "ExecutionServiceDep",
    "ExecutionServicesDep",
    "RunnerClient",
    "StatusMonitorServiceDep",
    "TenantId",
    "WebhookAuth",
    "WorkflowExecRepo",
    "get_db_session",
    "get_execution_services",
    "get_tenant_id_from_header",
    "get_workflow_execution_repository",
    "verify_webhook_secret",
]
