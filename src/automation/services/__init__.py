from src.automation.services.analytics_service import AnalyticsService
from src.automation.services.callback_service import CallbackResult, CallbackService
from src.automation.services.dispatch_service import DispatchService
from src.automation.services.execution_service import ExecutionService
from src.automation.services.factory import (
    ExecutionServices,
    build_execution_services,
    open_execution_services,
)
from src.automation.services.maintenance_service import MaintenanceResult, MaintenanceService
from src.automation.services.retry_service import RetryService
from src.automation.services.status_monitor_service import StatusMonitorService

__all__ = [
    "AnalyticsService",
    "CallbackResult",
    "CallbackService",
    "DispatchService",
    "ExecutionService",
    "ExecutionServices",
    "MaintenanceResult",
    "MaintenanceService",
    "RetryService",
    "StatusMonitorService",
    "build_execution_services",
    "open_execution_services",
]
