from src.automation.schemas.analytics import ExecutionAnalytics, OutcomeCounts
from src.automation.schemas.callback import WorkflowCallbackAck, WorkflowCallbackRequest
from src.automation.schemas.execution import ExecutionRead, ExecutionStartRequest
from src.automation.schemas.pagination import PaginatedResponse

__all__ = [
    # Analytics
    "ExecutionAnalytics",
    "OutcomeCounts",
    # Callback
    "WorkflowCallbackAck",
    "WorkflowCallbackRequest",
    # Execution
    "ExecutionRead",
    "ExecutionStartRequest",
    # Pagination
    "PaginatedResponse",
]
