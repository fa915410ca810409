"""Model exports.

Import from here: `from src.automation.models import WorkflowExecution`
"""

from src.automation.models.enums import TERMINAL_STATUSES, ExecutionStatus, WorkflowType
from src.automation.models.workflow import WorkflowExecution

__all__ = [
    # Enums
    "ExecutionStatus",
    "TERMINAL_STATUSES",
    "WorkflowType",
    # Models
    "WorkflowExecution",
]
