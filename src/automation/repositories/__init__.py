"""Repository layer - data access abstraction."""

from src.automation.repositories.base import BaseRepository
from src.automation.repositories.workflow_execution import WorkflowExecutionRepository

__all__ = [
    "BaseRepository",
    "WorkflowExecutionRepository",
]
