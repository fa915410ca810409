"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.automation.api.dependencies.db import DBSession
from src.automation.repositories import WorkflowExecutionRepository


def get_workflow_execution_repository(session: DBSession) -> WorkflowExecutionRepository:
    """Get workflow execution repository."""
    return WorkflowExecutionRepository(session)


WorkflowExecRepo = Annotated[
    WorkflowExecutionRepository, Depends(get_workflow_execution_repository)
]
