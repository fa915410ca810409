"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import WorkflowExecutionFactory
"""

from tests.factories.base import BaseFactory, generate_uuid, utc_now
from tests.factories.execution import WorkflowExecutionFactory

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid",
    "utc_now",
    # Execution
    "WorkflowExecutionFactory",
]
