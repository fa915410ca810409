"""Temporal Workflows - Re-exports for worker registration."""

from src.automation.temporal.workflows.execution_maintenance import (
    ExecutionMaintenanceWorkflow,
    MaintenanceInput,
)

__all__ = [
    "ExecutionMaintenanceWorkflow",
    "MaintenanceInput",
]
