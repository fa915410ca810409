"""
Temporal Activities - Fine-grained, idempotent operations.

Activities should be:
1. Idempotent - Safe to retry
2. Side-effect aware - Database and runner calls go here, not in workflows
"""

from src.automation.temporal.activities.maintenance import (
    process_due_retries,
    reconcile_stale_executions,
)

__all__ = [
    "process_due_retries",
    "reconcile_stale_executions",
]
