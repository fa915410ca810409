"""Test utilities package."""

from tests.utils.cleanup import cleanup_tenant_executions

__all__ = [
    "cleanup_tenant_executions",
]
