"""Prometheus metrics for execution state transitions.

Exposed on /metrics alongside the HTTP metrics from the instrumentator.
"""

from prometheus_client import Counter, Histogram

EXECUTION_TRANSITIONS = Counter(
    "workflow_execution_transitions_total",
    "Workflow execution status transitions",
    ["workflow_type", "from_status", "to_status"],
)

DISPATCH_FAILURES = Counter(
    "workflow_dispatch_failures_total",
    "Failed attempts to hand an execution to the workflow runner",
    ["workflow_type", "transient"],
)

HOOK_FAILURES = Counter(
    "workflow_hook_failures_total",
    "Execution event subscribers that raised",
    ["event"],
)

EXECUTION_DURATION = Histogram(
    "workflow_execution_duration_seconds",
    "Time from dispatch to completion for completed executions",
    ["workflow_type"],
    buckets=[1, 5, 15, 30, 60, 120, 300, 600, 1800, 3600, 7200],
)
