from src.automation.runner.client import (
    RunnerExecutionStatus,
    WorkflowRunnerClient,
    close_runner_client,
    get_runner_client,
)

__all__ = [
    "RunnerExecutionStatus",
    "WorkflowRunnerClient",
    "close_runner_client",
    "get_runner_client",
]
