"""
Execution Maintenance Workflow.

Long-running loop that drives the execution engine's background work:
1. Re-dispatch retries whose backoff has elapsed
2. Poll the runner for RUNNING executions that never got a callback

Durable timers replace the in-process scheduler when EXECUTION_SCHEDULER is
"temporal". History is capped with continue-as-new.
"""

from dataclasses import dataclass
from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.automation.temporal.activities import (
        process_due_retries,
        reconcile_stale_executions,
    )

ACTIVITY_TIMEOUT = timedelta(minutes=5)
ACTIVITY_RETRY_POLICY = RetryPolicy(
    maximum_attempts=3,
    initial_interval=timedelta(seconds=2),
)


@dataclass
class MaintenanceInput:
    tick_seconds: float = 5.0
    iterations_per_run: int = 500
    continue_as_new: bool = True


@workflow.defn
class ExecutionMaintenanceWorkflow:
    """
    Run maintenance ticks until stopped.

    Signals:
        stop: finish the current tick and return.

    Queries:
        totals: counts accumulated in the current run.
    """

    def __init__(self) -> None:
        self._stop_requested = False
        self._totals = {"ticks": 0, "retries": 0, "polls": 0, "errors": 0}

    @workflow.run
    async def run(self, params: MaintenanceInput) -> dict[str, int]:
        workflow.logger.info(
            f"Starting execution maintenance (tick: {params.tick_seconds}s, "
            f"iterations: {params.iterations_per_run})"
        )

        for _ in range(params.iterations_per_run):
            retries = await workflow.execute_activity(
                process_due_retries,
                start_to_close_timeout=ACTIVITY_TIMEOUT,
                retry_policy=ACTIVITY_RETRY_POLICY,
            )
            polls = await workflow.execute_activity(
                reconcile_stale_executions,
                start_to_close_timeout=ACTIVITY_TIMEOUT,
                retry_policy=ACTIVITY_RETRY_POLICY,
            )

            self._totals["ticks"] += 1
            self._totals["retries"] += retries["processed"]
            self._totals["polls"] += polls["processed"]
            self._totals["errors"] += retries["errors"] + polls["errors"]

            try:
                await workflow.wait_condition(
                    lambda: self._stop_requested,
                    timeout=timedelta(seconds=params.tick_seconds),
                )
            except TimeoutError:
                pass

            if self._stop_requested:
                workflow.logger.info("Execution maintenance stopped")
                return self._totals

        if params.continue_as_new:
            workflow.continue_as_new(params)
        return self._totals

    @workflow.signal
    def stop(self) -> None:
        self._stop_requested = True

    @workflow.query
    def totals(self) -> dict[str, int]:
        return self._totals
