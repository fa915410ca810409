"""Tests for the Temporal execution maintenance workflow."""

import uuid

import pytest
from temporalio import activity
from temporalio.testing import WorkflowEnvironment
from temporalio.worker import Worker

from src.automation.temporal.workflows import ExecutionMaintenanceWorkflow, MaintenanceInput

pytestmark = pytest.mark.unit

TASK_QUEUE = "test-maintenance"


@activity.defn(name="process_due_retries")
async def fake_process_due_retries() -> dict[str, int]:
    return {"processed": 2, "skipped": 1, "errors": 0}


@activity.defn(name="reconcile_stale_executions")
async def fake_reconcile_stale_executions() -> dict[str, int]:
    return {"processed": 1, "skipped": 0, "errors": 1}


class TestExecutionMaintenanceWorkflow:
    """Loop accounting and shutdown of the maintenance workflow."""

    async def test_runs_configured_iterations(self) -> None:
        """Each tick runs both activities and the totals add up."""
        async with await WorkflowEnvironment.start_time_skipping() as env:  # noqa: SIM117
            async with Worker(
                env.client,
                task_queue=TASK_QUEUE,
                workflows=[ExecutionMaintenanceWorkflow],
                activities=[fake_process_due_retries, fake_reconcile_stale_executions],
            ):
                totals = await env.client.execute_workflow(
                    ExecutionMaintenanceWorkflow.run,
                    MaintenanceInput(tick_seconds=5.0, iterations_per_run=3, continue_as_new=False),
                    id=f"maintenance-{uuid.uuid4()}",
                    task_queue=TASK_QUEUE,
                )

        assert totals == {"ticks": 3, "retries": 6, "polls": 3, "errors": 3}

    async def test_stop_signal_ends_loop(self) -> None:
        """The stop signal ends the workflow after the current tick."""
        async with await WorkflowEnvironment.start_time_skipping() as env:  # noqa: SIM117
            async with Worker(
                env.client,
                task_queue=TASK_QUEUE,
                workflows=[ExecutionMaintenanceWorkflow],
                activities=[fake_process_due_retries, fake_reconcile_stale_executions],
            ):
                handle = await env.client.start_workflow(
                    ExecutionMaintenanceWorkflow.run,
                    MaintenanceInput(tick_seconds=3600.0, iterations_per_run=100),
                    id=f"maintenance-{uuid.uuid4()}",
                    task_queue=TASK_QUEUE,
                )
                await handle.signal(ExecutionMaintenanceWorkflow.stop)
                totals = await handle.result()

        assert 1 <= totals["ticks"] < 100
        assert totals["retries"] == 2 * totals["ticks"]
