"""
Temporal Worker - Separate process from API.

Run with:
    python -m src.automation.temporal.worker                 # Worker + maintenance workflow
    python -m src.automation.temporal.worker --no-bootstrap  # Worker only
"""

import argparse
import asyncio
from collections.abc import Sequence

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.exceptions import WorkflowAlreadyStartedError
from temporalio.worker import Worker

from src.automation.core.config import get_settings
from src.automation.core.db import dispose_engine
from src.automation.core.logging import get_logger, setup_logging
from src.automation.runner import close_runner_client
from src.automation.temporal.activities import (
    process_due_retries,
    reconcile_stale_executions,
)
from src.automation.temporal.workflows import ExecutionMaintenanceWorkflow, MaintenanceInput

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="Execution maintenance worker")
    parser.add_argument(
        "--no-bootstrap",
        action="store_true",
        help="Do not start the maintenance workflow, only poll the task queue",
    )
    return parser.parse_args()


async def create_worker(
    client: Client,
    task_queue: str,
    workflows: Sequence[type],
    activities: Sequence[object],  # type: ignore[type-arg]
    *,
    max_concurrent_activities: int = 10,
    max_concurrent_workflow_tasks: int = 10,
) -> Worker:
    """Create a worker with tuned settings.

    Args:
        client: Temporal client
        task_queue: Task queue name
        workflows: List of workflow classes
        activities: List of activity functions
        max_concurrent_activities: Max concurrent activity executions
        max_concurrent_workflow_tasks: Max concurrent workflow task executions

    Returns:
        Configured Worker instance
    """
    return Worker(
        client,
        task_queue=task_queue,
        workflows=list(workflows),
        activities=list(activities),  # type: ignore[arg-type]
        max_concurrent_activities=max_concurrent_activities,
        max_concurrent_workflow_tasks=max_concurrent_workflow_tasks,
    )


async def start_maintenance_workflow(client: Client) -> None:
    """Start the singleton maintenance workflow unless it is already running."""
    settings = get_settings()
    try:
        await client.start_workflow(
            ExecutionMaintenanceWorkflow.run,
            MaintenanceInput(
                tick_seconds=settings.scheduler_tick_seconds,
                iterations_per_run=settings.maintenance_iterations_per_run,
            ),
            id=settings.maintenance_workflow_id,
            task_queue=settings.temporal_task_queue,
        )
        logger.info(f"Started maintenance workflow: {settings.maintenance_workflow_id}")
    except WorkflowAlreadyStartedError:
        logger.info(f"Maintenance workflow already running: {settings.maintenance_workflow_id}")


async def run_health_server(task_queue: str, port: int = WORKER_HEALTH_PORT) -> None:
    """Run a lightweight health server for K8s probes."""
    health_app = FastAPI(title="Execution Maintenance Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": "temporal-worker",
            "task_queue": task_queue,
        }

    @health_app.get("/ready")
    async def ready() -> dict[str, str]:
        return {"status": "ready"}

    config = uvicorn.Config(
        health_app,
        host="0.0.0.0",
        port=port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    logger.info(f"Starting health server on port {port}")
    await server.serve()


async def main() -> None:
    """Main entry point for the Temporal worker."""
    args = parse_args()
    settings = get_settings()
    setup_logging(settings.debug)

    client = await Client.connect(
        settings.temporal_host,
        namespace=settings.temporal_namespace,
    )

    worker = await create_worker(
        client,
        settings.temporal_task_queue,
        workflows=[ExecutionMaintenanceWorkflow],
        activities=[process_due_retries, reconcile_stale_executions],
    )

    bootstrap = settings.execution_scheduler == "temporal" and not args.no_bootstrap
    if settings.execution_scheduler != "temporal":
        logger.warning(
            f"EXECUTION_SCHEDULER is '{settings.execution_scheduler}', "
            "maintenance workflow will not be started"
        )

    logger.info(f"Polling task queue: {settings.temporal_task_queue}")

    try:
        health_task = asyncio.create_task(run_health_server(settings.temporal_task_queue))
        if bootstrap:
            await start_maintenance_workflow(client)
        await worker.run()
        await health_task
    finally:
        await close_runner_client()
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
