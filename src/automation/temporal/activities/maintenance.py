"""Execution maintenance activities."""

from dataclasses import asdict

from temporalio import activity

from src.automation.services.maintenance_service import MaintenanceService


@activity.defn
async def process_due_retries() -> dict[str, int]:
    """
    Re-dispatch RETRYING executions whose backoff has elapsed.

    Idempotent: each retry is claimed with a version-checked write, so a
    retried activity cannot dispatch the same attempt twice.

    Returns:
        Counts of processed, skipped and failed executions
    """
    result = await MaintenanceService().process_due_retries()
    if result.processed or result.errors:
        activity.logger.info(f"Due retries: {result.processed} run, {result.errors} errors")
    return asdict(result)


@activity.defn
async def reconcile_stale_executions() -> dict[str, int]:
    """
    Poll the runner for RUNNING executions whose callback never arrived.

    Returns:
        Counts of processed, skipped and failed executions
    """
    result = await MaintenanceService().reconcile_stale_executions()
    if result.processed or result.errors:
        activity.logger.info(f"Stale executions: {result.processed} polled, {result.errors} errors")
    return asdict(result)
