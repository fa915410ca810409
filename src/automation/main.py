from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.automation.api.middlewares import setup_middlewares
from src.automation.api.v1.router import api_router
from src.automation.core.config import get_settings
from src.automation.core.db import dispose_engine
from src.automation.core.events import event_bus
from src.automation.core.exceptions import setup_exception_handlers
from src.automation.core.health import setup_health_endpoint, setup_metrics
from src.automation.core.logging import get_logger, setup_logging
from src.automation.core.scheduler import ExecutionScheduler
from src.automation.core.shutdown import request_tracker
from src.automation.runner import close_runner_client
from src.automation.services import MaintenanceService
from src.automation.services.execution_hooks import register_default_hooks
from src.automation.temporal.client import close_temporal_client

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info(f"Starting {settings.app_name}")

    event_bus.clear()
    register_default_hooks(event_bus)

    scheduler: ExecutionScheduler | None = None
    if settings.execution_scheduler == "inprocess":
        scheduler = ExecutionScheduler(MaintenanceService(), settings.scheduler_tick_seconds)
        scheduler.start()
    app.state.scheduler = scheduler

    yield

    # Graceful shutdown with proper request draining
    grace_period = settings.shutdown_grace_period
    logger.info(
        f"Shutdown initiated, waiting for {request_tracker.in_flight_count} in-flight requests..."
    )

    if scheduler is not None:
        await scheduler.stop(timeout=grace_period)

    # Start shutdown mode to prevent new requests from being tracked
    await request_tracker.start_shutdown()

    # Wait for all in-flight requests to complete
    drained = await request_tracker.wait_for_drain(timeout=grace_period)
    if not drained:
        logger.warning(
            f"Shutdown timeout after {grace_period}s - "
            f"{request_tracker.in_flight_count} requests may not have completed"
        )

    logger.info("Closing connections...")
    await close_runner_client()
    await close_temporal_client()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "executions", "description": "Start, inspect, retry and cancel workflow executions"},
    {"name": "webhooks", "description": "Callbacks from the workflow runner"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Workflow execution engine for listing automation",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    setup_exception_handlers(app)
    setup_middlewares(app, settings)

    app.include_router(api_router)

    setup_metrics(app)
    setup_health_endpoint(app)

    return app


app = create_app()
