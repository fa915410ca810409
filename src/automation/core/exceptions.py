"""Engine error taxonomy and exception handlers with request_id in responses."""

from uuid import UUID

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.automation.core.logging import get_logger

logger = get_logger(__name__)


class WorkflowEngineError(Exception):
    """Base class for workflow engine errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, execution_id: UUID | None = None):
        super().__init__(message)
        self.message = message
        self.execution_id = execution_id


class ExecutionNotFoundError(WorkflowEngineError):
    """Unknown execution id, or an id owned by another tenant."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, execution_id: UUID):
        super().__init__(f"Workflow execution {execution_id} not found", execution_id)


class UnknownWorkflowTypeError(WorkflowEngineError):
    """Structural failure: the requested workflow type does not exist."""

    status_code = 422

    def __init__(self, workflow_type: str):
        super().__init__(f"Unknown workflow type '{workflow_type}'")
        self.workflow_type = workflow_type


class DispatchError(WorkflowEngineError):
    """The runner could not be reached or rejected the payload.

    Transient errors (timeouts, transport failures, 5xx) may be recovered by
    the retry controller. Structural errors (4xx, protocol violations) never are.
    """

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(
        self,
        message: str,
        *,
        transient: bool,
        upstream_status: int | None = None,
        execution_id: UUID | None = None,
    ):
        super().__init__(message, execution_id)
        self.transient = transient
        self.upstream_status = upstream_status


class RunnerStatusError(WorkflowEngineError):
    """A status poll against the runner failed."""

    status_code = status.HTTP_502_BAD_GATEWAY


class CallbackConflictError(WorkflowEngineError):
    """A callback contradicts the current state of the record."""

    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(WorkflowEngineError):
    """The state machine does not allow the requested transition."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, execution_id: UUID, from_status: str, to_status: str):
        super().__init__(
            f"Cannot move execution {execution_id} from {from_status} to {to_status}",
            execution_id,
        )
        self.from_status = from_status
        self.to_status = to_status


class RetryCeilingExceededError(WorkflowEngineError):
    """Retries are exhausted; the execution is permanently failed."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, execution_id: UUID, retry_count: int, max_retries: int):
        super().__init__(
            f"Execution {execution_id} failed after {retry_count} of {max_retries} retries "
            "and requires manual attention",
            execution_id,
        )
        self.retry_count = retry_count
        self.max_retries = max_retries


class ConcurrentModificationError(WorkflowEngineError):
    """The record changed between read and write (optimistic version check)."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, execution_id: UUID, expected_version: int):
        super().__init__(
            f"Execution {execution_id} was modified concurrently "
            f"(expected version {expected_version})",
            execution_id,
        )
        self.expected_version = expected_version


def _error_body(detail: str, **extra: object) -> dict[str, object]:
    body: dict[str, object] = {"detail": detail, "request_id": correlation_id.get()}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.detail))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.detail))

    @app.exception_handler(WorkflowEngineError)
    async def engine_exception_handler(
        request: Request, exc: WorkflowEngineError
    ) -> JSONResponse:
        execution_id = str(exc.execution_id) if exc.execution_id else None
        logger.info(
            "Workflow engine error",
            error_type=type(exc).__name__,
            error=exc.message,
            execution_id=execution_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, execution_id=execution_id),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
