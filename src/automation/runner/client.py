"""HTTP client for the external workflow runner."""

from dataclasses import dataclass
from typing import Any

import httpx

from src.automation.core.config import get_settings
from src.automation.core.exceptions import DispatchError, RunnerStatusError
from src.automation.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RunnerExecutionStatus:
    """Result of polling the runner for one execution."""

    finished: bool
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None


class WorkflowRunnerClient:
    """Triggers runner webhooks and polls runner executions.

    The runner is addressed by a base URL. Workflows are started with
    ``POST {base}/webhook/{path}`` and answer with ``{"executionId": ...}``.
    Status is read from ``GET {base}/executions/{id}``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        health_timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.base_url = base_url
        self.health_timeout = health_timeout
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def trigger(self, webhook_path: str, payload: dict[str, Any]) -> str:
        """Start a workflow and return the runner's execution handle.

        Raises:
            DispatchError: transient for timeouts, transport errors and 5xx;
                structural for 4xx and responses without an executionId.
        """
        url = f"/webhook/{webhook_path}"
        logger.info("Triggering runner workflow", webhook_path=webhook_path)

        try:
            response = await self._client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise DispatchError(f"Runner timed out on {url}", transient=True) from e
        except httpx.TransportError as e:
            raise DispatchError(f"Runner unreachable: {e}", transient=True) from e

        if response.status_code >= 500:
            raise DispatchError(
                f"Runner returned {response.status_code} on {url}",
                transient=True,
                upstream_status=response.status_code,
            )
        if response.status_code >= 400:
            raise DispatchError(
                f"Runner rejected {url} with {response.status_code}",
                transient=False,
                upstream_status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise DispatchError("Runner returned a non-JSON response", transient=False) from e

        handle = body.get("executionId") if isinstance(body, dict) else None
        if not handle:
            raise DispatchError("Runner response is missing executionId", transient=False)

        logger.info("Runner workflow triggered", webhook_path=webhook_path, external_handle=handle)
        return str(handle)

    async def get_execution(self, handle: str) -> RunnerExecutionStatus:
        """Read the runner's view of an execution.

        Raises:
            RunnerStatusError: If the runner cannot be reached or answers non-2xx.
        """
        try:
            response = await self._client.get(f"/executions/{handle}")
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RunnerStatusError(f"Failed to get runner execution {handle}: {e}") from e

        if not isinstance(body, dict):
            raise RunnerStatusError(f"Unexpected status payload for runner execution {handle}")

        data = body.get("data")
        error = body.get("error")
        return RunnerExecutionStatus(
            finished=bool(body.get("finished", False)),
            success=bool(body.get("success", False)),
            data=data if isinstance(data, dict) else None,
            error=str(error) if error else None,
        )

    async def check_health(self) -> bool:
        try:
            response = await self._client.get("/healthz", timeout=self.health_timeout)
        except httpx.HTTPError as e:
            logger.warning("Runner health check failed", error=str(e))
            return False
        return response.status_code == 200

    async def aclose(self) -> None:
        await self._client.aclose()


_runner_client: WorkflowRunnerClient | None = None


def get_runner_client() -> WorkflowRunnerClient:
    """Get or create the shared runner client."""
    global _runner_client
    if _runner_client is None:
        settings = get_settings()
        _runner_client = WorkflowRunnerClient(
            base_url=settings.runner_base_url,
            api_key=settings.runner_api_key,
            timeout=settings.runner_request_timeout_seconds,
            health_timeout=settings.runner_health_timeout_seconds,
        )
    return _runner_client


async def close_runner_client() -> None:
    """Close the shared runner client, if one was created."""
    global _runner_client
    if _runner_client is not None:
        await _runner_client.aclose()
        _runner_client = None
