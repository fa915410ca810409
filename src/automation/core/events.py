"""Typed execution events and an in-process event bus.

State transitions commit first, then publish. Subscribers are independent:
one raising does not stop the others and never reverts the transition that
produced the event. Failures are logged, counted, and returned to the
publisher so callers can observe them.
"""

from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from src.automation.core.logging import get_logger
from src.automation.core.metrics import HOOK_FAILURES

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExecutionEvent:
    """Base for all execution events."""

    execution_id: UUID
    tenant_id: UUID
    workflow_type: str
    subject_id: UUID | None
    occurred_at: datetime

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class ExecutionCompleted(ExecutionEvent):
    output_data: dict[str, Any] | None = None
    duration_seconds: float | None = None


@dataclass(frozen=True)
class ExecutionFailed(ExecutionEvent):
    """A dispatch attempt failed. `will_retry` tells whether a retry is scheduled."""

    error_message: str | None = None
    retry_count: int = 0
    will_retry: bool = False


@dataclass(frozen=True)
class ExecutionRetriesExhausted(ExecutionEvent):
    """Terminal failure: automation needs a human."""

    error_message: str | None = None
    retry_count: int = 0
    max_retries: int = 0


@dataclass(frozen=True)
class ExecutionFailedPermanently(ExecutionEvent):
    """Terminal failure without exhausting retries, e.g. a rejected re-dispatch."""

    error_message: str | None = None
    retry_count: int = 0


@dataclass(frozen=True)
class ExecutionCancelled(ExecutionEvent):
    previous_status: str = ""


EventHandler = Callable[[Any], Awaitable[None]]


@dataclass(frozen=True)
class HookFailure:
    event: str
    handler: str
    error: str


@dataclass
class EventBus:
    _handlers: dict[type[ExecutionEvent], list[EventHandler]] = field(
        default_factory=lambda: defaultdict(list)
    )

    def subscribe(self, event_type: type[ExecutionEvent], handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def handlers_for(self, event: ExecutionEvent) -> list[EventHandler]:
        """Handlers registered for the event's class or any of its bases."""
        matched: list[EventHandler] = []
        for event_type in type(event).__mro__:
            matched.extend(self._handlers.get(event_type, []))
        return matched

    async def publish(self, event: ExecutionEvent) -> list[HookFailure]:
        failures: list[HookFailure] = []
        for handler in self.handlers_for(event):
            handler_name = getattr(handler, "__qualname__", repr(handler))
            try:
                await handler(event)
            except Exception as e:
                HOOK_FAILURES.labels(event=event.name).inc()
                logger.exception(
                    "Execution event handler failed",
                    event_name=event.name,
                    handler=handler_name,
                    execution_id=str(event.execution_id),
                )
                failures.append(HookFailure(event=event.name, handler=handler_name, error=str(e)))
        return failures

    def clear(self) -> None:
        """Remove all subscribers. For testing only."""
        self._handlers.clear()


event_bus = EventBus()
