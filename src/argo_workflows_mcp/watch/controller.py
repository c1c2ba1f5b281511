"""Receive loop turning a workflow event stream into a bounded wait.

    Idle -> Subscribing -> Receiving -> {Terminal, TimedOut, StreamEnded, Failed}

The one-shot wait and the continuous watch share this loop; the watch also
retains a summary of every accepted event.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import closing
from dataclasses import dataclass
from datetime import UTC, datetime

from argo_workflows_mcp.argo.models import WorkflowStatus
from argo_workflows_mcp.errors import BackendError, InvalidInputError, WatchStreamError
from argo_workflows_mcp.watch.duration import parse_duration
from argo_workflows_mcp.watch.events import (
    EventSummary,
    is_terminal_phase,
    normalize_phase,
    summarize_event,
)
from argo_workflows_mcp.watch.result import ObserveResult, StopReason, synthesize
from argo_workflows_mcp.watch.scope import RequestScope, ScopeDone
from argo_workflows_mcp.watch.source import EndOfStream, EventSubscription, WorkflowEventSource

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class WatchTarget:
    name: str
    namespace: str
    # Timeout as the caller wrote it (e.g. "5m"), echoed in timeout messages.
    timeout: str | None = None
    timeout_seconds: float | None = None

    @staticmethod
    def parse(*, name: str, namespace: str, timeout: str | None = None) -> WatchTarget:
        """Validate caller input.

        Raises:
            InvalidInputError for an empty name or a malformed / non-positive timeout.
        """

        workflow_name = name.strip()
        if not workflow_name:
            raise InvalidInputError("workflow name cannot be empty")

        raw_timeout = (timeout or "").strip()
        if not raw_timeout:
            return WatchTarget(name=workflow_name, namespace=namespace)

        try:
            seconds = parse_duration(raw_timeout)
        except ValueError as e:
            raise InvalidInputError(f"invalid timeout format: {e}") from e
        if seconds <= 0:
            raise InvalidInputError("invalid timeout: must be a positive duration")

        return WatchTarget(
            name=workflow_name,
            namespace=namespace,
            timeout=raw_timeout,
            timeout_seconds=seconds,
        )


def observe(
    source: WorkflowEventSource,
    target: WatchTarget,
    *,
    retain_event_log: bool = False,
    scope: RequestScope | None = None,
    clock: Callable[[], datetime] = _utc_now,
) -> ObserveResult:
    """Watch one workflow until it reaches a terminal phase, the stream ends or time runs out.

    Timing out (or being cancelled through `scope`) is not an error: the result
    carries `timed_out=True` and the last phase seen.

    Raises:
        BackendError if the subscription could not be established.
        WatchStreamError if the stream failed mid-way; no partial result is returned.
    """

    with RequestScope(timeout=target.timeout_seconds, parent=scope) as watch_scope:
        try:
            subscription = source.watch_workflows(
                namespace=target.namespace, name=target.name, scope=watch_scope
            )
        except BackendError:
            raise
        except Exception as e:
            raise BackendError("watch workflow", str(e)) from e

        logger.info(
            "Watching workflow",
            extra={
                "workflow": target.name,
                "namespace": target.namespace,
                "timeout": target.timeout,
            },
        )

        with closing(subscription):
            status, stop_reason, events = _receive(
                subscription,
                watch_scope,
                retain_event_log=retain_event_log,
                clock=clock,
            )

    logger.info(
        "Workflow watch finished",
        extra={
            "workflow": target.name,
            "namespace": target.namespace,
            "stop_reason": stop_reason.value,
            "phase": normalize_phase(status.phase) if status else None,
        },
    )
    return synthesize(
        target,
        status,
        stop_reason,
        now=clock(),
        events=tuple(events) if retain_event_log else None,
    )


def _receive(
    subscription: EventSubscription,
    scope: RequestScope,
    *,
    retain_event_log: bool,
    clock: Callable[[], datetime],
) -> tuple[WorkflowStatus | None, StopReason, list[EventSummary]]:
    last_status: WorkflowStatus | None = None
    events: list[EventSummary] = []

    while True:
        if scope.done:
            return last_status, StopReason.TIMED_OUT, events

        try:
            event = subscription.recv()
        except EndOfStream:
            return last_status, StopReason.STREAM_ENDED, events
        except ScopeDone:
            return last_status, StopReason.TIMED_OUT, events
        except Exception as e:
            # The scope's own deadline may surface as an arbitrary transport error.
            if scope.done:
                return last_status, StopReason.TIMED_OUT, events
            if isinstance(e, WatchStreamError):
                raise
            raise WatchStreamError(str(e)) from e

        if event.workflow is None:
            logger.debug("Skipping workflow event without an object", extra={"type": event.type})
            continue

        last_status = event.workflow.status
        if retain_event_log:
            events.append(summarize_event(event, received_at=clock()))

        if is_terminal_phase(normalize_phase(last_status.phase)):
            return last_status, StopReason.TERMINAL_PHASE, events
