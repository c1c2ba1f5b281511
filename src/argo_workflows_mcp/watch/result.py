"""Final output of a wait/watch call and its human-readable narrative."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from argo_workflows_mcp.argo.models import WorkflowStatus
from argo_workflows_mcp.watch.events import EventSummary, interpret

if TYPE_CHECKING:
    from argo_workflows_mcp.watch.controller import WatchTarget

UNKNOWN_PHASE = "Unknown"
NO_EVENTS_MESSAGE = "No workflow events received"


class StopReason(str, Enum):
    TERMINAL_PHASE = "terminal_phase"
    STREAM_ENDED = "stream_ended"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True, slots=True)
class ObserveResult:
    name: str
    namespace: str
    phase: str
    message: str
    stop_reason: StopReason
    started_at: str | None = None
    finished_at: str | None = None
    duration: str | None = None
    progress: str | None = None
    timed_out: bool = False
    # Only populated by a continuous watch.
    events: tuple[EventSummary, ...] | None = None

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {
            "name": self.name,
            "namespace": self.namespace,
            "phase": self.phase,
        }
        if self.message:
            out["message"] = self.message
        if self.started_at:
            out["startedAt"] = self.started_at
        if self.finished_at:
            out["finishedAt"] = self.finished_at
        if self.duration:
            out["duration"] = self.duration
        if self.progress:
            out["progress"] = self.progress
        if self.events is not None:
            out["events"] = [e.to_json() for e in self.events]
        out["timedOut"] = self.timed_out
        return out


def timeout_message(target: WatchTarget, phase: str) -> str:
    if target.timeout:
        return f"Watch timed out after {target.timeout}. Last phase: {phase}"
    return f"Watch timed out. Last phase: {phase}"


def synthesize(
    target: WatchTarget,
    status: WorkflowStatus | None,
    stop_reason: StopReason,
    *,
    now: datetime,
    events: tuple[EventSummary, ...] | None = None,
) -> ObserveResult:
    """Build the output record from the last known status and the stop reason."""

    if status is None:
        result = ObserveResult(
            name=target.name,
            namespace=target.namespace,
            phase=UNKNOWN_PHASE,
            message=NO_EVENTS_MESSAGE,
            stop_reason=stop_reason,
            events=events,
        )
    else:
        state = interpret(status, now=now)
        result = ObserveResult(
            name=target.name,
            namespace=target.namespace,
            phase=state.phase,
            message=state.message,
            stop_reason=stop_reason,
            started_at=state.started_at,
            finished_at=state.finished_at,
            duration=state.duration,
            progress=state.progress,
            events=events,
        )

    if stop_reason is StopReason.TIMED_OUT:
        return replace(result, message=timeout_message(target, result.phase), timed_out=True)
    return result


def render_narrative(result: ObserveResult) -> str:
    lines = [f'Workflow "{result.name}" in namespace "{result.namespace}": {result.phase}']
    if result.duration:
        lines[0] += f" (duration: {result.duration})"
    if result.timed_out:
        lines[0] += " [timed out]"
    if result.message:
        lines.append(result.message)

    if result.events is not None:
        if not result.events:
            lines.append("No events received.")
        else:
            lines.append(f"Events ({len(result.events)}):")
            for idx, event in enumerate(result.events, start=1):
                line = f"  {idx}. {event.type or '?'} {event.phase} at {event.timestamp}"
                if event.progress:
                    line += f" (progress {event.progress})"
                lines.append(line)

    return "\n".join(lines)
