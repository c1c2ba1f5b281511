"""Interpretation of workflow snapshots taken from the event stream."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from argo_workflows_mcp.argo.models import WatchEvent, WorkflowStatus
from argo_workflows_mcp.watch.duration import format_duration


class WorkflowPhase(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    ERROR = "Error"


TERMINAL_PHASES: frozenset[str] = frozenset(
    {WorkflowPhase.SUCCEEDED.value, WorkflowPhase.FAILED.value, WorkflowPhase.ERROR.value}
)

_KNOWN_PHASES: frozenset[str] = frozenset(p.value for p in WorkflowPhase)


def normalize_phase(phase: str) -> str:
    """Return the phase for display; empty or unrecognised phases read as Pending."""

    return phase if phase in _KNOWN_PHASES else WorkflowPhase.PENDING.value


def is_terminal_phase(phase: str) -> bool:
    return phase in TERMINAL_PHASES


def format_timestamp(value: datetime) -> str:
    """RFC 3339 in UTC with second precision, e.g. 2025-01-01T10:00:00Z."""

    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True, slots=True)
class WorkflowState:
    """A workflow status reshaped for output."""

    phase: str
    message: str
    started_at: str | None = None
    finished_at: str | None = None
    duration: str | None = None
    progress: str | None = None


def interpret(status: WorkflowStatus, *, now: datetime) -> WorkflowState:
    """Interpret a workflow status.

    The duration runs from `started_at` to `finished_at`, or to `now` while the
    workflow has not finished. It is omitted when the workflow has not started.
    """

    duration: str | None = None
    if status.started_at is not None:
        end = status.finished_at or now
        duration = format_duration(end - status.started_at)

    return WorkflowState(
        phase=normalize_phase(status.phase),
        message=status.message,
        started_at=format_timestamp(status.started_at) if status.started_at else None,
        finished_at=format_timestamp(status.finished_at) if status.finished_at else None,
        duration=duration,
        progress=status.progress or None,
    )


@dataclass(frozen=True, slots=True)
class EventSummary:
    """One received event, as retained by a continuous watch."""

    type: str
    phase: str
    timestamp: str
    progress: str | None = None

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {
            "type": self.type,
            "phase": self.phase,
            "timestamp": self.timestamp,
        }
        if self.progress:
            out["progress"] = self.progress
        return out


def summarize_event(event: WatchEvent, *, received_at: datetime) -> EventSummary:
    if event.workflow is None:
        raise ValueError("cannot summarize an event without a workflow")
    status = event.workflow.status
    return EventSummary(
        type=event.type,
        phase=normalize_phase(status.phase),
        timestamp=format_timestamp(received_at),
        progress=status.progress or None,
    )
