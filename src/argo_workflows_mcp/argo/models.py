"""Minimal views over Argo Workflow JSON objects.

Only the fields the tools and the watch core need are parsed. Parsing is
lenient: missing or mistyped fields fall back to empty values instead of
failing, because the event stream must survive partial objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime


def parse_timestamp(value: object) -> datetime | None:
    """Parse a Kubernetes RFC 3339 timestamp; unset or invalid values yield None."""

    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _dict(value: object) -> dict[str, object]:
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True, slots=True)
class WorkflowStatus:
    """The status block of a workflow (the snapshot the watch core folds)."""

    phase: str = ""
    message: str = ""
    started_at: datetime | None = None
    finished_at: datetime | None = None
    progress: str = ""

    @staticmethod
    def from_json(obj: dict[str, object]) -> WorkflowStatus:
        return WorkflowStatus(
            phase=_str(obj.get("phase")),
            message=_str(obj.get("message")),
            started_at=parse_timestamp(obj.get("startedAt")),
            finished_at=parse_timestamp(obj.get("finishedAt")),
            progress=_str(obj.get("progress")),
        )


@dataclass(frozen=True, slots=True)
class WorkflowParameter:
    name: str
    value: str | None = None


@dataclass(frozen=True, slots=True)
class Workflow:
    """Minimal workflow metadata returned from Argo Server."""

    name: str
    namespace: str
    uid: str = ""
    created_at: datetime | None = None
    labels: dict[str, str] = field(default_factory=dict)
    parameters: tuple[WorkflowParameter, ...] = ()
    status: WorkflowStatus = field(default_factory=WorkflowStatus)

    @staticmethod
    def from_json(obj: dict[str, object]) -> Workflow:
        metadata = _dict(obj.get("metadata"))
        spec = _dict(obj.get("spec"))
        arguments = _dict(spec.get("arguments"))

        labels_raw = _dict(metadata.get("labels"))
        labels = {k: v for k, v in labels_raw.items() if isinstance(v, str)}

        parameters: list[WorkflowParameter] = []
        params_raw = arguments.get("parameters")
        if isinstance(params_raw, list):
            for item in params_raw:
                if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                    continue
                value = item.get("value")
                parameters.append(
                    WorkflowParameter(
                        name=item["name"],
                        value=value if isinstance(value, str) else None,
                    )
                )

        return Workflow(
            name=_str(metadata.get("name")),
            namespace=_str(metadata.get("namespace")),
            uid=_str(metadata.get("uid")),
            created_at=parse_timestamp(metadata.get("creationTimestamp")),
            labels=labels,
            parameters=tuple(parameters),
            status=WorkflowStatus.from_json(_dict(obj.get("status"))),
        )


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """One frame of the workflow event stream.

    `workflow` is None when the frame carried no object; such events hold no
    usable state.
    """

    type: str
    workflow: Workflow | None = None

    @staticmethod
    def from_json(obj: dict[str, object]) -> WatchEvent:
        raw_object = obj.get("object")
        workflow = Workflow.from_json(raw_object) if isinstance(raw_object, dict) else None
        return WatchEvent(type=_str(obj.get("type")), workflow=workflow)
