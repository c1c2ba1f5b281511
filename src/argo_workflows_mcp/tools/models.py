"""Pydantic models for tool results."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Output(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ParameterInfo(_Output):
    name: str
    value: str | None = None


class SubmittedWorkflow(_Output):
    name: str
    namespace: str
    uid: str
    phase: str
    message: str | None = None


class WorkflowDetails(_Output):
    name: str
    namespace: str
    uid: str
    phase: str
    message: str | None = None
    started_at: str | None = Field(default=None, alias="startedAt")
    finished_at: str | None = Field(default=None, alias="finishedAt")
    duration: str | None = None
    progress: str | None = None
    parameters: list[ParameterInfo] = Field(default_factory=list)


class WorkflowSummary(_Output):
    name: str
    namespace: str
    phase: str
    created_at: str = Field(default="", alias="createdAt")
    finished_at: str | None = Field(default=None, alias="finishedAt")
    message: str | None = None


class WorkflowList(_Output):
    workflows: list[WorkflowSummary] = Field(default_factory=list)
    total: int = 0


class DeletedWorkflow(_Output):
    name: str
    namespace: str
    message: str


class ResubmittedWorkflow(_Output):
    name: str
    namespace: str
    uid: str
    phase: str
    message: str | None = None
    original_workflow: str = Field(alias="originalWorkflow")


class RetriedWorkflow(_Output):
    name: str
    namespace: str
    uid: str
    phase: str
    message: str | None = None


class WorkflowPhase(_Output):
    """Result of suspend, resume, stop and terminate."""

    name: str
    namespace: str
    phase: str
    message: str | None = None
