"""Workflow operations behind the MCP tools and the CLI.

Every method validates its input before it talks to Argo Server, so invalid
input never produces a request.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from datetime import UTC, datetime

from argo_workflows_mcp.argo.client import ArgoClient
from argo_workflows_mcp.argo.models import Workflow
from argo_workflows_mcp.errors import InvalidInputError
from argo_workflows_mcp.tools.helpers import (
    apply_overrides,
    parse_manifest,
    parse_parameters,
    resolve_namespace,
    validate_name,
)
from argo_workflows_mcp.tools.models import (
    DeletedWorkflow,
    ParameterInfo,
    ResubmittedWorkflow,
    RetriedWorkflow,
    SubmittedWorkflow,
    WorkflowDetails,
    WorkflowList,
    WorkflowPhase,
    WorkflowSummary,
)
from argo_workflows_mcp.watch import ObserveResult, RequestScope, WatchTarget, observe
from argo_workflows_mcp.watch.events import WorkflowPhase as Phase
from argo_workflows_mcp.watch.events import format_timestamp, interpret, normalize_phase

logger = logging.getLogger(__name__)

VALID_PHASES: tuple[str, ...] = tuple(p.value for p in Phase)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _phase_output(wf: Workflow) -> WorkflowPhase:
    return WorkflowPhase(
        name=wf.name,
        namespace=wf.namespace,
        phase=normalize_phase(wf.status.phase),
        message=wf.status.message or None,
    )


class WorkflowService:
    def __init__(self, *, client: ArgoClient, clock: Callable[[], datetime] = _utc_now) -> None:
        self._client = client
        self._clock = clock

    @property
    def client(self) -> ArgoClient:
        return self._client

    def _namespace(self, namespace: str | None) -> str:
        return resolve_namespace(namespace, self._client.default_namespace)

    def submit(
        self,
        *,
        manifest: str,
        namespace: str = "",
        generate_name: str = "",
        labels: Mapping[str, str] | None = None,
        parameters: Sequence[str] | None = None,
    ) -> SubmittedWorkflow:
        overrides = parse_parameters(parameters)
        parsed = parse_manifest(manifest)
        metadata = parsed.get("metadata")
        manifest_ns = metadata.get("namespace") if isinstance(metadata, dict) else None
        if not isinstance(manifest_ns, str) or not manifest_ns.strip():
            manifest_ns = self._client.default_namespace
        ns = resolve_namespace(namespace, manifest_ns)
        body = apply_overrides(
            parsed,
            namespace=ns,
            generate_name=generate_name,
            labels=labels,
            parameters=overrides,
        )

        created = self._client.create_workflow(ns, body)
        return SubmittedWorkflow(
            name=created.name,
            namespace=created.namespace or ns,
            uid=created.uid,
            phase=normalize_phase(created.status.phase),
            message=created.status.message or None,
        )

    def get(self, *, name: str, namespace: str = "") -> WorkflowDetails:
        wf_name = validate_name(name)
        ns = self._namespace(namespace)

        wf = self._client.get_workflow(ns, wf_name)
        state = interpret(wf.status, now=self._clock())
        return WorkflowDetails(
            name=wf.name or wf_name,
            namespace=wf.namespace or ns,
            uid=wf.uid,
            phase=state.phase,
            message=state.message or None,
            started_at=state.started_at,
            finished_at=state.finished_at,
            duration=state.duration,
            progress=state.progress,
            parameters=[ParameterInfo(name=p.name, value=p.value) for p in wf.parameters],
        )

    def list_workflows(
        self,
        *,
        namespace: str | None = None,
        labels: str = "",
        status: Sequence[str] | None = None,
        limit: int = 0,
    ) -> WorkflowList:
        """List workflows, newest first.

        `namespace=None` uses the default namespace; an explicit empty string
        lists across all namespaces.
        """

        if limit < 0:
            raise InvalidInputError("limit cannot be negative")
        wanted: set[str] = set()
        for raw in status or ():
            phase = raw.strip()
            if phase not in VALID_PHASES:
                raise InvalidInputError(
                    f"invalid status {raw!r}: must be one of {', '.join(VALID_PHASES)}"
                )
            wanted.add(phase)

        ns = self._client.default_namespace if namespace is None else namespace.strip()
        workflows = self._client.list_workflows(ns, label_selector=labels.strip(), limit=limit)

        summaries: list[WorkflowSummary] = []
        for wf in workflows:
            phase = normalize_phase(wf.status.phase)
            if wanted and phase not in wanted:
                continue
            summaries.append(
                WorkflowSummary(
                    name=wf.name,
                    namespace=wf.namespace,
                    phase=phase,
                    created_at=format_timestamp(wf.created_at) if wf.created_at else "",
                    finished_at=(
                        format_timestamp(wf.status.finished_at)
                        if wf.status.finished_at
                        else None
                    ),
                    message=wf.status.message or None,
                )
            )

        # RFC 3339 UTC strings sort chronologically.
        summaries.sort(key=lambda s: s.created_at, reverse=True)
        return WorkflowList(workflows=summaries, total=len(summaries))

    def delete(self, *, name: str, namespace: str = "", force: bool = False) -> DeletedWorkflow:
        wf_name = validate_name(name)
        ns = self._namespace(namespace)

        self._client.delete_workflow(ns, wf_name, force=force)
        return DeletedWorkflow(
            name=wf_name,
            namespace=ns,
            message=f'Workflow "{wf_name}" deleted successfully',
        )

    def resubmit(
        self,
        *,
        name: str,
        namespace: str = "",
        parameters: Sequence[str] | None = None,
        memoized: bool = False,
    ) -> ResubmittedWorkflow:
        wf_name = validate_name(name)
        ns = self._namespace(namespace)
        overrides = parse_parameters(parameters)

        wf = self._client.resubmit_workflow(
            ns,
            wf_name,
            memoized=memoized,
            parameters=[f"{k}={v}" for k, v in overrides],
        )
        logger.info(
            "Resubmitted workflow",
            extra={"workflow": wf_name, "new_workflow": wf.name, "namespace": ns},
        )
        return ResubmittedWorkflow(
            name=wf.name,
            namespace=wf.namespace or ns,
            uid=wf.uid,
            phase=normalize_phase(wf.status.phase),
            message=wf.status.message or None,
            original_workflow=wf_name,
        )

    def suspend(self, *, name: str, namespace: str = "") -> WorkflowPhase:
        wf_name = validate_name(name)
        ns = self._namespace(namespace)
        return _phase_output(self._client.suspend_workflow(ns, wf_name))

    def resume(
        self, *, name: str, namespace: str = "", node_field_selector: str = ""
    ) -> WorkflowPhase:
        wf_name = validate_name(name)
        ns = self._namespace(namespace)
        return _phase_output(
            self._client.resume_workflow(
                ns, wf_name, node_field_selector=node_field_selector.strip()
            )
        )

    def retry(
        self,
        *,
        name: str,
        namespace: str = "",
        parameters: Sequence[str] | None = None,
        restart_successful: bool = False,
        node_field_selector: str = "",
    ) -> RetriedWorkflow:
        """Retry a failed workflow in place, from the failed nodes onwards."""

        wf_name = validate_name(name)
        ns = self._namespace(namespace)
        overrides = parse_parameters(parameters)

        wf = self._client.retry_workflow(
            ns,
            wf_name,
            restart_successful=restart_successful,
            node_field_selector=node_field_selector.strip(),
            parameters=[f"{k}={v}" for k, v in overrides],
        )
        logger.info("Retried workflow", extra={"workflow": wf_name, "namespace": ns})
        return RetriedWorkflow(
            name=wf.name or wf_name,
            namespace=wf.namespace or ns,
            uid=wf.uid,
            # The server may answer before the controller has picked the retry up.
            phase=normalize_phase(wf.status.phase) if wf.status.phase else Phase.RUNNING.value,
            message=wf.status.message or None,
        )

    def stop(
        self,
        *,
        name: str,
        namespace: str = "",
        node_field_selector: str = "",
        message: str = "",
    ) -> WorkflowPhase:
        wf_name = validate_name(name)
        ns = self._namespace(namespace)

        wf = self._client.stop_workflow(
            ns,
            wf_name,
            node_field_selector=node_field_selector.strip(),
            message=message.strip(),
        )
        logger.info("Stopped workflow", extra={"workflow": wf_name, "namespace": ns})
        return _phase_output(wf)

    def terminate(self, *, name: str, namespace: str = "") -> WorkflowPhase:
        wf_name = validate_name(name)
        ns = self._namespace(namespace)

        wf = self._client.terminate_workflow(ns, wf_name)
        logger.info("Terminated workflow", extra={"workflow": wf_name, "namespace": ns})
        return _phase_output(wf)

    def wait(
        self,
        *,
        name: str,
        namespace: str = "",
        timeout: str = "",
        scope: RequestScope | None = None,
    ) -> ObserveResult:
        """Block until the workflow finishes, the stream ends or `timeout` elapses."""

        return self._observe(name, namespace, timeout, scope=scope, retain_event_log=False)

    def watch(
        self,
        *,
        name: str,
        namespace: str = "",
        timeout: str = "",
        scope: RequestScope | None = None,
    ) -> ObserveResult:
        """Like `wait`, but also returns a summary of every event received."""

        return self._observe(name, namespace, timeout, scope=scope, retain_event_log=True)

    def _observe(
        self,
        name: str,
        namespace: str,
        timeout: str,
        *,
        scope: RequestScope | None,
        retain_event_log: bool,
    ) -> ObserveResult:
        target = WatchTarget.parse(name=name, namespace="", timeout=timeout)
        target = replace(target, namespace=self._namespace(namespace))
        return observe(
            self._client,
            target,
            retain_event_log=retain_event_log,
            scope=scope,
            clock=self._clock,
        )
