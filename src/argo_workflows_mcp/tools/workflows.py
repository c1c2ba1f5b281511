"""Request/response workflow management tools."""

from __future__ import annotations

import asyncio
from typing import Any

from argo_workflows_mcp.tools import _app

mcp = _app.mcp


@mcp.tool()
async def submit_workflow(
    manifest: str,
    namespace: str = "",
    generate_name: str = "",
    labels: dict[str, str] | None = None,
    parameters: list[str] | None = None,
) -> dict[str, Any]:
    """Submit a workflow from a YAML manifest.

    Args:
        manifest: Workflow manifest as YAML (kind must be Workflow)
        namespace: Target namespace; defaults to the manifest's, then the server default
        generate_name: Overrides metadata.generateName (and drops metadata.name)
        labels: Extra labels merged into metadata.labels
        parameters: Argument overrides as key=value

    Returns:
        Name, namespace, uid and initial phase of the created workflow
    """
    with _app.tool_errors():
        service = _app.get_service()
        result = await asyncio.to_thread(
            service.submit,
            manifest=manifest,
            namespace=namespace,
            generate_name=generate_name,
            labels=labels,
            parameters=parameters,
        )
    return result.to_json()


@mcp.tool()
async def get_workflow(name: str, namespace: str = "") -> dict[str, Any]:
    """Get the status of a workflow.

    Args:
        name: Workflow name
        namespace: Namespace; defaults to the server default

    Returns:
        Phase, message, timestamps, duration, progress and parameters
    """
    with _app.tool_errors():
        service = _app.get_service()
        result = await asyncio.to_thread(service.get, name=name, namespace=namespace)
    return result.to_json()


@mcp.tool()
async def list_workflows(
    namespace: str | None = None,
    labels: str = "",
    status: list[str] | None = None,
    limit: int = 0,
) -> dict[str, Any]:
    """List workflows, newest first.

    Args:
        namespace: Namespace; omit for the server default, "" for all namespaces
        labels: Kubernetes label selector, e.g. "app=etl,env!=dev"
        status: Only these phases (Pending, Running, Succeeded, Failed, Error)
        limit: Maximum number of workflows requested from the server (0 = no limit)

    Returns:
        Dictionary with 'workflows' list and 'total'
    """
    with _app.tool_errors():
        service = _app.get_service()
        result = await asyncio.to_thread(
            service.list_workflows,
            namespace=namespace,
            labels=labels,
            status=status,
            limit=limit,
        )
    return result.to_json()


@mcp.tool()
async def delete_workflow(name: str, namespace: str = "", force: bool = False) -> dict[str, Any]:
    """Delete a workflow.

    Args:
        name: Workflow name
        namespace: Namespace; defaults to the server default
        force: Skip finalizers
    """
    with _app.tool_errors():
        service = _app.get_service()
        result = await asyncio.to_thread(
            service.delete, name=name, namespace=namespace, force=force
        )
    return result.to_json()


@mcp.tool()
async def resubmit_workflow(
    name: str,
    namespace: str = "",
    parameters: list[str] | None = None,
    memoized: bool = False,
) -> dict[str, Any]:
    """Resubmit a workflow as a new workflow.

    Args:
        name: Workflow to resubmit
        namespace: Namespace; defaults to the server default
        parameters: Argument overrides as key=value
        memoized: Reuse the results of succeeded nodes

    Returns:
        The new workflow, with 'originalWorkflow' naming the source
    """
    with _app.tool_errors():
        service = _app.get_service()
        result = await asyncio.to_thread(
            service.resubmit,
            name=name,
            namespace=namespace,
            parameters=parameters,
            memoized=memoized,
        )
    return result.to_json()


@mcp.tool()
async def suspend_workflow(name: str, namespace: str = "") -> dict[str, Any]:
    """Suspend a running workflow."""
    with _app.tool_errors():
        service = _app.get_service()
        result = await asyncio.to_thread(service.suspend, name=name, namespace=namespace)
    return result.to_json()


@mcp.tool()
async def resume_workflow(
    name: str, namespace: str = "", node_field_selector: str = ""
) -> dict[str, Any]:
    """Resume a suspended workflow.

    Args:
        name: Workflow name
        namespace: Namespace; defaults to the server default
        node_field_selector: Resume only matching nodes, e.g. "displayName=approve"
    """
    with _app.tool_errors():
        service = _app.get_service()
        result = await asyncio.to_thread(
            service.resume,
            name=name,
            namespace=namespace,
            node_field_selector=node_field_selector,
        )
    return result.to_json()


@mcp.tool()
async def retry_workflow(
    name: str,
    namespace: str = "",
    parameters: list[str] | None = None,
    restart_successful: bool = False,
    node_field_selector: str = "",
) -> dict[str, Any]:
    """Retry a failed workflow from the point of failure.

    Args:
        name: Workflow name
        namespace: Namespace; defaults to the server default
        parameters: Argument overrides as key=value
        restart_successful: Also restart succeeded nodes matching node_field_selector
        node_field_selector: Nodes to restart, e.g. "phase=Failed"
    """
    with _app.tool_errors():
        service = _app.get_service()
        result = await asyncio.to_thread(
            service.retry,
            name=name,
            namespace=namespace,
            parameters=parameters,
            restart_successful=restart_successful,
            node_field_selector=node_field_selector,
        )
    return result.to_json()


@mcp.tool()
async def stop_workflow(
    name: str, namespace: str = "", node_field_selector: str = "", message: str = ""
) -> dict[str, Any]:
    """Stop a running workflow gracefully; exit handlers still run.

    Use terminate_workflow to end it immediately instead.

    Args:
        name: Workflow name
        namespace: Namespace; defaults to the server default
        node_field_selector: Stop only matching nodes
        message: Message to record on the workflow
    """
    with _app.tool_errors():
        service = _app.get_service()
        result = await asyncio.to_thread(
            service.stop,
            name=name,
            namespace=namespace,
            node_field_selector=node_field_selector,
            message=message,
        )
    return result.to_json()


@mcp.tool()
async def terminate_workflow(name: str, namespace: str = "") -> dict[str, Any]:
    """Terminate a workflow immediately, skipping exit handlers."""
    with _app.tool_errors():
        service = _app.get_service()
        result = await asyncio.to_thread(service.terminate, name=name, namespace=namespace)
    return result.to_json()
