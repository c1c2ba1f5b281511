"""Streaming wait/watch tools.

The watch runs on a worker thread. If the tool call is cancelled, the
request scope is cancelled too, which wakes the blocked receive so the
thread and its HTTP stream are released promptly.
"""

from __future__ import annotations

import asyncio
from typing import Any

from argo_workflows_mcp.tools import _app
from argo_workflows_mcp.watch import ObserveResult, RequestScope, render_narrative

mcp = _app.mcp


def _output(result: ObserveResult) -> dict[str, Any]:
    out = result.to_json()
    out["summary"] = render_narrative(result)
    return out


@mcp.tool()
async def wait_workflow(name: str, namespace: str = "", timeout: str = "") -> dict[str, Any]:
    """Wait for a workflow to finish.

    Returns when the workflow reaches Succeeded, Failed or Error, when the
    event stream ends, or when the timeout elapses (timedOut=true).

    Args:
        name: Workflow name
        namespace: Namespace; defaults to the server default
        timeout: Go-style duration such as "30s", "5m", "1h30m"; empty waits indefinitely

    Returns:
        Final phase, message, timestamps, duration and a text summary
    """
    scope = RequestScope()
    try:
        with _app.tool_errors():
            service = _app.get_service()
            result = await asyncio.to_thread(
                service.wait, name=name, namespace=namespace, timeout=timeout, scope=scope
            )
    finally:
        scope.cancel()
    return _output(result)


@mcp.tool()
async def watch_workflow(name: str, namespace: str = "", timeout: str = "") -> dict[str, Any]:
    """Watch a workflow and collect the events it emits until it finishes.

    Args:
        name: Workflow name
        namespace: Namespace; defaults to the server default
        timeout: Go-style duration such as "30s", "5m", "1h30m"; empty watches indefinitely

    Returns:
        Same fields as wait_workflow plus 'events', in arrival order
    """
    scope = RequestScope()
    try:
        with _app.tool_errors():
            service = _app.get_service()
            result = await asyncio.to_thread(
                service.watch, name=name, namespace=namespace, timeout=timeout, scope=scope
            )
    finally:
        scope.cancel()
    return _output(result)
