"""MCP server assembly."""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from argo_workflows_mcp.tools._app import mcp

# Import tools to trigger @mcp.tool() registration
from argo_workflows_mcp.tools.observe import wait_workflow, watch_workflow
from argo_workflows_mcp.tools.workflows import (
    delete_workflow,
    get_workflow,
    list_workflows,
    resubmit_workflow,
    resume_workflow,
    retry_workflow,
    stop_workflow,
    submit_workflow,
    suspend_workflow,
    terminate_workflow,
)

__all__ = [
    "create_server",
    "delete_workflow",
    "get_workflow",
    "list_workflows",
    "mcp",
    "resubmit_workflow",
    "resume_workflow",
    "retry_workflow",
    "stop_workflow",
    "submit_workflow",
    "suspend_workflow",
    "terminate_workflow",
    "wait_workflow",
    "watch_workflow",
]


def create_server() -> FastMCP:
    """Return the MCP server with all tools registered."""
    return mcp
