"""Shared MCP application state: the server instance and the workflow service."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import ValidationError

from argo_workflows_mcp.argo.client import ArgoClient
from argo_workflows_mcp.argo.config import ArgoSettings
from argo_workflows_mcp.errors import ArgoMCPError, ConfigurationError
from argo_workflows_mcp.tools.service import WorkflowService

logger = logging.getLogger(__name__)

INSTRUCTIONS = """
Argo Workflows server.

Capabilities:
- Submit workflows from YAML manifests
- Get, list and delete workflows
- Resubmit or retry workflows
- Suspend and resume workflows; stop or terminate them
- Wait for a workflow to finish, or watch it and collect its events

wait_workflow and watch_workflow accept a Go-style timeout such as "30s",
"5m" or "1h30m". Timing out is not an error: the result has timedOut=true and
reports the last phase seen.
"""

_service: WorkflowService | None = None
_service_lock = threading.Lock()


def get_service() -> WorkflowService:
    """Return the process-wide service, creating it from the environment on first use."""

    global _service
    with _service_lock:
        if _service is None:
            try:
                settings = ArgoSettings()
            except ValidationError as e:
                raise ConfigurationError(f"invalid Argo settings: {e}") from e
            _service = WorkflowService(client=ArgoClient.from_settings(settings))
        return _service


def set_service(service: WorkflowService | None) -> None:
    """Install (or, with None, drop and close) the process-wide service."""

    global _service
    with _service_lock:
        previous, _service = _service, service
    if previous is not None and previous is not service:
        previous.client.close()


@contextmanager
def tool_errors() -> Iterator[None]:
    """Report our errors to the MCP client as tool errors."""

    try:
        yield
    except ArgoMCPError as e:
        logger.warning("Tool call failed", extra={"error": str(e)})
        raise ToolError(str(e)) from e


mcp = FastMCP("argo-workflows-mcp", instructions=INSTRUCTIONS)
