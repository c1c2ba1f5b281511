"""Argo Workflows MCP server.

Exposes Argo Workflows operations as MCP tools:
- configuration loaded from `.env`
- structured logging
- thin request/response tools over the Argo Server REST API
- streaming wait/watch tools built on the workflow event stream
"""

__version__ = "0.1.0"

from argo_workflows_mcp.argo.config import ArgoSettings

__all__ = ["__version__", "ArgoSettings"]
