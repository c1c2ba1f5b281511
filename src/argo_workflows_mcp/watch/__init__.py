"""Streaming observation of a single workflow (wait / watch)."""

from argo_workflows_mcp.watch.controller import WatchTarget, observe
from argo_workflows_mcp.watch.result import ObserveResult, StopReason, render_narrative
from argo_workflows_mcp.watch.scope import RequestScope

__all__ = [
    "ObserveResult",
    "RequestScope",
    "StopReason",
    "WatchTarget",
    "observe",
    "render_narrative",
]
