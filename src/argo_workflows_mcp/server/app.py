"""FastAPI app factory for the HTTP transport.

The MCP SSE endpoints (`/sse`, `/messages/`) are mounted at the root next to a
plain health check.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from argo_workflows_mcp import __version__
from argo_workflows_mcp.tools.server import create_server

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    mcp = create_server()

    app = FastAPI(
        title="Argo Workflows MCP",
        version=__version__,
        description="MCP tools for Argo Workflows over SSE.",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    # Registered routes take precedence over the mount.
    app.mount("/", mcp.sse_app())
    logger.info("HTTP transport configured", extra={"server": mcp.name})
    return app
