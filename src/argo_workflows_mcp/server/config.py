"""Configuration for serving the MCP tools.

This is separate from :class:`argo_workflows_mcp.argo.config.ArgoSettings`: the
transport can be chosen and validated without Argo credentials.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Settings for the MCP transport.

    Environment variables:
    - MCP_TRANSPORT   ("stdio" or "http", default "stdio")
    - MCP_HTTP_HOST   (default "127.0.0.1")
    - MCP_HTTP_PORT   (default 8080)
    - LOG_LEVEL       (default "INFO")
    """

    transport: Literal["stdio", "http"] = Field(
        default="stdio",
        validation_alias="MCP_TRANSPORT",
        description="MCP transport: stdio for local clients, http for the SSE endpoint.",
    )
    http_host: str = Field(default="127.0.0.1", validation_alias="MCP_HTTP_HOST")
    http_port: int = Field(default=8080, ge=1, le=65535, validation_alias="MCP_HTTP_PORT")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")
