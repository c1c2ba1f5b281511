"""Configuration for connecting to Argo Server.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Only Argo Server mode is supported: the REST API exposes every operation the
tools need, including the workflow event stream used by wait/watch.
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ArgoSettings(BaseSettings):
    """Settings for the Argo Server connection.

    Environment variables:
    - ARGO_SERVER                        (required, "host:port" or a full URL)
    - ARGO_TOKEN                         (optional)
    - ARGO_NAMESPACE                     (optional, default "default")
    - ARGO_SECURE                        (optional, default true)
    - ARGO_INSECURE_SKIP_VERIFY          (optional, default false)
    - ARGO_REQUEST_TIMEOUT_SECONDS       (optional)
    - ARGO_WATCH_READ_TIMEOUT_SECONDS    (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `ArgoSettings(_env_file=path_to_env)`.
    """

    argo_server: str = Field(
        default="",
        validation_alias="ARGO_SERVER",
        description="Argo Server address, e.g. 'localhost:2746' or 'https://argo.example.com'",
    )
    argo_token: str = Field(
        default="",
        validation_alias="ARGO_TOKEN",
        description="Bearer token used for Argo Server authentication",
    )
    namespace: str = Field(
        default="default",
        validation_alias="ARGO_NAMESPACE",
        description="Default namespace for operations",
    )
    secure: bool = Field(
        default=True,
        validation_alias="ARGO_SECURE",
        description="Use TLS when connecting to Argo Server",
    )
    insecure_skip_verify: bool = Field(
        default=False,
        validation_alias="ARGO_INSECURE_SKIP_VERIFY",
        description="Skip TLS certificate verification",
    )

    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="ARGO_REQUEST_TIMEOUT_SECONDS",
        description="Timeout applied to request/response API calls",
    )
    watch_read_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        validation_alias="ARGO_WATCH_READ_TIMEOUT_SECONDS",
        description=(
            "Socket read timeout for the workflow event stream. Unset means a watch "
            "is bounded only by the caller-supplied timeout."
        ),
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_server(self) -> ArgoSettings:
        if not self.argo_server.strip():
            raise ValueError("ARGO_SERVER is required")
        if not self.namespace.strip():
            self.namespace = "default"
        return self

    @property
    def base_url(self) -> str:
        """Argo Server base URL without a trailing slash."""

        server = self.argo_server.strip().rstrip("/")
        if "://" in server:
            return server
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{server}"

    @property
    def authorization(self) -> str:
        """Value for the Authorization header ("" when no token is configured)."""

        token = self.argo_token.strip()
        if not token:
            return ""
        # `argo auth token` already prints "Bearer <token>".
        if token.lower().startswith("bearer "):
            return token
        return f"Bearer {token}"
