"""Error taxonomy shared by the Argo client, the watch core and the tools."""

from __future__ import annotations


class ArgoMCPError(Exception):
    """Base class for errors surfaced to tool callers."""


class ConfigurationError(ArgoMCPError):
    """Settings are missing or invalid (e.g. ARGO_SERVER unset)."""


class InvalidInputError(ArgoMCPError, ValueError):
    """Caller-fixable input (bad name, timeout, manifest, ...).

    Always raised before any request reaches the backend.
    """


class BackendError(ArgoMCPError):
    """The Argo backend rejected a request or could not be reached."""

    def __init__(
        self,
        action: str,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        self.action = action
        self.message = message
        self.status_code = status_code
        super().__init__(action, message, status_code)

    def __str__(self) -> str:
        text = f"failed to {self.action}: {self.message}"
        if self.status_code is not None:
            text += f" (HTTP {self.status_code})"
        return text

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class WatchStreamError(BackendError):
    """A workflow event stream failed after it was established.

    Partial watch state is discarded when this is raised.
    """

    def __init__(self, message: str) -> None:
        super().__init__("receive workflow event", message)
