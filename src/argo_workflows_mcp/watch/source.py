"""The event source contract consumed by the watch controller."""

from __future__ import annotations

from typing import Protocol

from argo_workflows_mcp.argo.models import WatchEvent
from argo_workflows_mcp.watch.scope import RequestScope


class EndOfStream(Exception):
    """The event stream closed cleanly; no more events will arrive."""


class EventSubscription(Protocol):
    """A pull-based stream of workflow events.

    `recv` blocks until the next event arrives and raises:
        EndOfStream on a clean close,
        DeadlineExceeded / Cancelled when the subscription's scope completes
        or the backend reports a deadline,
        anything else for transport failures.
    """

    def recv(self) -> WatchEvent: ...

    def close(self) -> None: ...


class WorkflowEventSource(Protocol):
    def watch_workflows(
        self, *, namespace: str, name: str, scope: RequestScope
    ) -> EventSubscription: ...
