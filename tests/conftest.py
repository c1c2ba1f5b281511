"""Test configuration and fixtures."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

import pytest

from argo_workflows_mcp.argo.models import WatchEvent, Workflow, WorkflowStatus
from argo_workflows_mcp.watch.scope import RequestScope
from argo_workflows_mcp.watch.source import EndOfStream

ARGO_ENV_VARS = (
    "ARGO_SERVER",
    "ARGO_TOKEN",
    "ARGO_NAMESPACE",
    "ARGO_SECURE",
    "ARGO_INSECURE_SKIP_VERIFY",
    "ARGO_REQUEST_TIMEOUT_SECONDS",
    "ARGO_WATCH_READ_TIMEOUT_SECONDS",
    "MCP_TRANSPORT",
    "MCP_HTTP_HOST",
    "MCP_HTTP_PORT",
    "LOG_LEVEL",
)

T0 = datetime(2025, 1, 1, 10, 0, 0, tzinfo=UTC)


def make_event(
    phase: str,
    *,
    type: str = "MODIFIED",
    name: str = "hello",
    namespace: str = "default",
    message: str = "",
    started_at: datetime | None = T0,
    finished_at: datetime | None = None,
    progress: str = "",
) -> WatchEvent:
    return WatchEvent(
        type=type,
        workflow=Workflow(
            name=name,
            namespace=namespace,
            status=WorkflowStatus(
                phase=phase,
                message=message,
                started_at=started_at,
                finished_at=finished_at,
                progress=progress,
            ),
        ),
    )


class FakeSubscription:
    """Replays a list of events / exceptions.

    Once the list is exhausted it either ends the stream or, with `hang=True`,
    blocks until its scope completes (like a quiet live stream).
    """

    def __init__(self, items: Iterable[object], scope: RequestScope, *, hang: bool = False) -> None:
        self._items = list(items)
        self._scope = scope
        self._hang = hang
        self.received = 0
        self.closed = False

    def recv(self) -> WatchEvent:
        self._scope.raise_if_done()
        if self._items:
            item = self._items.pop(0)
            self.received += 1
            if isinstance(item, BaseException):
                raise item
            assert isinstance(item, WatchEvent)
            return item
        if self._hang:
            released = threading.Event()
            self._scope.add_done_callback(released.set)
            released.wait()
            self._scope.raise_if_done()
        raise EndOfStream()

    def close(self) -> None:
        self.closed = True


class FakeSource:
    """A `WorkflowEventSource` counting subscriptions."""

    def __init__(self, items: Iterable[object] = (), *, hang: bool = False) -> None:
        self._items = list(items)
        self._hang = hang
        self.calls: list[tuple[str, str]] = []
        self.subscriptions: list[FakeSubscription] = []
        self.scopes: list[RequestScope] = []

    def watch_workflows(
        self, *, namespace: str, name: str, scope: RequestScope
    ) -> FakeSubscription:
        self.calls.append((namespace, name))
        self.scopes.append(scope)
        sub = FakeSubscription(self._items, scope, hang=self._hang)
        self.subscriptions.append(sub)
        return sub


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> pytest.MonkeyPatch:
    """Clear Argo/MCP environment variables and run from an empty directory (no .env)."""
    for name in ARGO_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """A clock pinned to 10:05:00 on the test day."""
    return lambda: datetime(2025, 1, 1, 10, 5, 0, tzinfo=UTC)
