"""Unit tests for the wait/watch receive loop (fake event sources)."""

from __future__ import annotations

from datetime import timedelta

import pytest
from conftest import T0, FakeSource, make_event

from argo_workflows_mcp.argo.models import WatchEvent
from argo_workflows_mcp.errors import BackendError, InvalidInputError, WatchStreamError
from argo_workflows_mcp.watch import RequestScope, StopReason, WatchTarget, observe
from argo_workflows_mcp.watch.scope import DeadlineExceeded


def _target(timeout: str | None = None) -> WatchTarget:
    return WatchTarget.parse(name="hello", namespace="default", timeout=timeout)


def test_stops_at_first_terminal_phase(fixed_clock) -> None:
    source = FakeSource(
        [
            make_event("Pending", type="ADDED", started_at=None),
            make_event("Running"),
            make_event("Succeeded", finished_at=T0 + timedelta(minutes=2), message="ok"),
            make_event("Succeeded"),
        ]
    )

    result = observe(source, _target(), clock=fixed_clock)

    assert source.calls == [("default", "hello")]
    assert source.subscriptions[0].received == 3
    assert source.subscriptions[0].closed
    assert result.stop_reason is StopReason.TERMINAL_PHASE
    assert result.phase == "Succeeded"
    assert result.message == "ok"
    assert result.started_at == "2025-01-01T10:00:00Z"
    assert result.finished_at == "2025-01-01T10:02:00Z"
    assert result.duration == "2m0s"
    assert result.timed_out is False
    assert result.events is None
    assert "events" not in result.to_json()


@pytest.mark.parametrize("phase", ["Failed", "Error"])
def test_unsuccessful_terminal_phases_stop_the_wait(phase: str, fixed_clock) -> None:
    source = FakeSource([make_event("Running"), make_event(phase, message="boom")])

    result = observe(source, _target("1h"), clock=fixed_clock)

    assert result.stop_reason is StopReason.TERMINAL_PHASE
    assert result.phase == phase
    assert result.message == "boom"
    assert not result.timed_out


def test_stream_end_returns_last_state(fixed_clock) -> None:
    source = FakeSource([make_event("Pending"), make_event("Running", progress="1/2")])

    result = observe(source, _target(), clock=fixed_clock)

    assert result.stop_reason is StopReason.STREAM_ENDED
    assert result.phase == "Running"
    assert result.progress == "1/2"
    # Still running: measured up to the clock.
    assert result.duration == "5m0s"
    assert not result.timed_out


def test_empty_stream_reports_unknown(fixed_clock) -> None:
    result = observe(FakeSource([]), _target(), clock=fixed_clock)

    assert result.phase == "Unknown"
    assert result.message == "No workflow events received"
    assert result.stop_reason is StopReason.STREAM_ENDED
    assert result.to_json() == {
        "name": "hello",
        "namespace": "default",
        "phase": "Unknown",
        "message": "No workflow events received",
        "timedOut": False,
    }


def test_timeout_reports_last_phase(fixed_clock) -> None:
    source = FakeSource([make_event("Running")], hang=True)

    result = observe(source, _target("50ms"), clock=fixed_clock)

    assert result.stop_reason is StopReason.TIMED_OUT
    assert result.timed_out is True
    assert result.phase == "Running"
    assert result.message == "Watch timed out after 50ms. Last phase: Running"
    assert result.to_json()["timedOut"] is True
    assert source.subscriptions[0].closed


def test_timeout_without_events(fixed_clock) -> None:
    source = FakeSource([], hang=True)

    result = observe(source, _target("10ms"), clock=fixed_clock)

    assert result.timed_out
    assert result.phase == "Unknown"
    assert result.message == "Watch timed out after 10ms. Last phase: Unknown"


def test_backend_deadline_reads_as_timeout(fixed_clock) -> None:
    source = FakeSource([make_event("Running"), DeadlineExceeded("context deadline exceeded")])

    result = observe(source, _target(), clock=fixed_clock)

    assert result.timed_out
    assert result.phase == "Running"
    assert result.message == "Watch timed out. Last phase: Running"


def test_caller_cancellation_reads_as_timeout(fixed_clock) -> None:
    parent = RequestScope()
    parent.cancel()
    source = FakeSource([make_event("Running")], hang=True)

    result = observe(source, _target(), scope=parent, clock=fixed_clock)

    assert result.timed_out
    assert result.phase == "Unknown"


def test_events_without_object_are_skipped(fixed_clock) -> None:
    source = FakeSource(
        [
            make_event("Running"),
            WatchEvent(type="MODIFIED"),
            WatchEvent(type="BOOKMARK"),
        ]
    )

    result = observe(source, _target(), retain_event_log=True, clock=fixed_clock)

    assert result.phase == "Running"
    assert result.events is not None
    assert len(result.events) == 1


def test_transport_error_is_raised_without_partial_result(fixed_clock) -> None:
    source = FakeSource([make_event("Running"), ConnectionResetError("connection reset")])

    with pytest.raises(WatchStreamError, match="connection reset"):
        observe(source, _target(), clock=fixed_clock)
    assert source.subscriptions[0].closed


def test_stream_error_passes_through(fixed_clock) -> None:
    error = WatchStreamError("malformed event frame")
    source = FakeSource([error])

    with pytest.raises(WatchStreamError) as exc_info:
        observe(source, _target(), clock=fixed_clock)
    assert exc_info.value is error


def test_watch_retains_events_in_arrival_order(fixed_clock) -> None:
    source = FakeSource(
        [
            make_event("Pending", type="ADDED", started_at=None),
            make_event("Running", progress="0/2"),
            make_event("Running", progress="1/2"),
            make_event("Succeeded", progress="2/2", finished_at=T0 + timedelta(seconds=45)),
        ]
    )

    result = observe(source, _target(), retain_event_log=True, clock=fixed_clock)

    assert result.events is not None
    assert [(e.type, e.phase, e.progress) for e in result.events] == [
        ("ADDED", "Pending", None),
        ("MODIFIED", "Running", "0/2"),
        ("MODIFIED", "Running", "1/2"),
        ("MODIFIED", "Succeeded", "2/2"),
    ]
    assert all(e.timestamp == "2025-01-01T10:05:00Z" for e in result.events)
    assert result.duration == "45s"


def test_watch_with_no_events_has_empty_log(fixed_clock) -> None:
    result = observe(FakeSource([]), _target(), retain_event_log=True, clock=fixed_clock)

    assert result.events == ()
    assert result.to_json()["events"] == []


def test_watch_scope_is_released(fixed_clock) -> None:
    source = FakeSource([make_event("Succeeded")])

    observe(source, _target("1h"), clock=fixed_clock)

    assert source.scopes[0].done


@pytest.mark.parametrize(
    ("name", "timeout", "message"),
    [
        ("", None, "workflow name cannot be empty"),
        ("   ", "5m", "workflow name cannot be empty"),
        ("hello", "abc", "invalid timeout format"),
        ("hello", "10", "invalid timeout format"),
        ("hello", "0s", "must be a positive duration"),
        ("hello", "-5m", "must be a positive duration"),
        ("hello", "300000h", "out of range"),
    ],
)
def test_invalid_input_is_rejected_before_subscribing(
    name: str, timeout: str | None, message: str
) -> None:
    source = FakeSource([make_event("Succeeded")])

    with pytest.raises(InvalidInputError, match=message):
        target = WatchTarget.parse(name=name, namespace="default", timeout=timeout)
        observe(source, target)

    assert source.calls == []


def test_target_parse_keeps_original_timeout_text() -> None:
    target = WatchTarget.parse(name=" hello ", namespace="argo", timeout=" 1h30m ")

    assert target.name == "hello"
    assert target.timeout == "1h30m"
    assert target.timeout_seconds == 5400.0


def test_subscribe_failure_is_backend_error() -> None:
    class Unreachable:
        def watch_workflows(self, *, namespace, name, scope):
            raise OSError("connection refused")

    with pytest.raises(BackendError, match="failed to watch workflow: connection refused"):
        observe(Unreachable(), _target())


def test_subscribe_backend_error_passes_through() -> None:
    error = BackendError("watch workflow", "forbidden", status_code=403)

    class Forbidden:
        def watch_workflows(self, *, namespace, name, scope):
            raise error

    with pytest.raises(BackendError) as exc_info:
        observe(Forbidden(), _target())
    assert exc_info.value is error
