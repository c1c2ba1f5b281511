"""Unit tests for the Argo Server client (mocked HTTP session)."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
import requests

from argo_workflows_mcp.argo.client import ArgoClient
from argo_workflows_mcp.argo.config import ArgoSettings
from argo_workflows_mcp.argo.stream import WorkflowEventStream
from argo_workflows_mcp.errors import BackendError
from argo_workflows_mcp.watch.scope import RequestScope

WORKFLOW_JSON: dict[str, Any] = {
    "metadata": {
        "name": "hello-abc12",
        "namespace": "argo",
        "uid": "uid-1",
        "creationTimestamp": "2025-01-01T09:59:00Z",
        "labels": {"app": "etl"},
    },
    "spec": {"arguments": {"parameters": [{"name": "message", "value": "hi"}]}},
    "status": {
        "phase": "Running",
        "startedAt": "2025-01-01T10:00:00Z",
        "progress": "1/2",
    },
}


def _response(status: int = 200, payload: object | None = None, *, text: str = "") -> Mock:
    resp = Mock(spec=requests.Response)
    resp.status_code = status
    resp.reason = "Reason"
    resp.encoding = "utf-8"
    if payload is None:
        resp.content = text.encode()
        resp.text = text
        resp.json.side_effect = ValueError("no json")
    else:
        resp.content = b"{...}"
        resp.text = "{...}"
        resp.json.return_value = payload
    return resp


def _client(session: Mock, **kwargs: Any) -> ArgoClient:
    return ArgoClient(
        base_url="https://argo.example.com/", namespace="argo", session=session, **kwargs
    )


@pytest.fixture
def session() -> Mock:
    mock = Mock(spec=requests.Session)
    mock.headers = {}
    return mock


def test_client_sets_auth_and_tls(session: Mock) -> None:
    _client(session, authorization="Bearer t0ken", verify=False)

    assert session.headers["Authorization"] == "Bearer t0ken"
    assert session.headers["Accept"] == "application/json"
    assert session.verify is False


def test_client_requires_base_url(session: Mock) -> None:
    with pytest.raises(ValueError):
        ArgoClient(base_url="  ", session=session)


def test_from_settings(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("ARGO_SERVER", "localhost:2746")
    clean_env.setenv("ARGO_SECURE", "false")
    clean_env.setenv("ARGO_NAMESPACE", "ci")

    client = ArgoClient.from_settings(ArgoSettings())

    assert client.default_namespace == "ci"
    client.close()


def test_get_workflow(session: Mock) -> None:
    session.request.return_value = _response(payload=WORKFLOW_JSON)
    client = _client(session, request_timeout=12.5)

    wf = client.get_workflow("argo", "hello-abc12")

    session.request.assert_called_once_with(
        "GET",
        "https://argo.example.com/api/v1/workflows/argo/hello-abc12",
        params=None,
        json=None,
        timeout=12.5,
    )
    assert wf.name == "hello-abc12"
    assert wf.uid == "uid-1"
    assert wf.labels == {"app": "etl"}
    assert wf.parameters[0].name == "message"
    assert wf.parameters[0].value == "hi"
    assert wf.status.phase == "Running"
    assert wf.status.progress == "1/2"


def test_get_workflow_not_found(session: Mock) -> None:
    session.request.return_value = _response(
        404, {"code": 5, "message": 'workflows.argoproj.io "nope" not found'}
    )
    client = _client(session)

    with pytest.raises(BackendError) as exc_info:
        client.get_workflow("argo", "nope")

    err = exc_info.value
    assert err.not_found
    assert str(err) == (
        'failed to get workflow: workflows.argoproj.io "nope" not found (HTTP 404)'
    )


def test_error_without_json_body_uses_text(session: Mock) -> None:
    session.request.return_value = _response(502, text="bad gateway")
    client = _client(session)

    with pytest.raises(BackendError, match="bad gateway"):
        client.get_workflow("argo", "x")


def test_connection_failure_is_backend_error(session: Mock) -> None:
    session.request.side_effect = requests.ConnectionError("refused")
    client = _client(session)

    with pytest.raises(BackendError, match="failed to list workflows: refused"):
        client.list_workflows("argo")


def test_list_workflows_params(session: Mock) -> None:
    session.request.return_value = _response(payload={"items": [WORKFLOW_JSON, "junk"]})
    client = _client(session)

    workflows = client.list_workflows("argo", label_selector="app=etl", limit=5)

    args, kwargs = session.request.call_args
    assert args == ("GET", "https://argo.example.com/api/v1/workflows/argo")
    assert kwargs["params"]["listOptions.labelSelector"] == "app=etl"
    assert kwargs["params"]["listOptions.limit"] == 5
    assert len(workflows) == 1


def test_list_workflows_all_namespaces_and_null_items(session: Mock) -> None:
    session.request.return_value = _response(payload={"items": None})
    client = _client(session)

    assert client.list_workflows("") == []
    args, _ = session.request.call_args
    assert args[1] == "https://argo.example.com/api/v1/workflows/"


def test_create_workflow(session: Mock) -> None:
    session.request.return_value = _response(payload=WORKFLOW_JSON)
    client = _client(session)
    manifest = {"apiVersion": "argoproj.io/v1alpha1", "kind": "Workflow"}

    created = client.create_workflow("argo", manifest)

    _, kwargs = session.request.call_args
    assert kwargs["json"] == {"namespace": "argo", "workflow": manifest}
    assert created.name == "hello-abc12"


def test_delete_workflow_force(session: Mock) -> None:
    session.request.return_value = _response(payload={})
    client = _client(session)

    client.delete_workflow("argo", "hello", force=True)

    args, kwargs = session.request.call_args
    assert args == ("DELETE", "https://argo.example.com/api/v1/workflows/argo/hello")
    assert kwargs["params"] == {"force": "true"}


def test_resubmit_suspend_resume_urls(session: Mock) -> None:
    session.request.return_value = _response(payload=WORKFLOW_JSON)
    client = _client(session)

    client.resubmit_workflow("argo", "hello", memoized=True, parameters=["a=1"])
    args, kwargs = session.request.call_args
    assert args == ("PUT", "https://argo.example.com/api/v1/workflows/argo/hello/resubmit")
    assert kwargs["json"] == {
        "name": "hello",
        "namespace": "argo",
        "memoized": True,
        "parameters": ["a=1"],
    }

    client.suspend_workflow("argo", "hello")
    args, _ = session.request.call_args
    assert args[1].endswith("/argo/hello/suspend")

    client.resume_workflow("argo", "hello", node_field_selector="displayName=approve")
    args, kwargs = session.request.call_args
    assert args[1].endswith("/argo/hello/resume")
    assert kwargs["json"]["nodeFieldSelector"] == "displayName=approve"


def test_retry_stop_terminate_requests(session: Mock) -> None:
    session.request.return_value = _response(payload=WORKFLOW_JSON)
    client = _client(session)

    client.retry_workflow(
        "argo", "hello", restart_successful=True, node_field_selector="phase=Failed"
    )
    args, kwargs = session.request.call_args
    assert args == ("PUT", "https://argo.example.com/api/v1/workflows/argo/hello/retry")
    assert kwargs["json"] == {
        "name": "hello",
        "namespace": "argo",
        "restartSuccessful": True,
        "nodeFieldSelector": "phase=Failed",
    }

    client.stop_workflow("argo", "hello", message="maintenance")
    args, kwargs = session.request.call_args
    assert args == ("PUT", "https://argo.example.com/api/v1/workflows/argo/hello/stop")
    assert kwargs["json"] == {"name": "hello", "namespace": "argo", "message": "maintenance"}

    wf = client.terminate_workflow("argo", "hello")
    args, kwargs = session.request.call_args
    assert args == (
        "PUT",
        "https://argo.example.com/api/v1/workflows/argo/hello/terminate",
    )
    assert kwargs["json"] == {"name": "hello", "namespace": "argo"}
    assert wf.name == "hello-abc12"


def test_terminate_conflict_is_backend_error(session: Mock) -> None:
    session.request.return_value = _response(
        409, {"code": 9, "message": "cannot shutdown a completed workflow"}
    )

    with pytest.raises(BackendError) as excinfo:
        _client(session).terminate_workflow("argo", "hello")

    assert excinfo.value.status_code == 409
    assert "failed to terminate workflow: cannot shutdown a completed workflow" in str(
        excinfo.value
    )


def test_names_are_path_escaped(session: Mock) -> None:
    session.request.return_value = _response(payload=WORKFLOW_JSON)
    client = _client(session)

    client.get_workflow("argo", "a/b")

    args, _ = session.request.call_args
    assert args[1] == "https://argo.example.com/api/v1/workflows/argo/a%2Fb"


def test_watch_workflows_opens_stream(session: Mock) -> None:
    resp = _response(payload={})
    resp.iter_lines.return_value = iter([])
    session.get.return_value = resp
    client = _client(session, watch_read_timeout=30.0)
    scope = RequestScope()

    stream = client.watch_workflows(namespace="argo", name="hello", scope=scope)
    try:
        assert isinstance(stream, WorkflowEventStream)
        session.get.assert_called_once_with(
            "https://argo.example.com/api/v1/workflow-events/argo",
            params={"listOptions.fieldSelector": "metadata.name=hello"},
            stream=True,
            timeout=(10.0, 30.0),
        )
    finally:
        stream.close()
        scope.cancel()


def test_watch_workflows_http_error_closes_response(session: Mock) -> None:
    resp = _response(403, {"message": "forbidden"})
    session.get.return_value = resp
    client = _client(session)

    with pytest.raises(BackendError, match="failed to watch workflow: forbidden") as exc_info:
        client.watch_workflows(namespace="argo", name="hello", scope=RequestScope())

    assert exc_info.value.status_code == 403
    resp.close.assert_called_once()
