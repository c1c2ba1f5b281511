"""Argo Server REST API client.

This intentionally wraps `requests` to keep HTTP calls out of tool code and make
tests easy.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import requests

from argo_workflows_mcp.argo.config import ArgoSettings
from argo_workflows_mcp.argo.models import Workflow
from argo_workflows_mcp.argo.stream import WorkflowEventStream
from argo_workflows_mcp.errors import BackendError
from argo_workflows_mcp.watch.scope import RequestScope

logger = logging.getLogger(__name__)

_CONNECT_TIMEOUT_SECONDS = 10.0


def _error_message(resp: requests.Response) -> str:
    """Extract the server's message from an error response."""

    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    text = resp.text.strip()
    return text or resp.reason or "request failed"


class ArgoClient:
    """Small wrapper around the Argo Server REST API for the operations we need."""

    def __init__(
        self,
        *,
        base_url: str,
        authorization: str = "",
        namespace: str = "default",
        verify: bool = True,
        request_timeout: float = 30.0,
        watch_read_timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("Argo Server URL is required")

        self._base_url = base_url.strip().rstrip("/")
        self._namespace = namespace.strip() or "default"
        self._request_timeout = request_timeout
        self._watch_read_timeout = watch_read_timeout

        self._session = session or requests.Session()
        self._session.verify = verify
        self._session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": "argo-workflows-mcp",
            }
        )
        if authorization:
            self._session.headers["Authorization"] = authorization

        logger.info(
            "Configured Argo Server client",
            extra={"base_url": self._base_url, "namespace": self._namespace},
        )

    @classmethod
    def from_settings(cls, settings: ArgoSettings) -> ArgoClient:
        return cls(
            base_url=settings.base_url,
            authorization=settings.authorization,
            namespace=settings.namespace,
            verify=not settings.insecure_skip_verify,
            request_timeout=settings.request_timeout_seconds,
            watch_read_timeout=settings.watch_read_timeout_seconds,
        )

    @property
    def default_namespace(self) -> str:
        return self._namespace

    def _url(self, *parts: str) -> str:
        path = "/".join(quote(p.strip("/"), safe="") for p in parts if p)
        return f"{self._base_url}/{path}"

    def _workflows_url(self, namespace: str, name: str = "", action: str = "") -> str:
        if not namespace:
            # All namespaces.
            return self._url("api", "v1", "workflows") + "/"
        return self._url("api", "v1", "workflows", namespace, name, action)

    def _request(
        self,
        method: str,
        url: str,
        *,
        action: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            resp = self._session.request(
                method, url, params=params, json=json, timeout=self._request_timeout
            )
        except requests.RequestException as e:
            raise BackendError(action, str(e)) from e

        if resp.status_code >= 400:
            raise BackendError(action, _error_message(resp), status_code=resp.status_code)

        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as e:
            raise BackendError(action, "unexpected non-JSON response") from e
        return data if isinstance(data, dict) else {}

    def get_workflow(self, namespace: str, name: str) -> Workflow:
        data = self._request("GET", self._workflows_url(namespace, name), action="get workflow")
        return Workflow.from_json(data)

    def list_workflows(
        self,
        namespace: str,
        *,
        label_selector: str = "",
        limit: int = 0,
    ) -> list[Workflow]:
        """List workflows; an empty namespace lists across all namespaces."""

        params: dict[str, Any] = {
            "fields": (
                "items.metadata,items.status.phase,items.status.message,"
                "items.status.startedAt,items.status.finishedAt,items.status.progress"
            ),
        }
        if label_selector:
            params["listOptions.labelSelector"] = label_selector
        if limit > 0:
            params["listOptions.limit"] = limit

        data = self._request(
            "GET", self._workflows_url(namespace), action="list workflows", params=params
        )
        items = data.get("items")
        if not isinstance(items, list):
            return []
        return [Workflow.from_json(item) for item in items if isinstance(item, dict)]

    def create_workflow(self, namespace: str, manifest: dict[str, Any]) -> Workflow:
        data = self._request(
            "POST",
            self._workflows_url(namespace),
            action="create workflow",
            json={"namespace": namespace, "workflow": manifest},
        )
        created = Workflow.from_json(data)
        logger.info(
            "Created workflow",
            extra={"workflow": created.name, "namespace": created.namespace},
        )
        return created

    def delete_workflow(self, namespace: str, name: str, *, force: bool = False) -> None:
        params = {"force": "true"} if force else None
        self._request(
            "DELETE",
            self._workflows_url(namespace, name),
            action="delete workflow",
            params=params,
        )
        logger.info("Deleted workflow", extra={"workflow": name, "namespace": namespace})

    def resubmit_workflow(
        self,
        namespace: str,
        name: str,
        *,
        memoized: bool = False,
        parameters: Sequence[str] = (),
    ) -> Workflow:
        payload: dict[str, Any] = {"name": name, "namespace": namespace, "memoized": memoized}
        if parameters:
            payload["parameters"] = list(parameters)
        data = self._request(
            "PUT",
            self._workflows_url(namespace, name, "resubmit"),
            action="resubmit workflow",
            json=payload,
        )
        return Workflow.from_json(data)

    def suspend_workflow(self, namespace: str, name: str) -> Workflow:
        data = self._request(
            "PUT",
            self._workflows_url(namespace, name, "suspend"),
            action="suspend workflow",
            json={"name": name, "namespace": namespace},
        )
        return Workflow.from_json(data)

    def resume_workflow(
        self, namespace: str, name: str, *, node_field_selector: str = ""
    ) -> Workflow:
        payload: dict[str, Any] = {"name": name, "namespace": namespace}
        if node_field_selector:
            payload["nodeFieldSelector"] = node_field_selector
        data = self._request(
            "PUT",
            self._workflows_url(namespace, name, "resume"),
            action="resume workflow",
            json=payload,
        )
        return Workflow.from_json(data)

    def retry_workflow(
        self,
        namespace: str,
        name: str,
        *,
        restart_successful: bool = False,
        node_field_selector: str = "",
        parameters: Sequence[str] = (),
    ) -> Workflow:
        payload: dict[str, Any] = {
            "name": name,
            "namespace": namespace,
            "restartSuccessful": restart_successful,
        }
        if node_field_selector:
            payload["nodeFieldSelector"] = node_field_selector
        if parameters:
            payload["parameters"] = list(parameters)
        data = self._request(
            "PUT",
            self._workflows_url(namespace, name, "retry"),
            action="retry workflow",
            json=payload,
        )
        return Workflow.from_json(data)

    def stop_workflow(
        self,
        namespace: str,
        name: str,
        *,
        node_field_selector: str = "",
        message: str = "",
    ) -> Workflow:
        """Stop a workflow; unlike terminate, its exit handlers still run."""

        payload: dict[str, Any] = {"name": name, "namespace": namespace}
        if node_field_selector:
            payload["nodeFieldSelector"] = node_field_selector
        if message:
            payload["message"] = message
        data = self._request(
            "PUT",
            self._workflows_url(namespace, name, "stop"),
            action="stop workflow",
            json=payload,
        )
        return Workflow.from_json(data)

    def terminate_workflow(self, namespace: str, name: str) -> Workflow:
        data = self._request(
            "PUT",
            self._workflows_url(namespace, name, "terminate"),
            action="terminate workflow",
            json={"name": name, "namespace": namespace},
        )
        return Workflow.from_json(data)

    def watch_workflows(
        self, *, namespace: str, name: str, scope: RequestScope
    ) -> WorkflowEventStream:
        """Subscribe to events for a single workflow.

        Raises:
            BackendError if the subscription could not be established.
        """

        url = self._url("api", "v1", "workflow-events", namespace)
        params = {"listOptions.fieldSelector": f"metadata.name={name}"}
        try:
            resp = self._session.get(
                url,
                params=params,
                stream=True,
                timeout=(_CONNECT_TIMEOUT_SECONDS, self._watch_read_timeout),
            )
        except requests.RequestException as e:
            raise BackendError("watch workflow", str(e)) from e

        if resp.status_code >= 400:
            try:
                raise BackendError(
                    "watch workflow", _error_message(resp), status_code=resp.status_code
                )
            finally:
                resp.close()

        logger.debug(
            "Subscribed to workflow events", extra={"workflow": name, "namespace": namespace}
        )
        return WorkflowEventStream(resp, scope=scope)

    def close(self) -> None:
        self._session.close()
