"""Pull-based reader over the Argo Server workflow event stream.

Argo Server serves `/api/v1/workflow-events/{namespace}` as a long-lived HTTP
response carrying one JSON frame per line:

    {"result": {"type": "MODIFIED", "object": {...workflow...}}}
    {"error": {"grpc_code": 4, "http_code": 504, "message": "..."}}

A daemon thread reads the response and hands frames over through a one-slot
mailbox, so at most one decoded event waits for the consumer. Completing the
request scope wakes a blocked `recv` immediately. The reader thread owns the
response: `close` shuts the socket down so a pending read returns, and the
reader closes the response on its way out.
"""

from __future__ import annotations

import json
import logging
import socket
import threading

import requests
from urllib3.exceptions import ReadTimeoutError

from argo_workflows_mcp.argo.models import WatchEvent
from argo_workflows_mcp.errors import WatchStreamError
from argo_workflows_mcp.watch.scope import DeadlineExceeded, RequestScope
from argo_workflows_mcp.watch.source import EndOfStream

logger = logging.getLogger(__name__)

# gRPC status code DEADLINE_EXCEEDED, as forwarded by the grpc-gateway.
GRPC_DEADLINE_EXCEEDED = 4
HTTP_GATEWAY_TIMEOUT = 504

_END = object()


def decode_frame(line: str | bytes) -> WatchEvent | BaseException:
    """Decode one stream line into an event, or the error the frame reports."""

    try:
        frame = json.loads(line)
    except ValueError as e:
        return WatchStreamError(f"malformed event frame: {e}")
    if not isinstance(frame, dict):
        return WatchStreamError("malformed event frame: expected a JSON object")

    error = frame.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        text = message if isinstance(message, str) and message else "stream error"
        if (
            error.get("grpc_code") == GRPC_DEADLINE_EXCEEDED
            or error.get("http_code") == HTTP_GATEWAY_TIMEOUT
        ):
            return DeadlineExceeded(text)
        return WatchStreamError(text)

    result = frame.get("result")
    if isinstance(result, dict):
        return WatchEvent.from_json(result)
    # A frame without a result carries no workflow snapshot.
    return WatchEvent(type="")


def _is_read_timeout(exc: BaseException) -> bool:
    if isinstance(exc, requests.exceptions.ReadTimeout):
        return True
    # requests re-raises urllib3 read timeouts during streaming as ConnectionError.
    if isinstance(exc, requests.exceptions.ConnectionError):
        return any(isinstance(arg, ReadTimeoutError) for arg in exc.args)
    return False


def _shutdown_socket(response: requests.Response) -> None:
    """Make a read blocked on the response's socket return.

    `response.close()` cannot be used from another thread: it waits for the
    buffered reader's lock, held by the blocked read until more data arrives.
    """

    connection = getattr(getattr(response, "raw", None), "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        # Already closed by the reader or the server.
        logger.debug("Workflow event stream socket already closed", exc_info=True)


class WorkflowEventStream:
    """An `EventSubscription` over a streaming `requests` response."""

    def __init__(self, response: requests.Response, *, scope: RequestScope) -> None:
        if response.encoding is None:
            response.encoding = "utf-8"
        self._response = response
        self._scope = scope
        self._cond = threading.Condition()
        self._slot: list[object] = []
        self._closed = False

        self._reader = threading.Thread(
            target=self._read, name="argo-workflow-events", daemon=True
        )
        self._reader.start()
        scope.add_done_callback(self._wake)

    def recv(self) -> WatchEvent:
        with self._cond:
            while not self._slot and not self._scope.done and not self._closed:
                self._cond.wait()
            self._scope.raise_if_done()
            if not self._slot:
                raise EndOfStream()
            item = self._slot.pop()
            self._cond.notify_all()

        if item is _END:
            raise EndOfStream()
        if isinstance(item, BaseException):
            raise item
        assert isinstance(item, WatchEvent)
        return item

    def close(self) -> None:
        """Stop the stream without waiting for the reader thread."""

        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._cond.notify_all()
        self._scope.remove_done_callback(self._wake)
        _shutdown_socket(self._response)

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def _offer(self, item: object) -> bool:
        with self._cond:
            while self._slot and not self._closed and not self._scope.done:
                self._cond.wait()
            if self._closed or self._scope.done:
                return False
            self._slot.append(item)
            self._cond.notify_all()
            return True

    def _read(self) -> None:
        try:
            for line in self._response.iter_lines(decode_unicode=True):
                if not line:
                    continue
                if not self._offer(decode_frame(line)):
                    return
            self._offer(_END)
        except Exception as e:
            if self._closed or self._scope.done:
                return
            if _is_read_timeout(e):
                logger.debug("Workflow event stream read timed out")
                self._offer(DeadlineExceeded(str(e)))
                return
            logger.debug("Workflow event stream failed", exc_info=True)
            self._offer(WatchStreamError(str(e)))
        finally:
            self._response.close()
