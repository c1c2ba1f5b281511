from __future__ import annotations

import io
import json
import logging

import pytest

from argo_workflows_mcp.logging import configure_logging


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_records_are_json_with_watch_fields(restore_root_logging) -> None:
    stream = io.StringIO()
    configure_logging("debug", stream=stream)

    logging.getLogger("argo_workflows_mcp.watch.controller").info(
        "Workflow watch finished",
        extra={"workflow": "hello", "namespace": "argo", "stop_reason": "timed_out"},
    )

    record = json.loads(stream.getvalue().splitlines()[-1])
    assert record["level"] == "INFO"
    assert record["logger"] == "argo_workflows_mcp.watch.controller"
    assert record["message"] == "Workflow watch finished"
    assert record["extra"] == {
        "workflow": "hello",
        "namespace": "argo",
        "stop_reason": "timed_out",
    }


def test_logs_default_to_stderr(restore_root_logging, capsys) -> None:
    configure_logging("info")

    logging.getLogger("argo_workflows_mcp").warning("Tool call failed")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert json.loads(captured.err.splitlines()[-1])["message"] == "Tool call failed"


def test_third_party_loggers_stay_quiet_at_debug(restore_root_logging) -> None:
    configure_logging("DEBUG", stream=io.StringIO())

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.INFO
    assert logging.getLogger("mcp").level == logging.INFO
