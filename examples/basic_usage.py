#!/usr/bin/env python3
"""Programmatic wait example.

This demonstrates using the components directly, without MCP:

* load Argo Server settings from `.env`
* optionally submit a workflow manifest
* wait for the workflow to finish (with a timeout) and print the summary
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from argo_workflows_mcp.argo.client import ArgoClient
from argo_workflows_mcp.argo.config import ArgoSettings
from argo_workflows_mcp.errors import ArgoMCPError
from argo_workflows_mcp.logging import configure_logging
from argo_workflows_mcp.tools.service import WorkflowService
from argo_workflows_mcp.watch import render_narrative


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Wait for an Argo workflow (programmatic example)."
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--name", help="Existing workflow to wait for")
    target.add_argument("--manifest", type=Path, help="Workflow YAML to submit first")
    parser.add_argument("--namespace", default="", help="Namespace (default: ARGO_NAMESPACE)")
    parser.add_argument("--timeout", default="10m", help='Go-style duration, e.g. "90s"')
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    configure_logging("INFO")
    service = WorkflowService(client=ArgoClient.from_settings(ArgoSettings()))

    try:
        name = args.name
        if args.manifest is not None:
            submitted = service.submit(
                manifest=args.manifest.read_text(encoding="utf-8"),
                namespace=args.namespace,
            )
            print(f"Submitted {submitted.namespace}/{submitted.name}")
            name = submitted.name

        result = service.wait(name=name, namespace=args.namespace, timeout=args.timeout)
    except ArgoMCPError as exc:
        print(str(exc))
        return 1
    finally:
        service.client.close()

    print(render_narrative(result))
    return 0 if result.phase == "Succeeded" else 1


if __name__ == "__main__":
    raise SystemExit(main())
