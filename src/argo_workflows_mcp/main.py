"""CLI entrypoint: serve the MCP tools, or wait on / watch a workflow from a shell."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from argo_workflows_mcp import __version__
from argo_workflows_mcp.argo.client import ArgoClient
from argo_workflows_mcp.argo.config import ArgoSettings
from argo_workflows_mcp.errors import BackendError, ConfigurationError, InvalidInputError
from argo_workflows_mcp.logging import configure_logging
from argo_workflows_mcp.server.config import ServerSettings
from argo_workflows_mcp.tools import _app
from argo_workflows_mcp.tools.service import WorkflowService
from argo_workflows_mcp.watch import ObserveResult, RequestScope, render_narrative
from argo_workflows_mcp.watch.events import WorkflowPhase

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_BACKEND = 3
EXIT_UNSUCCESSFUL = 4
EXIT_TIMED_OUT = 5
EXIT_INTERRUPTED = 130

_UNSUCCESSFUL_PHASES = frozenset({WorkflowPhase.FAILED.value, WorkflowPhase.ERROR.value})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="argo-workflows-mcp",
        description="MCP server for Argo Workflows",
    )
    parser.add_argument("--version", action="version", version=f"argo-workflows-mcp {__version__}")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Serve the MCP tools")
    serve.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default=None,
        help="Overrides MCP_TRANSPORT (default: stdio)",
    )
    serve.add_argument("--host", default=None, help="Overrides MCP_HTTP_HOST")
    serve.add_argument("--port", type=int, default=None, help="Overrides MCP_HTTP_PORT")

    for command, help_text in (
        ("wait", "Wait for a workflow to finish"),
        ("watch", "Watch a workflow and list the events it emits"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("name", help="Workflow name")
        sub.add_argument(
            "-n", "--namespace", default="", help="Namespace (default: ARGO_NAMESPACE)"
        )
        sub.add_argument(
            "--timeout", default="", help='Go-style duration, e.g. "30s", "5m", "1h30m"'
        )
        sub.add_argument("--json", action="store_true", help="Print the result as JSON")

    return parser


def exit_code_for(result: ObserveResult) -> int:
    if result.timed_out:
        return EXIT_TIMED_OUT
    if result.phase in _UNSUCCESSFUL_PHASES:
        return EXIT_UNSUCCESSFUL
    return EXIT_OK


def _serve(args: argparse.Namespace, server_settings: ServerSettings) -> int:
    transport = args.transport or server_settings.transport
    service = _app.get_service()
    logger.info(
        "Starting MCP server",
        extra={"transport": transport, "namespace": service.client.default_namespace},
    )

    if transport == "http":
        import uvicorn

        from argo_workflows_mcp.server.app import create_app

        uvicorn.run(
            create_app(),
            host=args.host or server_settings.http_host,
            port=args.port or server_settings.http_port,
            log_config=None,
        )
    else:
        from argo_workflows_mcp.tools.server import create_server

        create_server().run("stdio")
    return EXIT_OK


def _observe(args: argparse.Namespace, service: WorkflowService) -> int:
    observe = service.watch if args.command == "watch" else service.wait
    scope = RequestScope()
    try:
        result = observe(
            name=args.name, namespace=args.namespace, timeout=args.timeout, scope=scope
        )
    except KeyboardInterrupt:
        scope.cancel()
        print("Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED

    if args.json:
        print(json.dumps(result.to_json(), indent=2))
    else:
        print(render_narrative(result))
    return exit_code_for(result)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        server_settings = ServerSettings()
        argo_settings = ArgoSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_USAGE

    configure_logging(args.log_level or server_settings.log_level)

    service = WorkflowService(client=ArgoClient.from_settings(argo_settings))
    _app.set_service(service)
    try:
        if args.command == "serve":
            return _serve(args, server_settings)
        if args.command in ("wait", "watch"):
            return _observe(args, service)

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_USAGE

    except (InvalidInputError, ConfigurationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    except BackendError as e:
        logger.warning(str(e), extra={"status_code": e.status_code})
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BACKEND

    except Exception:
        logger.exception("Command failed")
        return 1

    finally:
        _app.set_service(None)


if __name__ == "__main__":
    raise SystemExit(main())
