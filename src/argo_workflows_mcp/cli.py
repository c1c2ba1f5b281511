"""Console entrypoint alias.

The CLI is implemented in `argo_workflows_mcp.main`; this module lets
`python -m argo_workflows_mcp.cli` work as well.
"""

from __future__ import annotations

from argo_workflows_mcp.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
