"""MCP tools.

Importing `argo_workflows_mcp.tools.server` registers every tool on the shared
FastMCP instance.
"""
