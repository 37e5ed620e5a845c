"""MCP server entry point for powhttp-inspect."""

from __future__ import annotations

from powhttp_inspect.mcp.server import main, server

__all__ = ['main', 'server']
