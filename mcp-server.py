#!/usr/bin/env -S uv run
"""
powhttp-inspect MCP Server launcher.

Setup:
    claude mcp add --transport stdio powhttp-inspect -- uv run "$REPO_ROOT/mcp-server.py"
"""

from __future__ import annotations

from powhttp_inspect.mcp.server import main

if __name__ == '__main__':
    main()
