"""Shared utilities for the MCP server."""

from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import Context

_log = logging.getLogger('powhttp_inspect.mcp')


class DualLogger:
    """
    Logs messages to both the server log and the MCP client context.

    The server log goes to stderr (and LOG_FILE when configured); stdout is the
    stdio transport.
    """

    def __init__(self, ctx: Context[Any, Any, Any]) -> None:
        self.ctx = ctx

    async def info(self, message: str) -> None:
        _log.info(message)
        await self.ctx.info(message)

    async def debug(self, message: str) -> None:
        _log.debug(message)
        await self.ctx.debug(message)

    async def warning(self, message: str) -> None:
        _log.warning(message)
        await self.ctx.warning(message)

    async def error(self, message: str) -> None:
        _log.error(message)
        await self.ctx.error(message)
