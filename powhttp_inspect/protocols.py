"""
Logger protocol shared by the CLI and the MCP server.

Engines log through the stdlib ``logging`` module; the protocol below is for
progress messages that a surface relays to its user (terminal or MCP client).
"""

from __future__ import annotations

from typing import Protocol


class LoggerProtocol(Protocol):
    """
    Async, user-facing logger.

    Implementations:
    - DualLogger (mcp/utils.py): server log plus MCP client notifications
    - CLILogger (cli/logger.py): stderr, info only when verbose
    - NullLogger: discards everything
    """

    async def info(self, message: str) -> None: ...
    async def warning(self, message: str) -> None: ...
    async def error(self, message: str) -> None: ...


class NullLogger:
    """Discards messages. Used when a tool is called without an MCP context."""

    async def info(self, message: str) -> None:
        pass

    async def warning(self, message: str) -> None:
        pass

    async def error(self, message: str) -> None:
        pass
