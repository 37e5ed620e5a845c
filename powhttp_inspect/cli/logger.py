"""Stderr logger for CLI commands. Stdout is reserved for JSON results."""

from __future__ import annotations

import typer


class CLILogger:
    """
    LoggerProtocol implementation for the command line.

    Warnings and errors are always shown; info messages only with --verbose.
    """

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    async def info(self, message: str) -> None:
        if self.verbose:
            typer.echo(f'[INFO] {message}', err=True)

    async def warning(self, message: str) -> None:
        typer.secho(f'[WARNING] {message}', fg=typer.colors.YELLOW, err=True)

    async def error(self, message: str) -> None:
        typer.secho(f'[ERROR] {message}', fg=typer.colors.RED, err=True)
