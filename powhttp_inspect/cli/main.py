#!/usr/bin/env python3
"""
Command-line interface for powhttp-inspect.

Fingerprints and diffs entries held by the capture service, and validates or
infers body schemas from local JSON files. Results are printed to stdout as
JSON; progress and errors go to stderr.
"""

from __future__ import annotations

import asyncio
import traceback
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn, TypeGuard

import orjson
import pydantic
import typer

from powhttp_inspect.bodyschema import (
    SCHEMA_FORMATS,
    InferOptions,
    SchemaFormat,
    Validator,
    inference_report,
    parse_schema,
    validate_bodies,
)
from powhttp_inspect.bodyschema.stats import DEFAULT_MAX_DEPTH
from powhttp_inspect.cli.logger import CLILogger
from powhttp_inspect.compare import DiffEngine, DiffOptions, DiffRequest, FingerprintEngine, FingerprintOptions
from powhttp_inspect.compare.defaults import DEFAULT_SESSION_ID
from powhttp_inspect.config import configure_logging, settings
from powhttp_inspect.exceptions import PowHTTPInspectError, error_code
from powhttp_inspect.storage import PowHTTPClient

app = typer.Typer(
    name='powhttp-inspect',
    help='Fingerprint, diff and schema-check captured HTTP traffic',
    add_completion=False,
)


def _is_schema_format(value: str) -> TypeGuard[SchemaFormat]:
    """Type guard for valid schema formats."""
    return value in SCHEMA_FORMATS


def _validate_schema_format(value: str) -> SchemaFormat:
    """Validate and narrow schema format for typer callback."""
    if _is_schema_format(value):
        return value
    raise typer.BadParameter(f'Must be one of: {", ".join(SCHEMA_FORMATS)}')


def _emit(model: pydantic.BaseModel) -> None:
    """Print a result model as indented JSON on stdout."""
    data = model.model_dump(mode='json', exclude_none=True)
    typer.echo(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())


def _fail(error: Exception) -> NoReturn:
    """Report a known error on stderr and exit non-zero."""
    code = error_code(error) if isinstance(error, PowHTTPInspectError) else 'INVALID_INPUT'
    typer.secho(f'Error [{code}]: {error}', fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def _read_samples(paths: Sequence[Path]) -> list[tuple[str, bytes]]:
    return [(str(path), path.read_bytes()) for path in paths]


# ==============================================================================
# Commands
# ==============================================================================


@app.command()
def fingerprint(
    entry_id: str = typer.Argument(..., help='Entry ID to fingerprint'),
    session_id: str = typer.Option(DEFAULT_SESSION_ID, '--session', '-s', help='Capture session ID'),
    max_bytes: int | None = typer.Option(None, '--max-bytes', help='Body hash cap (default: TOOL_MAX_BYTES_DEFAULT)'),
    no_tls: bool = typer.Option(False, '--no-tls', help='Skip the TLS handshake summary'),
    no_http2: bool = typer.Option(False, '--no-http2', help='Skip the HTTP/2 stream summary'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Fingerprint one captured entry."""
    options = FingerprintOptions(
        include_tls_summary=not no_tls,
        include_http2_summary=not no_http2,
        max_bytes=max_bytes,
    )
    asyncio.run(_fingerprint_async(session_id, entry_id, options, verbose))


@app.command()
def diff(
    baseline: str = typer.Argument(..., help='Baseline entry ID (e.g. the real browser request)'),
    candidate: str = typer.Argument(..., help='Candidate entry ID (e.g. the scraper request)'),
    session_id: str = typer.Option(DEFAULT_SESSION_ID, '--session', '-s', help='Capture session ID'),
    no_header_order: bool = typer.Option(False, '--no-header-order', help="Don't compare header order"),
    no_header_values: bool = typer.Option(False, '--no-header-values', help="Don't compare header values"),
    no_tls: bool = typer.Option(False, '--no-tls', help="Don't compare TLS fingerprints"),
    no_http2: bool = typer.Option(False, '--no-http2', help="Don't compare HTTP/2 pseudo-headers"),
    ignore_header: list[str] | None = typer.Option(
        None, '--ignore-header', help='Header to treat as noise (repeatable; replaces the default list)'
    ),
    ignore_query_key: list[str] | None = typer.Option(
        None, '--ignore-query-key', help='Query key to treat as noise (repeatable; replaces the default list)'
    ),
    max_bytes: int | None = typer.Option(None, '--max-bytes', help='Body hash cap (default: TOOL_MAX_BYTES_DEFAULT)'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Diff a baseline entry against a candidate entry."""
    options = DiffOptions(
        compare_header_order=not no_header_order,
        compare_header_values=not no_header_values,
        compare_tls=not no_tls,
        compare_http2=not no_http2,
        ignore_headers=ignore_header or None,
        ignore_query_keys=ignore_query_key or None,
        max_bytes=max_bytes,
    )
    request = DiffRequest(
        baseline_entry_id=baseline,
        candidate_entry_id=candidate,
        session_id=session_id,
        options=options,
    )
    asyncio.run(_diff_async(request, verbose))


@app.command()
def validate(
    schema_file: Path = typer.Argument(..., help='Schema file (Go structs, Zod or JSON Schema)'),
    json_files: list[Path] = typer.Argument(..., help='JSON documents to validate'),
    format: str = typer.Option(
        'json_schema',
        '--format',
        '-f',
        help='Schema format: go_struct, zod or json_schema',
        callback=_validate_schema_format,
    ),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Validate JSON documents against a schema."""
    asyncio.run(_validate_async(schema_file, json_files, format, verbose))


@app.command()
def infer(
    json_files: list[Path] = typer.Argument(..., help='JSON samples to infer a schema from'),
    strict_required: bool = typer.Option(
        True, '--strict-required/--no-strict-required', help='Require properties present in every sample'
    ),
    additional_properties: bool | None = typer.Option(
        None,
        '--additional-properties/--no-additional-properties',
        help='Set additionalProperties on every object (default: leave unset)',
    ),
    nullable_optional: bool = typer.Option(
        True, '--nullable-optional/--nullable-required', help="Don't require properties that are sometimes null"
    ),
    max_depth: int = typer.Option(DEFAULT_MAX_DEPTH, '--max-depth', help='Field statistics depth limit'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Verbose output'),
) -> None:
    """Infer a JSON Schema and field statistics from JSON samples."""
    options = InferOptions(
        strict_required=strict_required,
        additional_properties=additional_properties,
        mark_nullable_as_optional=nullable_optional,
    )
    asyncio.run(_infer_async(json_files, options, max_depth, verbose))


# ==============================================================================
# Async implementations
# ==============================================================================


async def _fingerprint_async(session_id: str, entry_id: str, options: FingerprintOptions, verbose: bool) -> None:
    """Async implementation of fingerprint command."""
    logger = CLILogger(verbose=verbose)
    configure_logging(settings)

    try:
        async with PowHTTPClient.from_settings(settings) as client:
            engine = FingerprintEngine.from_settings(client, settings)
            await logger.info(f'Fetching entry {entry_id} from {client.base_url}')
            result = await engine.generate(session_id, entry_id, options)
        _emit(result)

    except PowHTTPInspectError as e:
        _fail(e)
    except Exception as e:
        await logger.error(f'Failed to fingerprint entry: {e}')
        if verbose:
            traceback.print_exc()
        raise typer.Exit(1)


async def _diff_async(request: DiffRequest, verbose: bool) -> None:
    """Async implementation of diff command."""
    logger = CLILogger(verbose=verbose)
    configure_logging(settings)

    try:
        async with PowHTTPClient.from_settings(settings) as client:
            engine = DiffEngine(FingerprintEngine.from_settings(client, settings))
            await logger.info(f'Diffing {request.baseline_entry_id} against {request.candidate_entry_id}')
            result = await engine.diff(request)
        _emit(result)

        if verbose and result.important_diffs.empty:
            await logger.info('No fingerprint-relevant differences')

    except PowHTTPInspectError as e:
        _fail(e)
    except Exception as e:
        await logger.error(f'Failed to diff entries: {e}')
        if verbose:
            traceback.print_exc()
        raise typer.Exit(1)


async def _validate_async(schema_file: Path, json_files: Sequence[Path], format: SchemaFormat, verbose: bool) -> None:
    """Async implementation of validate command."""
    logger = CLILogger(verbose=verbose)

    try:
        parsed = parse_schema(schema_file.read_text(encoding='utf-8'), format)
        for warning in parsed.warnings:
            await logger.warning(warning)
        validator = Validator(parsed.schema)

        summary = validate_bodies(validator, _read_samples(json_files), warnings=parsed.warnings)
        _emit(summary)
        await logger.info(f'{summary.matching_count}/{summary.total_entries} documents match')

    except (PowHTTPInspectError, FileNotFoundError) as e:
        _fail(e)

    if not summary.all_match:
        raise typer.Exit(1)


async def _infer_async(json_files: Sequence[Path], options: InferOptions, max_depth: int, verbose: bool) -> None:
    """Async implementation of infer command."""
    logger = CLILogger(verbose=verbose)

    try:
        samples = [body for _, body in _read_samples(json_files)]
    except FileNotFoundError as e:
        _fail(e)

    report = inference_report(samples, options, max_depth)
    if report is None:
        typer.secho('Error [INVALID_INPUT]: no sample is valid JSON', fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if report.sample_count < len(samples):
        await logger.warning(f'Skipped {len(samples) - report.sample_count} invalid JSON sample(s)')
    _emit(report)


# ==============================================================================
# Entry point
# ==============================================================================


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == '__main__':
    main()
