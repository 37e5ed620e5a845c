"""
powhttp-inspect MCP Server.

Provides tools for fingerprinting and diffing captured HTTP entries, and for
validating or inferring body schemas, against a running capture service.

Setup:
    claude mcp add --transport stdio powhttp-inspect -- uv run "$REPO_ROOT/mcp-server.py"

Example:
    # Why does the scraper get blocked when the browser doesn't?
    diff_entries(baseline_entry_id='browser-entry', candidate_entry_id='scraper-entry')

    # Check captured responses against a Zod schema
    validate_schema(schema='z.object({ id: z.number() })', format='zod', entry_ids=['e1', 'e2'])
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

import attrs
from mcp.server.fastmcp import Context, FastMCP

from powhttp_inspect.bodyschema import (
    InferOptions,
    SchemaFormat,
    Validator,
    inference_report,
    parse_schema,
    validate_bodies,
)
from powhttp_inspect.bodyschema.stats import DEFAULT_MAX_DEPTH
from powhttp_inspect.compare import DiffEngine, DiffOptions, DiffRequest, FingerprintEngine, FingerprintOptions
from powhttp_inspect.compare.defaults import DEFAULT_SESSION_ID
from powhttp_inspect.config import configure_logging, settings
from powhttp_inspect.exceptions import PowHTTPInspectError, error_code
from powhttp_inspect.mcp.utils import DualLogger
from powhttp_inspect.protocols import LoggerProtocol, NullLogger
from powhttp_inspect.schemas import DiffResult, Fingerprint, InferenceReport, ValidationSummary
from powhttp_inspect.storage import PowHTTPClient
from powhttp_inspect.storage.bodies import BodyTarget, collect_bodies

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 20
MAX_ENTRIES_LIMIT = 100

# ==============================================================================
# Server State (immutable)
# ==============================================================================


@attrs.define(frozen=True)
class ServerState:
    """
    Immutable server state initialized at startup.

    Contains all services and configuration needed for tool execution.
    """

    client: PowHTTPClient
    fingerprinter: FingerprintEngine
    differ: DiffEngine


# ==============================================================================
# Lifespan Management
# ==============================================================================


@contextlib.asynccontextmanager
async def lifespan(mcp_server: FastMCP) -> AsyncIterator[None]:
    """
    Manage server lifecycle and state initialization.

    Creates ServerState with all services at startup and closes the capture
    service client on shutdown.
    """
    configure_logging(settings)

    client = PowHTTPClient.from_settings(settings)
    try:
        fingerprinter = FingerprintEngine.from_settings(client, settings)
        state = ServerState(
            client=client,
            fingerprinter=fingerprinter,
            differ=DiffEngine(fingerprinter),
        )

        # Register tools with closure over state
        register_tools(state)

        logger.info('Capture service: %s', client.base_url)
        logger.info('Entry cache: %d items', fingerprinter.cache.max_items)

        yield  # Setup successful; application active

    finally:
        await client.aclose()
        logger.info('Closed capture service client')


# ==============================================================================
# Server Setup
# ==============================================================================

server = FastMCP('powhttp-inspect', lifespan=lifespan)


def _tool_error(e: PowHTTPInspectError) -> ValueError:
    """Coded error message for MCP clients (NOT_FOUND, TIMEOUT, ...)."""
    return ValueError(f'{error_code(e)}: {e}')


def _limit_entries(entry_ids: Sequence[str], max_entries: int | None) -> list[str]:
    limit = min(max_entries or DEFAULT_MAX_ENTRIES, MAX_ENTRIES_LIMIT)
    return list(entry_ids[:limit])


# ==============================================================================
# Tool Registration (Closure Pattern)
# ==============================================================================


def register_tools(state: ServerState) -> None:
    """
    Register MCP tools with closure over server state.

    Args:
        state: Server state containing services
    """

    @server.tool()
    async def fingerprint_entry(
        entry_id: str,
        session_id: str = DEFAULT_SESSION_ID,
        include_tls_summary: bool = True,
        include_http2_summary: bool = True,
        max_bytes: int | None = None,
        ctx: Context[Any, Any, Any] | None = None,
    ) -> Fingerprint:
        """
        Fingerprint one captured entry.

        Returns the entry summary, request headers (ordered and normalized),
        HTTP/2 pseudo-headers, body hashes, and TLS / HTTP/2 summaries.

        Args:
            entry_id: Entry ID to fingerprint
            session_id: Capture session ID (default: active)
            include_tls_summary: Include TLS handshake details
            include_http2_summary: Include HTTP/2 frame counts
            max_bytes: Bodies larger than this are sized but not hashed

        Returns:
            Fingerprint of the entry
        """
        options = FingerprintOptions(
            include_tls_summary=include_tls_summary,
            include_http2_summary=include_http2_summary,
            max_bytes=max_bytes,
        )
        try:
            return await state.fingerprinter.generate(session_id, entry_id, options)
        except PowHTTPInspectError as e:
            raise _tool_error(e) from e

    @server.tool()
    async def diff_entries(
        baseline_entry_id: str,
        candidate_entry_id: str,
        session_id: str = DEFAULT_SESSION_ID,
        compare_header_order: bool = True,
        compare_header_values: bool = True,
        compare_tls: bool = True,
        compare_http2: bool = True,
        ignore_headers: list[str] | None = None,
        ignore_query_keys: list[str] | None = None,
        max_bytes: int | None = None,
        ctx: Context[Any, Any, Any] | None = None,
    ) -> DiffResult:
        """
        Diff a baseline entry against a candidate entry.

        Differences that plausibly affect bot detection (TLS fingerprints,
        HTTP/2 pseudo-headers, header presence, values and order) are reported
        under important_diffs; ignored headers and volatile query keys under
        noisy_diffs.

        Args:
            baseline_entry_id: Baseline entry ID (e.g. the real browser request)
            candidate_entry_id: Candidate entry ID (e.g. the scraper request)
            session_id: Capture session ID (default: active)
            compare_header_order: Compare header order
            compare_header_values: Compare header presence and values
            compare_tls: Compare TLS fingerprints
            compare_http2: Compare HTTP/2 pseudo-headers
            ignore_headers: Headers treated as noise (default: volatile headers like cookie, date)
            ignore_query_keys: Query keys treated as noise (default: cache busters, tracking ids)
            max_bytes: Bodies larger than this are sized but not hashed

        Returns:
            Both entry summaries with important and noisy differences
        """
        request = DiffRequest(
            baseline_entry_id=baseline_entry_id,
            candidate_entry_id=candidate_entry_id,
            session_id=session_id,
            options=DiffOptions(
                compare_header_order=compare_header_order,
                compare_header_values=compare_header_values,
                compare_tls=compare_tls,
                compare_http2=compare_http2,
                ignore_headers=ignore_headers,
                ignore_query_keys=ignore_query_keys,
                max_bytes=max_bytes,
            ),
        )
        try:
            return await state.differ.diff(request)
        except PowHTTPInspectError as e:
            raise _tool_error(e) from e

    @server.tool()
    async def validate_schema(
        schema: str,
        entry_ids: list[str],
        format: SchemaFormat = 'json_schema',
        target: BodyTarget = 'response',
        session_id: str = DEFAULT_SESSION_ID,
        max_entries: int | None = None,
        ctx: Context[Any, Any, Any] | None = None,
    ) -> ValidationSummary:
        """
        Validate captured request / response bodies against a schema.

        Args:
            schema: Schema definition (Go structs, Zod or JSON Schema)
            entry_ids: Entries whose bodies to validate
            format: Schema format: go_struct, zod or json_schema
            target: Which body to validate: request, response (default) or both
            session_id: Capture session ID (default: active)
            max_entries: Max entries to validate (default: 20, max: 100)

        Returns:
            Match counts, per-body results and the most common errors
        """
        log: LoggerProtocol = DualLogger(ctx) if ctx is not None else NullLogger()

        try:
            parsed = parse_schema(schema, format)
            validator = Validator(parsed.schema)
        except PowHTTPInspectError as e:
            raise _tool_error(e) from e
        for warning in parsed.warnings:
            await log.warning(warning)

        ids = _limit_entries(entry_ids, max_entries)
        try:
            bodies = await collect_bodies(state.client, state.fingerprinter.cache, session_id, ids, target)
        except PowHTTPInspectError as e:
            raise _tool_error(e) from e

        summary = validate_bodies(validator, bodies, warnings=parsed.warnings)
        await log.info(f'{summary.matching_count}/{summary.total_entries} bodies match')
        return summary

    @server.tool()
    async def infer_schema(
        entry_ids: list[str],
        target: BodyTarget = 'response',
        session_id: str = DEFAULT_SESSION_ID,
        strict_required: bool = True,
        additional_properties: bool | None = None,
        mark_nullable_as_optional: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_entries: int | None = None,
        ctx: Context[Any, Any, Any] | None = None,
    ) -> InferenceReport:
        """
        Infer a JSON Schema and per-field statistics from captured bodies.

        Bodies that are missing or not valid JSON are skipped.

        Args:
            entry_ids: Entries whose bodies to analyze
            target: Which body to analyze: request, response (default) or both
            session_id: Capture session ID (default: active)
            strict_required: Require properties present in every sample
            additional_properties: Set additionalProperties on every object (default: leave unset)
            mark_nullable_as_optional: Don't require properties that are sometimes null
            max_depth: Field statistics depth limit
            max_entries: Max entries to inspect (default: 20, max: 100)

        Returns:
            Inferred schema, sample count, whether all samples agree, and field stats
        """
        log: LoggerProtocol = DualLogger(ctx) if ctx is not None else NullLogger()

        ids = _limit_entries(entry_ids, max_entries)
        try:
            bodies = await collect_bodies(state.client, state.fingerprinter.cache, session_id, ids, target)
        except PowHTTPInspectError as e:
            raise _tool_error(e) from e

        samples = [body for _, body in bodies if body]
        options = InferOptions(
            strict_required=strict_required,
            additional_properties=additional_properties,
            mark_nullable_as_optional=mark_nullable_as_optional,
        )
        report = inference_report(samples, options, max_depth)
        if report is None:
            raise ValueError(f'INVALID_INPUT: none of the {len(bodies)} bodies is valid JSON')

        await log.info(f'Inferred schema from {report.sample_count} of {len(bodies)} bodies')
        return report


# ==============================================================================
# Server Entry Point
# ==============================================================================


def main() -> None:
    """Run the MCP server."""
    server.run()


if __name__ == '__main__':
    main()
