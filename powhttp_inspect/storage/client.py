"""
Capture-service HTTP client.

Implements EntryStore against the capture service's local REST API:

    GET /sessions/{session_id}/entries/{entry_id}
    GET /tls/{connection_id}
    GET /http2/{connection_id}/streams/{stream_id}

Error bodies look like ``{"error": "..."}``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import httpx
import pydantic

from powhttp_inspect.config.base import InspectSettings
from powhttp_inspect.exceptions import EntryNotFoundError, FetchError, FetchTimeoutError
from powhttp_inspect.schemas.entries import SessionEntry

logger = logging.getLogger(__name__)


class PowHTTPClient:
    """
    Async client for the capture service.

    Owns its httpx.AsyncClient unless one is injected (tests inject one built on
    httpx.MockTransport). Use as an async context manager or call ``aclose()``.
    """

    def __init__(
        self,
        base_url: str = 'http://localhost:7777',
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: InspectSettings) -> PowHTTPClient:
        return cls(base_url=settings.POWHTTP_BASE_URL, timeout=settings.http_timeout_seconds)

    async def __aenter__(self) -> PowHTTPClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ==========================================================================
    # EntryStore
    # ==========================================================================

    async def get_entry(self, session_id: str, entry_id: str) -> SessionEntry:
        path = f'/sessions/{quote(session_id, safe="")}/entries/{quote(entry_id, safe="")}'
        try:
            data = await self._get_json(path)
        except FetchError as e:
            if e.status_code == 404:
                raise EntryNotFoundError(f'entry {entry_id!r} not found in session {session_id!r}') from e
            raise

        try:
            return SessionEntry.model_validate(data)
        except pydantic.ValidationError as e:
            raise FetchError(f'decoding entry {entry_id!r}: {e}') from e

    async def get_tls_connection(self, connection_id: str) -> Sequence[Any]:
        data = await self._get_json(f'/tls/{quote(connection_id, safe="")}')
        if not isinstance(data, list):
            raise FetchError(f'decoding TLS events for connection {connection_id!r}: expected a JSON array')
        return data

    async def get_http2_stream(self, connection_id: str, stream_id: int) -> Sequence[Any]:
        data = await self._get_json(f'/http2/{quote(connection_id, safe="")}/streams/{stream_id}')
        if not isinstance(data, list):
            raise FetchError(f'decoding HTTP/2 stream {connection_id}/{stream_id}: expected a JSON array')
        return data

    # ==========================================================================
    # Transport
    # ==========================================================================

    async def _get_json(self, path: str) -> Any:
        url = f'{self.base_url}{path}'
        start = time.perf_counter()
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(f'request to {path} timed out') from e
        except httpx.HTTPError as e:
            raise FetchError(f'request to {path} failed: {e}') from e

        duration_ms = (time.perf_counter() - start) * 1000
        logger.debug('GET %s -> %d (%.1fms)', path, response.status_code, duration_ms)

        if response.status_code >= 400:
            raise FetchError(
                f'capture service returned {response.status_code} for {path}: {_error_message(response)}',
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f'decoding response from {path}: {e}') from e


def _error_message(response: httpx.Response) -> str:
    """Extract ``{"error": ...}`` from an error body, falling back to the raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get('error'), str):
        return body['error']
    return response.text.strip() or response.reason_phrase
