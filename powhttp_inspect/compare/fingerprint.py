"""
Fingerprint engine.

Builds the canonical projection of one captured entry: summary, ordered and
normalized request headers, HTTP/2 pseudo-headers, body hashes and optional
TLS / HTTP/2 summaries. Entries are read through the shared EntryCache.
"""

from __future__ import annotations

import logging

import attrs

from powhttp_inspect.compare.canonical import (
    body_fingerprint,
    extract_pseudo_headers,
    normalize_headers,
    order_headers,
)
from powhttp_inspect.compare.summarize import summarize_entry, summarize_http2, summarize_tls
from powhttp_inspect.config.base import InspectSettings
from powhttp_inspect.exceptions import SideFetchError
from powhttp_inspect.schemas.compare import Fingerprint, HTTP2Summary, TLSSummary
from powhttp_inspect.storage.cache import EntryCache
from powhttp_inspect.storage.protocol import EntryStore

__all__ = ['FingerprintEngine', 'FingerprintOptions']

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 2_000_000


@attrs.define(frozen=True)
class FingerprintOptions:
    """
    Fingerprint options.

    Attributes:
        include_tls_summary: Fetch TLS events and summarize the handshake
        include_http2_summary: Fetch the HTTP/2 stream and count frame types
        max_bytes: Hash cap for bodies; None uses the engine default
    """

    include_tls_summary: bool = True
    include_http2_summary: bool = True
    max_bytes: int | None = None


class FingerprintEngine:
    """Generates fingerprints for captured entries."""

    def __init__(
        self,
        store: EntryStore,
        cache: EntryCache | None = None,
        default_max_bytes: int = DEFAULT_MAX_BYTES,
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else EntryCache()
        self.default_max_bytes = default_max_bytes

    @classmethod
    def from_settings(cls, store: EntryStore, settings: InspectSettings) -> FingerprintEngine:
        return cls(
            store,
            EntryCache(settings.ENTRY_CACHE_MAX_ITEMS),
            default_max_bytes=settings.TOOL_MAX_BYTES_DEFAULT,
        )

    async def generate(
        self,
        session_id: str,
        entry_id: str,
        options: FingerprintOptions | None = None,
    ) -> Fingerprint:
        """
        Generate the fingerprint of one entry.

        Args:
            session_id: Capture session the entry belongs to
            entry_id: Entry to fingerprint
            options: Fingerprint options (defaults when None)

        Returns:
            Fingerprint of the entry. Side-channel failures omit or shrink the
            TLS / HTTP/2 summaries instead of failing.

        Raises:
            EntryNotFoundError: If the store has no such entry
            FetchError: If the entry cannot be fetched
        """
        options = options or FingerprintOptions()
        max_bytes = options.max_bytes if options.max_bytes is not None else self.default_max_bytes

        entry = await self.cache.get_or_fetch(self.store, session_id, entry_id)

        tls_summary: TLSSummary | None = None
        if options.include_tls_summary and entry.tls.connection_id:
            try:
                tls_summary = await summarize_tls(self.store, entry.tls.connection_id, entry)
            except SideFetchError as e:
                logger.debug('Omitting TLS summary for entry %s: %s', entry_id, e)

        http2_summary: HTTP2Summary | None = None
        if options.include_http2_summary and entry.http2 is not None:
            try:
                http2_summary = await summarize_http2(self.store, entry.http2.connection_id, entry.http2.stream_id)
            except SideFetchError as e:
                logger.debug('Omitting HTTP/2 summary for entry %s: %s', entry_id, e)

        return Fingerprint(
            entry_summary=summarize_entry(entry),
            headers_ordered=order_headers(entry.request.headers),
            headers_normalized=normalize_headers(entry.request.headers),
            http2_pseudo_headers=extract_pseudo_headers(entry),
            body=body_fingerprint(entry, max_bytes),
            tls_summary=tls_summary,
            http2_summary=http2_summary,
        )
