"""
Entry, TLS and HTTP/2 summaries.

TLS and HTTP/2 summaries need side-channel fetches. A store failure there is
logged and the summary falls back to what the entry itself carries; a payload
that cannot be read at all raises SideFetchError for the engine to handle.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import urlsplit

import orjson
import pydantic

from powhttp_inspect.compare.canonical import body_size
from powhttp_inspect.exceptions import SideFetchError
from powhttp_inspect.schemas.compare import (
    EntryHTTP2,
    EntrySizes,
    EntrySummary,
    EntryTLS,
    HTTP2Summary,
    TLSSummary,
)
from powhttp_inspect.schemas.entries import SessionEntry, ascii_lower, get_header
from powhttp_inspect.schemas.tls import TLSClientHello, TLSEvent, TLSServerHello
from powhttp_inspect.storage.protocol import EntryStore

__all__ = ['count_frames', 'summarize_entry', 'summarize_http2', 'summarize_tls', 'tls_from_events']

logger = logging.getLogger(__name__)


# ==============================================================================
# Entry summary
# ==============================================================================


def summarize_entry(entry: SessionEntry) -> EntrySummary:
    """Project a captured entry onto the fields the diff compares and reports."""
    host = ''
    path = ''
    try:
        parsed = urlsplit(entry.url)
        host = ascii_lower(parsed.netloc)
        path = parsed.path
    except ValueError:
        pass  # Malformed URL: leave host and path empty

    response = entry.response
    tls = entry.tls

    return EntrySummary(
        entry_id=entry.id,
        ts_ms=entry.timings.started_at,
        method=entry.request.method or '',
        url=entry.url,
        host=host,
        path=path,
        status=(response.status_code or 0) if response is not None else 0,
        http_version=entry.http_version,
        process_name=(entry.process.name or '') if entry.process is not None else '',
        pid=entry.process.pid if entry.process is not None else 0,
        tls=EntryTLS(
            connection_id=tls.connection_id or '',
            ja3=tls.ja3.hash if tls.ja3 is not None else '',
            ja4=tls.ja4.hashed if tls.ja4 is not None else '',
        ),
        http2=(
            EntryHTTP2(connection_id=entry.http2.connection_id, stream_id=entry.http2.stream_id)
            if entry.http2 is not None
            else None
        ),
        sizes=EntrySizes(
            req_body_bytes=body_size(entry.request.body),
            resp_body_bytes=body_size(response.body) if response is not None else 0,
            resp_content_type=get_header(response.headers, 'content-type') if response is not None else '',
        ),
    )


# ==============================================================================
# TLS
# ==============================================================================


def _coerce_events(raw_events: Sequence[Any]) -> list[TLSEvent]:
    """Accept typed events or raw dicts; events that don't parse are skipped."""
    events: list[TLSEvent] = []
    for raw in raw_events:
        if isinstance(raw, TLSEvent):
            events.append(raw)
            continue
        try:
            events.append(TLSEvent.model_validate(raw))
        except pydantic.ValidationError:
            continue
    return events


def tls_from_events(base: TLSSummary, events: Sequence[TLSEvent]) -> TLSSummary:
    """
    Fill version, cipher and ALPN from the handshake.

    The first ServerHello decides; the ClientHello's version and offered ALPN
    are used only when no ServerHello was captured.
    """
    client_hello: TLSClientHello | None = None
    server_hello: TLSServerHello | None = None
    for event in events:
        if client_hello is None and event.client_hello is not None:
            client_hello = event.client_hello
        if server_hello is None and event.server_hello is not None:
            server_hello = event.server_hello

    tls_version = ''
    cipher_suite = ''
    alpn = ''
    if server_hello is not None:
        tls_version = server_hello.version.name if server_hello.version is not None else ''
        cipher_suite = server_hello.cipher_suite.name if server_hello.cipher_suite is not None else ''
        alpn = server_hello.alpn
    if client_hello is not None:
        if not tls_version and client_hello.version is not None:
            tls_version = client_hello.version.name
        if not alpn:
            alpn = client_hello.alpn

    return base.model_copy(update={'tls_version': tls_version, 'cipher_suite': cipher_suite, 'alpn': alpn})


async def summarize_tls(store: EntryStore, connection_id: str, entry: SessionEntry) -> TLSSummary:
    """
    TLS summary for a connection.

    Args:
        store: Source of TLS events
        connection_id: TLS connection to summarize
        entry: Entry carried on the connection (source of JA3/JA4)

    Returns:
        Summary with JA3/JA4 from the entry and handshake details from the events.
        If the events cannot be fetched, only the entry's JA3/JA4 are filled in.

    Raises:
        SideFetchError: If the store answered with something other than a list of events
    """
    base = TLSSummary(
        connection_id=connection_id,
        ja3=entry.tls.ja3.hash if entry.tls.ja3 is not None else '',
        ja4=entry.tls.ja4.hashed if entry.tls.ja4 is not None else '',
    )

    try:
        raw_events = await store.get_tls_connection(connection_id)
    except Exception as e:
        logger.debug('TLS events unavailable for connection %s: %s', connection_id, e)
        return base

    if isinstance(raw_events, (str, bytes)) or not isinstance(raw_events, Sequence):
        raise SideFetchError(f'TLS events for connection {connection_id!r} are not a list')

    return tls_from_events(base, _coerce_events(raw_events))


# ==============================================================================
# HTTP/2
# ==============================================================================


def count_frames(frames: Sequence[Any]) -> dict[str, int]:
    """Tally frame types. Frames that don't parse or carry no type are skipped."""
    counts: Counter[str] = Counter()
    for frame in frames:
        if isinstance(frame, (str, bytes)):
            try:
                frame = orjson.loads(frame)
            except orjson.JSONDecodeError:
                continue
        if not isinstance(frame, Mapping):
            continue
        frame_type = frame.get('type')
        if isinstance(frame_type, str) and frame_type:
            counts[frame_type] += 1
    return dict(sorted(counts.items()))


async def summarize_http2(store: EntryStore, connection_id: str, stream_id: int) -> HTTP2Summary:
    """
    HTTP/2 frame-type counts for one stream.

    A failed fetch yields a summary with no frame counts.

    Raises:
        SideFetchError: If the store answered with something other than a list of frames
    """
    base = HTTP2Summary(connection_id=connection_id, stream_id=stream_id)

    try:
        frames = await store.get_http2_stream(connection_id, stream_id)
    except Exception as e:
        logger.debug('HTTP/2 frames unavailable for %s/%d: %s', connection_id, stream_id, e)
        return base

    if isinstance(frames, (str, bytes)) or not isinstance(frames, Sequence):
        raise SideFetchError(f'HTTP/2 frames for {connection_id}/{stream_id} are not a list')

    return base.model_copy(update={'frame_counts': count_frames(frames)})
