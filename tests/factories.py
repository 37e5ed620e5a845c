"""Builders for captured entries and an in-memory EntryStore."""

from __future__ import annotations

import base64
from collections.abc import Mapping, Sequence
from typing import Any

from powhttp_inspect.exceptions import EntryNotFoundError
from powhttp_inspect.schemas.entries import SessionEntry


def b64(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode()
    return base64.b64encode(data).decode()


def make_entry(
    entry_id: str = 'e1',
    *,
    url: str = 'https://example.com/api/items?page=1',
    method: str = 'GET',
    headers: Sequence[Sequence[str]] = (),
    http_version: str = 'HTTP/1.1',
    http2: tuple[str, int] | None = None,
    request_body: bytes | str | None = None,
    response_body: bytes | str | None = None,
    response_headers: Sequence[Sequence[str]] = (('Content-Type', 'application/json'),),
    status: int = 200,
    connection_id: str | None = 'conn-1',
    ja3: str = '',
    ja4: str = '',
    started_at: int = 1_700_000_000_000,
) -> SessionEntry:
    """Build an entry from the capture service's camelCase wire shape."""
    data: dict[str, Any] = {
        'id': entry_id,
        'url': url,
        'httpVersion': http_version,
        'request': {
            'method': method,
            'httpVersion': http_version,
            'headers': [list(pair) for pair in headers],
            'body': b64(request_body) if request_body is not None else None,
        },
        'response': {
            'httpVersion': http_version,
            'statusCode': status,
            'headers': [list(pair) for pair in response_headers],
            'body': b64(response_body) if response_body is not None else None,
        },
        'tls': {
            'connectionId': connection_id,
            'ja3': {'string': '', 'hash': ja3},
            'ja4': {'raw': '', 'hashed': ja4},
        },
        'timings': {'startedAt': started_at},
        'process': {'pid': 4242, 'name': 'chrome'},
    }
    if http2 is not None:
        data['http2'] = {'connectionId': http2[0], 'streamId': http2[1]}
    return SessionEntry.model_validate(data)


def handshake_event(side: str, kind: str, content: Mapping[str, Any]) -> dict[str, Any]:
    """Raw TLS event as the capture service sends it."""
    return {'side': side, 'msg': {'type': 'handshake', 'content': {'type': kind, 'content': dict(content)}}}


def alpn_extension(*protocols: str) -> dict[str, Any]:
    return {'value': 16, 'name': 'application_layer_protocol_negotiation', 'protocols': list(protocols)}


CLIENT_HELLO = handshake_event(
    'client',
    'client_hello',
    {
        'version': {'value': 771, 'name': 'TLS 1.2'},
        'cipher_suites': [{'value': 4865, 'name': 'TLS_AES_128_GCM_SHA256'}],
        'extensions': [alpn_extension('h2', 'http/1.1')],
    },
)

SERVER_HELLO = handshake_event(
    'server',
    'server_hello',
    {
        'version': {'value': 772, 'name': 'TLS 1.3'},
        'cipher_suite': {'value': 4866, 'name': 'TLS_AES_256_GCM_SHA384'},
        'extensions': [alpn_extension('h2')],
    },
)


class FakeStore:
    """
    In-memory EntryStore.

    TLS and HTTP/2 payloads can be exceptions, which are raised when fetched.
    """

    def __init__(
        self,
        entries: Sequence[SessionEntry] = (),
        tls: Mapping[str, Any] | None = None,
        http2: Mapping[tuple[str, int], Any] | None = None,
    ) -> None:
        self.entries = {entry.id: entry for entry in entries}
        self.tls = dict(tls or {})
        self.http2 = dict(http2 or {})
        self.entry_calls: list[tuple[str, str]] = []

    async def get_entry(self, session_id: str, entry_id: str) -> SessionEntry:
        self.entry_calls.append((session_id, entry_id))
        if entry_id not in self.entries:
            raise EntryNotFoundError(f'entry {entry_id!r} not found in session {session_id!r}')
        return self.entries[entry_id]

    async def get_tls_connection(self, connection_id: str) -> Any:
        result = self.tls.get(connection_id, [])
        if isinstance(result, Exception):
            raise result
        return result

    async def get_http2_stream(self, connection_id: str, stream_id: int) -> Any:
        result = self.http2.get((connection_id, stream_id), [])
        if isinstance(result, Exception):
            raise result
        return result
