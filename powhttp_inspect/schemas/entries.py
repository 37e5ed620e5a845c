"""
Capture-service entry models.

A SessionEntry is one captured HTTP transaction: request, response, TLS and
HTTP/2 connection metadata, timings and the capturing process. Payloads arrive
camelCase (``httpVersion``, ``statusCode``, ``connectionId``...) and bodies are
base64-encoded strings.
"""

from __future__ import annotations

import base64
import binascii
import string
from collections.abc import Sequence

import pydantic

from powhttp_inspect.base_model import CaptureModel

__all__ = [
    'HTTP2Info',
    'Headers',
    'JA3Fingerprint',
    'JA4Fingerprint',
    'ProcessInfo',
    'Request',
    'Response',
    'SessionEntry',
    'SocketAddress',
    'TLSInfo',
    'Timings',
    'ascii_lower',
    'decode_body',
    'get_header',
]

# Ordered (name, value) pairs exactly as captured. Malformed pairs (fewer than
# two elements) are kept here and skipped by consumers.
Headers = Sequence[Sequence[str]]

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def ascii_lower(text: str) -> str:
    """Lowercase A-Z only. Non-ASCII letters (e.g. the Kelvin sign) are left as they are."""
    return text.translate(_ASCII_LOWER)


def get_header(headers: Headers, name: str) -> str:
    """Return the first value for a header name (case-insensitive), or ''."""
    name = ascii_lower(name)
    for pair in headers:
        if len(pair) >= 2 and ascii_lower(pair[0]) == name:
            return pair[1]
    return ''


def decode_body(encoded: str | None) -> bytes | None:
    """Decode a base64 body. Returns None for missing or undecodable bodies."""
    if encoded is None:
        return None
    try:
        return base64.b64decode(encoded, validate=True)
    except binascii.Error:
        return None


# ==============================================================================
# Request / Response
# ==============================================================================


class SocketAddress(CaptureModel):
    ip: str
    port: int | None = None


class Request(CaptureModel):
    """Captured HTTP request."""

    method: str | None = None
    path: str | None = None
    http_version: str | None = None
    headers: Headers = pydantic.Field(default_factory=list)
    body: str | None = None  # Base64-encoded


class Response(CaptureModel):
    """Captured HTTP response."""

    http_version: str | None = None
    status_code: int | None = None
    status_text: str | None = None
    headers: Headers = pydantic.Field(default_factory=list)
    body: str | None = None  # Base64-encoded


# ==============================================================================
# Connection metadata
# ==============================================================================


class JA3Fingerprint(CaptureModel):
    string: str = ''
    hash: str = ''


class JA4Fingerprint(CaptureModel):
    raw: str = ''
    hashed: str = ''


class TLSInfo(CaptureModel):
    """TLS connection information attached to an entry."""

    connection_id: str | None = None
    tls_version: int | None = None
    cipher_suite: int | None = None
    ja3: JA3Fingerprint | None = None
    ja4: JA4Fingerprint | None = None


class HTTP2Info(CaptureModel):
    """HTTP/2 stream the entry was carried on."""

    connection_id: str
    stream_id: int


class Timings(CaptureModel):
    started_at: int = 0  # Unix timestamp in milliseconds
    blocked: int | None = None
    dns: int | None = None
    connect: int | None = None
    send: int | None = None
    wait: int | None = None
    receive: int | None = None
    ssl: int | None = None


class ProcessInfo(CaptureModel):
    pid: int
    name: str | None = None


# ==============================================================================
# Entry
# ==============================================================================


class SessionEntry(CaptureModel):
    """An individual HTTP transaction captured within a session."""

    id: str
    url: str
    client_addr: SocketAddress | None = None
    remote_addr: SocketAddress | None = None
    http_version: str = ''
    transaction_type: str = 'request'  # "request" or "push_promise"
    request: Request = pydantic.Field(default_factory=Request)
    response: Response | None = None
    is_web_socket: bool = False
    tls: TLSInfo = pydantic.Field(default_factory=TLSInfo)
    http2: HTTP2Info | None = None
    timings: Timings = pydantic.Field(default_factory=Timings)
    process: ProcessInfo | None = None
