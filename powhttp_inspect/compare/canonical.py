"""
Canonical forms of captured headers and bodies.

Header names are compared case-insensitively via ASCII lowercase; values are
kept verbatim. Bodies arrive base64-encoded and are hashed after decoding.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

from powhttp_inspect.schemas.compare import BodyFingerprint, HeaderPair
from powhttp_inspect.schemas.entries import Headers, SessionEntry, ascii_lower, decode_body

__all__ = [
    'body_fingerprint',
    'body_size',
    'extract_pseudo_headers',
    'hash_body',
    'header_names',
    'lowercase_set',
    'normalize_headers',
    'order_headers',
]


def order_headers(headers: Headers) -> list[HeaderPair]:
    """Copy header pairs in capture order, skipping malformed pairs."""
    return [(pair[0], pair[1]) for pair in headers if len(pair) >= 2]


def normalize_headers(headers: Headers) -> dict[str, list[str]]:
    """Map lowercased header names to their values in encounter order (duplicates kept)."""
    normalized: dict[str, list[str]] = {}
    for pair in headers:
        if len(pair) < 2:
            continue
        normalized.setdefault(ascii_lower(pair[0]), []).append(pair[1])
    return normalized


def extract_pseudo_headers(entry: SessionEntry) -> list[HeaderPair] | None:
    """HTTP/2 pseudo-headers (``:method``, ``:path``...) in capture order, or None for non-HTTP/2 entries."""
    if entry.http2 is None:
        return None
    return [pair for pair in order_headers(entry.request.headers) if pair[0].startswith(':')]


def body_size(encoded: str | None) -> int:
    """
    Decoded size of a base64 body.

    Undecodable bodies are estimated from the encoded length.
    """
    if not encoded:
        return 0
    decoded = decode_body(encoded)
    if decoded is None:
        padding = encoded[-2:].count('=')
        return max(len(encoded) * 3 // 4 - padding, 0)
    return len(decoded)


def hash_body(encoded: str | None) -> str:
    """
    SHA-256 hex digest of a decoded base64 body.

    Returns '' for missing, empty or undecodable bodies, never the hash of empty input.
    """
    decoded = decode_body(encoded)
    if not decoded:
        return ''
    return hashlib.sha256(decoded).hexdigest()


def body_fingerprint(entry: SessionEntry, max_bytes: int) -> BodyFingerprint:
    """Sizes for both bodies; hashes only for bodies of 1..max_bytes bytes."""
    req_body = entry.request.body
    resp_body = entry.response.body if entry.response is not None else None

    req_bytes = body_size(req_body)
    resp_bytes = body_size(resp_body)

    return BodyFingerprint(
        req_hash=_hash_within(req_body, req_bytes, max_bytes),
        req_bytes=req_bytes,
        resp_hash=_hash_within(resp_body, resp_bytes, max_bytes),
        resp_bytes=resp_bytes,
    )


def _hash_within(encoded: str | None, size: int, max_bytes: int) -> str | None:
    if not 0 < size <= max_bytes:
        return None
    return hash_body(encoded) or None


def header_names(pairs: Sequence[HeaderPair]) -> list[str]:
    """Lowercased names of non-pseudo headers, in order."""
    return [ascii_lower(name) for name, _ in pairs if not name.startswith(':')]


def lowercase_set(names: Sequence[str]) -> frozenset[str]:
    return frozenset(ascii_lower(name) for name in names)
