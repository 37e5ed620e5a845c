"""Entry fingerprinting and fingerprint diffs."""

from __future__ import annotations

from powhttp_inspect.compare.defaults import DEFAULT_IGNORE_HEADERS, DEFAULT_IGNORE_QUERY_KEYS
from powhttp_inspect.compare.diff import DiffEngine, DiffOptions, DiffRequest, diff_fingerprints
from powhttp_inspect.compare.fingerprint import FingerprintEngine, FingerprintOptions

__all__ = [
    'DEFAULT_IGNORE_HEADERS',
    'DEFAULT_IGNORE_QUERY_KEYS',
    'DiffEngine',
    'DiffOptions',
    'DiffRequest',
    'FingerprintEngine',
    'FingerprintOptions',
    'diff_fingerprints',
]
