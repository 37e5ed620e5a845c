"""Headers and query keys that differ between otherwise identical requests."""

from __future__ import annotations

DEFAULT_SESSION_ID = 'active'

DEFAULT_IGNORE_HEADERS: tuple[str, ...] = (
    'date',
    'x-request-id',
    'x-correlation-id',
    'x-trace-id',
    'x-amzn-requestid',
    'x-amzn-trace-id',
    'cf-ray',
    'x-cache',
    'age',
    'expires',
    'last-modified',
    'etag',
)

# Cache busters and timestamps
DEFAULT_IGNORE_QUERY_KEYS: tuple[str, ...] = (
    '_',
    't',
    'ts',
    'timestamp',
    'time',
    'rand',
    'random',
    'nonce',
    'cb',
    'cachebuster',
)
