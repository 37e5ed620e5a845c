"""
Fingerprint and diff output models.

All models are immutable. Optional members are None when absent; surfaces dump
with ``exclude_none=True`` so absent members are omitted from JSON.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from powhttp_inspect.base_model import StrictModel

__all__ = [
    'BodyFingerprint',
    'DiffResult',
    'EntryHTTP2',
    'EntrySizes',
    'EntrySummary',
    'EntryTLS',
    'Fingerprint',
    'HTTP2Diff',
    'HTTP2Summary',
    'HeaderOrderDiff',
    'HeaderPair',
    'HeaderValueDiff',
    'ImportantDiffs',
    'NoisyDiffs',
    'OrderMove',
    'ProtocolDiff',
    'TLSDiff',
    'TLSSummary',
]

HeaderPair = tuple[str, str]


# ==============================================================================
# Entry summary
# ==============================================================================


class EntryTLS(StrictModel):
    connection_id: str = ''
    ja3: str = ''
    ja4: str = ''


class EntryHTTP2(StrictModel):
    connection_id: str = ''
    stream_id: int = 0


class EntrySizes(StrictModel):
    req_body_bytes: int = 0
    resp_body_bytes: int = 0
    resp_content_type: str = ''


class EntrySummary(StrictModel):
    """Compact projection of a captured entry."""

    entry_id: str
    ts_ms: int = 0
    method: str = ''
    url: str = ''
    host: str = ''  # Lowercased, includes port when captured with one
    path: str = ''
    status: int = 0
    http_version: str = ''
    process_name: str = ''
    pid: int = 0
    tls: EntryTLS = EntryTLS()
    http2: EntryHTTP2 | None = None
    sizes: EntrySizes = EntrySizes()


# ==============================================================================
# Fingerprint
# ==============================================================================


class BodyFingerprint(StrictModel):
    """Body sizes, plus SHA-256 hashes for bodies within the byte cap."""

    req_hash: str | None = None
    req_bytes: int = 0
    resp_hash: str | None = None
    resp_bytes: int = 0


class TLSSummary(StrictModel):
    connection_id: str = ''
    tls_version: str = ''
    cipher_suite: str = ''
    ja3: str = ''
    ja4: str = ''
    alpn: str = ''


class HTTP2Summary(StrictModel):
    connection_id: str = ''
    stream_id: int = 0
    frame_counts: Mapping[str, int] = {}


class Fingerprint(StrictModel):
    """Canonical projection of an entry used for comparison."""

    entry_summary: EntrySummary
    headers_ordered: Sequence[HeaderPair] = ()
    headers_normalized: Mapping[str, Sequence[str]] = {}
    http2_pseudo_headers: Sequence[HeaderPair] | None = None
    body: BodyFingerprint = BodyFingerprint()
    tls_summary: TLSSummary | None = None
    http2_summary: HTTP2Summary | None = None


# ==============================================================================
# Diff
# ==============================================================================


class ProtocolDiff(StrictModel):
    baseline_version: str
    candidate_version: str


class TLSDiff(StrictModel):
    """
    TLS fingerprint differences.

    JA3/JA4 values are only filled in when that fingerprint differs.
    """

    ja3_different: bool = False
    ja4_different: bool = False
    cipher_different: bool = False
    version_different: bool = False
    baseline_ja3: str | None = None
    candidate_ja3: str | None = None
    baseline_ja4: str | None = None
    candidate_ja4: str | None = None


class HTTP2Diff(StrictModel):
    baseline_stream_id: int = 0
    candidate_stream_id: int = 0
    pseudo_headers_diff: bool = False


class HeaderValueDiff(StrictModel):
    name: str
    baseline: Sequence[str]
    candidate: Sequence[str]


class OrderMove(StrictModel):
    """A header present in both orders but outside their common subsequence."""

    header: str
    baseline_pos: int
    candidate_pos: int


class HeaderOrderDiff(StrictModel):
    baseline_order: Sequence[str] = ()
    candidate_order: Sequence[str] = ()
    moves: Sequence[OrderMove] = ()

    @property
    def changed(self) -> bool:
        return bool(self.moves) or list(self.baseline_order) != list(self.candidate_order)


class ImportantDiffs(StrictModel):
    """Changes that plausibly affect anti-bot detection."""

    protocol: ProtocolDiff | None = None
    tls: TLSDiff | None = None
    http2: HTTP2Diff | None = None
    headers_missing: Sequence[str] = ()
    headers_extra: Sequence[str] = ()
    headers_value_changed: Sequence[HeaderValueDiff] = ()
    header_order_changes: HeaderOrderDiff | None = None

    @property
    def empty(self) -> bool:
        return (
            self.protocol is None
            and self.tls is None
            and self.http2 is None
            and not self.headers_missing
            and not self.headers_extra
            and not self.headers_value_changed
            and self.header_order_changes is None
        )


class NoisyDiffs(StrictModel):
    """Changes to headers and query keys that vary between otherwise identical requests."""

    ignored_headers: Sequence[str] = ()
    query_key_diffs: Sequence[str] = ()

    @property
    def empty(self) -> bool:
        return not self.ignored_headers and not self.query_key_diffs


class DiffResult(StrictModel):
    baseline: EntrySummary
    candidate: EntrySummary
    important_diffs: ImportantDiffs = ImportantDiffs()
    noisy_diffs: NoisyDiffs = NoisyDiffs()
