"""
Diff engine.

Compares the fingerprints of a baseline and a candidate entry. Changes that
plausibly affect anti-bot detection (protocol, TLS fingerprints, HTTP/2
pseudo-headers, header presence, values and order) are reported as important;
headers and query keys on the ignore lists are reported as noisy.

Every list in the result is sorted or positionally ordered, so equal inputs
produce byte-identical JSON.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from urllib.parse import parse_qsl, urlsplit

import attrs

from powhttp_inspect.compare.canonical import header_names, lowercase_set
from powhttp_inspect.compare.defaults import DEFAULT_IGNORE_HEADERS, DEFAULT_IGNORE_QUERY_KEYS, DEFAULT_SESSION_ID
from powhttp_inspect.compare.fingerprint import FingerprintEngine, FingerprintOptions
from powhttp_inspect.exceptions import EntryNotFoundError, FetchError, FetchTimeoutError
from powhttp_inspect.schemas.compare import (
    DiffResult,
    Fingerprint,
    HeaderOrderDiff,
    HeaderPair,
    HeaderValueDiff,
    HTTP2Diff,
    HTTP2Summary,
    ImportantDiffs,
    NoisyDiffs,
    OrderMove,
    ProtocolDiff,
    TLSDiff,
    TLSSummary,
)
from powhttp_inspect.schemas.entries import ascii_lower

__all__ = [
    'DiffEngine',
    'DiffOptions',
    'DiffRequest',
    'HeaderDiff',
    'diff_fingerprints',
    'diff_header_order',
    'diff_headers',
    'diff_http2',
    'diff_query_keys',
    'diff_tls',
    'lcs',
]


@attrs.define(frozen=True)
class DiffOptions:
    """
    Diff options.

    Attributes:
        compare_header_order: Report header moves outside the common subsequence
        compare_header_values: Report missing, extra and changed headers
        compare_tls: Fetch and compare TLS summaries
        compare_http2: Fetch HTTP/2 summaries and compare pseudo-headers
        ignore_headers: Header names reported as noise (None uses the defaults)
        ignore_query_keys: Query keys reported as noise (None uses the defaults)
        max_bytes: Body hash cap (None uses the fingerprint engine default)
    """

    compare_header_order: bool = True
    compare_header_values: bool = True
    compare_tls: bool = True
    compare_http2: bool = True
    ignore_headers: tuple[str, ...] | None = attrs.field(default=None, converter=attrs.converters.optional(tuple))
    ignore_query_keys: tuple[str, ...] | None = attrs.field(default=None, converter=attrs.converters.optional(tuple))
    max_bytes: int | None = None

    @property
    def effective_ignore_headers(self) -> tuple[str, ...]:
        return DEFAULT_IGNORE_HEADERS if self.ignore_headers is None else self.ignore_headers

    @property
    def effective_ignore_query_keys(self) -> tuple[str, ...]:
        return DEFAULT_IGNORE_QUERY_KEYS if self.ignore_query_keys is None else self.ignore_query_keys


@attrs.define(frozen=True)
class DiffRequest:
    baseline_entry_id: str
    candidate_entry_id: str
    session_id: str = ''  # Empty means the live session
    options: DiffOptions | None = None


@attrs.define(frozen=True)
class HeaderDiff:
    """Presence and value differences between two normalized header maps."""

    missing: tuple[str, ...] = ()
    extra: tuple[str, ...] = ()
    value_changed: tuple[HeaderValueDiff, ...] = ()
    ignored: tuple[str, ...] = ()


# ==============================================================================
# Engine
# ==============================================================================


class DiffEngine:
    """Compares two captured entries through their fingerprints."""

    def __init__(self, fingerprinter: FingerprintEngine) -> None:
        self.fingerprinter = fingerprinter

    async def diff(self, request: DiffRequest) -> DiffResult:
        """
        Diff a baseline entry against a candidate entry.

        Both fingerprints are generated concurrently with the same options. If
        either fails, the other is cancelled and the first failure is raised.

        Raises:
            EntryNotFoundError: If either entry does not exist
            FetchError: If either entry cannot be fingerprinted
        """
        options = request.options or DiffOptions()
        session_id = request.session_id or DEFAULT_SESSION_ID
        fp_options = FingerprintOptions(
            include_tls_summary=options.compare_tls,
            include_http2_summary=options.compare_http2,
            max_bytes=options.max_bytes,
        )

        try:
            async with asyncio.TaskGroup() as group:
                baseline = group.create_task(
                    self._fingerprint('baseline', session_id, request.baseline_entry_id, fp_options)
                )
                candidate = group.create_task(
                    self._fingerprint('candidate', session_id, request.candidate_entry_id, fp_options)
                )
        except ExceptionGroup as group_error:
            # The first failure cancels the other side; surface it unwrapped
            raise group_error.exceptions[0]
        return diff_fingerprints(baseline.result(), candidate.result(), options)

    async def _fingerprint(
        self,
        role: str,
        session_id: str,
        entry_id: str,
        options: FingerprintOptions,
    ) -> Fingerprint:
        try:
            return await self.fingerprinter.generate(session_id, entry_id, options)
        except EntryNotFoundError as e:
            raise EntryNotFoundError(f'generating {role} fingerprint: {e}') from e
        except FetchTimeoutError as e:
            raise FetchTimeoutError(f'generating {role} fingerprint: {e}') from e
        except FetchError as e:
            raise FetchError(f'generating {role} fingerprint: {e}', status_code=e.status_code) from e


def diff_fingerprints(baseline: Fingerprint, candidate: Fingerprint, options: DiffOptions | None = None) -> DiffResult:
    """Compare two fingerprints. ``diff_fingerprints(fp, fp)`` reports nothing."""
    options = options or DiffOptions()

    protocol: ProtocolDiff | None = None
    if baseline.entry_summary.http_version != candidate.entry_summary.http_version:
        protocol = ProtocolDiff(
            baseline_version=baseline.entry_summary.http_version,
            candidate_version=candidate.entry_summary.http_version,
        )

    tls = diff_tls(baseline.tls_summary, candidate.tls_summary) if options.compare_tls else None
    http2 = diff_http2(baseline, candidate) if options.compare_http2 else None

    headers = HeaderDiff()
    if options.compare_header_values:
        headers = diff_headers(
            baseline.headers_normalized,
            candidate.headers_normalized,
            options.effective_ignore_headers,
        )

    order: HeaderOrderDiff | None = None
    if options.compare_header_order:
        order_diff = diff_header_order(baseline.headers_ordered, candidate.headers_ordered)
        if order_diff.changed:
            order = order_diff

    return DiffResult(
        baseline=baseline.entry_summary,
        candidate=candidate.entry_summary,
        important_diffs=ImportantDiffs(
            protocol=protocol,
            tls=tls,
            http2=http2,
            headers_missing=headers.missing,
            headers_extra=headers.extra,
            headers_value_changed=headers.value_changed,
            header_order_changes=order,
        ),
        noisy_diffs=NoisyDiffs(
            ignored_headers=headers.ignored,
            query_key_diffs=diff_query_keys(
                baseline.entry_summary.url,
                candidate.entry_summary.url,
                options.effective_ignore_query_keys,
            ),
        ),
    )


# ==============================================================================
# TLS / HTTP2
# ==============================================================================


def _differs(a: str, b: str) -> bool:
    # Two empty values are not a difference
    return a != b and (a != '' or b != '')


def diff_tls(baseline: TLSSummary | None, candidate: TLSSummary | None) -> TLSDiff | None:
    """Compare JA3, JA4, cipher suite and TLS version. None when nothing differs."""
    if baseline is None and candidate is None:
        return None
    baseline = baseline or TLSSummary()
    candidate = candidate or TLSSummary()

    ja3_different = _differs(baseline.ja3, candidate.ja3)
    ja4_different = _differs(baseline.ja4, candidate.ja4)
    cipher_different = _differs(baseline.cipher_suite, candidate.cipher_suite)
    version_different = _differs(baseline.tls_version, candidate.tls_version)

    if not (ja3_different or ja4_different or cipher_different or version_different):
        return None

    return TLSDiff(
        ja3_different=ja3_different,
        ja4_different=ja4_different,
        cipher_different=cipher_different,
        version_different=version_different,
        baseline_ja3=baseline.ja3 if ja3_different else None,
        candidate_ja3=candidate.ja3 if ja3_different else None,
        baseline_ja4=baseline.ja4 if ja4_different else None,
        candidate_ja4=candidate.ja4 if ja4_different else None,
    )


def _pseudo_headers_equal(a: Sequence[HeaderPair] | None, b: Sequence[HeaderPair] | None) -> bool:
    a = a or ()
    b = b or ()
    return len(a) == len(b) and all(tuple(x) == tuple(y) for x, y in zip(a, b))


def diff_http2(baseline: Fingerprint, candidate: Fingerprint) -> HTTP2Diff | None:
    """Compare pseudo-headers in order. Stream ids are reported alongside."""
    if baseline.http2_summary is None and candidate.http2_summary is None:
        return None

    baseline_summary = baseline.http2_summary or HTTP2Summary()
    candidate_summary = candidate.http2_summary or HTTP2Summary()
    pseudo_headers_diff = not _pseudo_headers_equal(baseline.http2_pseudo_headers, candidate.http2_pseudo_headers)

    if not pseudo_headers_diff and baseline_summary.stream_id == candidate_summary.stream_id:
        return None

    return HTTP2Diff(
        baseline_stream_id=baseline_summary.stream_id,
        candidate_stream_id=candidate_summary.stream_id,
        pseudo_headers_diff=pseudo_headers_diff,
    )


# ==============================================================================
# Headers
# ==============================================================================


def diff_headers(
    baseline: Mapping[str, Sequence[str]],
    candidate: Mapping[str, Sequence[str]],
    ignore: Sequence[str],
) -> HeaderDiff:
    """
    Header presence and value differences.

    Ignored headers present on both sides are reported as ignored; ignored
    headers missing from the candidate are not reported at all. Values are
    compared in order and case-sensitively.
    """
    ignore_set = lowercase_set(ignore)
    missing: list[str] = []
    extra: list[str] = []
    ignored: list[str] = []
    value_changed: list[HeaderValueDiff] = []

    for name, baseline_values in baseline.items():
        if name in ignore_set:
            if name in candidate:
                ignored.append(name)
            continue
        if name not in candidate:
            missing.append(name)
            continue
        candidate_values = candidate[name]
        if list(baseline_values) != list(candidate_values):
            value_changed.append(
                HeaderValueDiff(name=name, baseline=list(baseline_values), candidate=list(candidate_values))
            )

    for name in candidate:
        if name not in ignore_set and name not in baseline:
            extra.append(name)

    return HeaderDiff(
        missing=tuple(sorted(missing)),
        extra=tuple(sorted(extra)),
        value_changed=tuple(sorted(value_changed, key=lambda d: d.name)),
        ignored=tuple(sorted(ignored)),
    )


def lcs(a: Sequence[str], b: Sequence[str]) -> list[str]:
    """
    Longest common subsequence of two name sequences.

    Backtracking prefers stepping back in ``a`` only when that keeps a strictly
    longer subsequence, otherwise steps back in ``b``.
    """
    m, n = len(a), len(b)
    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if a[i - 1] == b[j - 1]:
                dp[i][j] = dp[i - 1][j - 1] + 1
            else:
                dp[i][j] = max(dp[i - 1][j], dp[i][j - 1])

    result: list[str] = []
    i, j = m, n
    while i > 0 and j > 0:
        if a[i - 1] == b[j - 1]:
            result.append(a[i - 1])
            i -= 1
            j -= 1
        elif dp[i - 1][j] > dp[i][j - 1]:
            i -= 1
        else:
            j -= 1
    result.reverse()
    return result


def _first_positions(names: Sequence[str]) -> dict[str, int]:
    positions: dict[str, int] = {}
    for index, name in enumerate(names):
        positions.setdefault(name, index)
    return positions


def diff_header_order(baseline: Sequence[HeaderPair], candidate: Sequence[HeaderPair]) -> HeaderOrderDiff:
    """
    Header order comparison, ignoring pseudo-headers.

    Headers present on both sides but outside the longest common subsequence
    are reported as moves with their first positions. Repeated names only
    count their first occurrence.
    """
    baseline_order = header_names(baseline)
    candidate_order = header_names(candidate)
    common = set(lcs(baseline_order, candidate_order))

    baseline_positions = _first_positions(baseline_order)
    candidate_positions = _first_positions(candidate_order)

    moves = [
        OrderMove(header=name, baseline_pos=position, candidate_pos=candidate_positions[name])
        for name, position in baseline_positions.items()
        if name in candidate_positions and name not in common
    ]

    return HeaderOrderDiff(baseline_order=baseline_order, candidate_order=candidate_order, moves=moves)


# ==============================================================================
# Query keys
# ==============================================================================


def _query_values(url: str, keys: frozenset[str]) -> dict[str, list[str]]:
    try:
        query = urlsplit(url).query
    except ValueError:
        return {}
    values: dict[str, list[str]] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        key = ascii_lower(key)
        if key in keys:
            values.setdefault(key, []).append(value)
    return values


def diff_query_keys(baseline_url: str, candidate_url: str, ignore_keys: Sequence[str]) -> list[str]:
    """Ignored query keys whose values differ between the two URLs, sorted."""
    keys = lowercase_set(ignore_keys)
    baseline = _query_values(baseline_url, keys)
    candidate = _query_values(candidate_url, keys)
    return sorted(key for key in baseline.keys() | candidate.keys() if baseline.get(key) != candidate.get(key))
