"""Pydantic models for captured entries and analysis results."""

from __future__ import annotations

from powhttp_inspect.schemas.compare import (
    DiffResult,
    EntrySummary,
    Fingerprint,
    HTTP2Summary,
    TLSSummary,
)
from powhttp_inspect.schemas.entries import SessionEntry, ascii_lower, get_header
from powhttp_inspect.schemas.json_schema import JSONSchema
from powhttp_inspect.schemas.tls import TLSEvent
from powhttp_inspect.schemas.validation import FieldStat, InferenceReport, InferredSchema, ValidationResult, ValidationSummary

__all__ = [
    'DiffResult',
    'EntrySummary',
    'FieldStat',
    'Fingerprint',
    'HTTP2Summary',
    'InferenceReport',
    'InferredSchema',
    'JSONSchema',
    'SessionEntry',
    'TLSEvent',
    'TLSSummary',
    'ValidationResult',
    'ValidationSummary',
    'ascii_lower',
    'get_header',
]
