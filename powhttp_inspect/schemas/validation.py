"""Validation, inference and field-statistics output models."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from powhttp_inspect.base_model import StrictModel
from powhttp_inspect.schemas.json_schema import JSONSchema

__all__ = [
    'BodyValidation',
    'CommonError',
    'FieldStat',
    'InferenceReport',
    'InferredSchema',
    'ValidationResult',
    'ValidationSummary',
]


class ValidationResult(StrictModel):
    valid: bool
    errors: Sequence[str] = ()


class FieldStat(StrictModel):
    """Per-field statistics gathered across a sample set."""

    path: str
    type: str
    frequency: float = 0.0
    required: bool = False
    nullable: bool = False
    distinct_count: int = 0
    examples: Sequence[Any] = ()
    format: str = ''  # uuid | iso8601 | url | email | enum
    enum_values: Sequence[str] = ()


class InferredSchema(StrictModel):
    ir: JSONSchema
    sample_count: int
    all_match: bool


class BodyValidation(StrictModel):
    """Validation outcome for one body; ``skipped`` when there was no body to validate."""

    label: str
    skipped: bool = False
    result: ValidationResult | None = None


class CommonError(StrictModel):
    message: str
    count: int


class ValidationSummary(StrictModel):
    """Outcome of validating many bodies against one schema."""

    total_entries: int
    matching_count: int
    failed_count: int
    skipped_count: int
    all_match: bool
    common_errors: Sequence[CommonError] = ()
    results: Sequence[BodyValidation] = ()
    warnings: Sequence[str] = ()  # Schema parser warnings


class InferenceReport(StrictModel):
    """Inferred schema in wire form, with per-field statistics."""

    json_schema: dict[str, Any]
    sample_count: int
    all_match: bool
    field_stats: Sequence[FieldStat] = ()
