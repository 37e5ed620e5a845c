"""
Body schemas: parsing, inference, field statistics and validation.

Three schema surfaces are accepted (``go_struct``, ``zod``, ``json_schema``);
all of them parse into the JSONSchema IR, which is also what inference produces
and what the validator compiles.
"""

from __future__ import annotations

from powhttp_inspect.bodyschema.infer import InferOptions, infer_from_value, infer_schema
from powhttp_inspect.bodyschema.parse import SCHEMA_FORMATS, ParseResult, SchemaFormat, parse, parse_schema
from powhttp_inspect.bodyschema.stats import compute_field_stats, detect_format, inference_report
from powhttp_inspect.bodyschema.validate import Validator, new_validator, validate_bodies

__all__ = [
    'SCHEMA_FORMATS',
    'InferOptions',
    'ParseResult',
    'SchemaFormat',
    'Validator',
    'compute_field_stats',
    'detect_format',
    'infer_from_value',
    'infer_schema',
    'inference_report',
    'new_validator',
    'parse',
    'parse_schema',
    'validate_bodies',
]
