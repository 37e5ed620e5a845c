"""
Per-field statistics across a sample set.

Walks a schema's object properties (into nested objects and array items, down
to a depth limit) and counts, for each field, how often it is present, how
often it is null and how many distinct values it takes. String fields seen at
least ``FORMAT_MIN_SAMPLES`` times are classified as uuid, iso8601, url, email
or enum.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

import orjson

from powhttp_inspect.bodyschema.infer import InferOptions, infer_schema, parse_samples
from powhttp_inspect.schemas.json_schema import JSONSchema
from powhttp_inspect.schemas.validation import FieldStat, InferenceReport

__all__ = ['DEFAULT_MAX_DEPTH', 'compute_field_stats', 'detect_format', 'inference_report']

DEFAULT_MAX_DEPTH = 5
MAX_EXAMPLES = 3
FORMAT_MIN_SAMPLES = 5
MAX_ENUM_VALUES = 10

_UUID_RE = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.IGNORECASE)
_ISO8601_RE = re.compile(r'^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2})?')
_URL_RE = re.compile(r'^https?://')
_EMAIL_RE = re.compile(r'^[^@]+@[^@]+\.[^@]+$')

_FORMATS = (('uuid', _UUID_RE), ('iso8601', _ISO8601_RE), ('url', _URL_RE), ('email', _EMAIL_RE))


def detect_format(values: Sequence[str]) -> tuple[str, list[str]]:
    """
    Classify string values.

    Returns:
        (format, enum_values). The format is '' when there are fewer than
        FORMAT_MIN_SAMPLES values or nothing matches; enum_values is only
        filled in for the enum format.
    """
    if len(values) < FORMAT_MIN_SAMPLES:
        return '', []
    for name, pattern in _FORMATS:
        if all(pattern.match(value) for value in values):
            return name, []
    distinct = sorted(set(values))
    if len(distinct) <= MAX_ENUM_VALUES:
        return 'enum', distinct
    return '', []


def _resolve_type(schema: JSONSchema) -> str:
    if schema.type:
        return schema.type
    if schema.any_of:
        return '|'.join(member.type or 'unknown' for member in schema.any_of)
    if schema.ref:
        return 'ref'
    return 'unknown'


def _distinct_key(value: Any) -> str:
    return orjson.dumps(value, option=orjson.OPT_SORT_KEYS).decode()


def _field_stat(path: str, schema: JSONSchema, key: str, objects: Sequence[Mapping[str, Any]], total: int) -> FieldStat:
    present = 0
    nulls = 0
    distinct: set[str] = set()
    examples: list[Any] = []
    strings: list[str] = []

    for obj in objects:
        if key not in obj:
            continue
        present += 1
        value = obj[key]
        if value is None:
            nulls += 1
            continue
        if isinstance(value, str):
            strings.append(value)
        value_key = _distinct_key(value)
        if value_key in distinct:
            continue
        distinct.add(value_key)
        if len(examples) < MAX_EXAMPLES and not isinstance(value, (dict, list)):
            examples.append(value)

    type_name = _resolve_type(schema)
    value_format, enum_values = detect_format(strings) if type_name == 'string' else ('', [])

    return FieldStat(
        path=path,
        type=type_name,
        frequency=present / total if total else 0.0,
        required=present == total and nulls == 0,
        nullable=nulls > 0,
        distinct_count=len(distinct),
        examples=examples,
        format=value_format,
        enum_values=enum_values,
    )


def _walk(
    schema: JSONSchema,
    path: str,
    samples: Sequence[Any],
    depth: int,
    max_depth: int,
    stats: list[FieldStat],
) -> None:
    if depth > max_depth:
        if path:
            stats.append(FieldStat(path=f'{path} (truncated at depth limit)', type='...'))
        return

    obj = schema.object_branch()
    if obj is None or not obj.properties:
        return

    objects = [sample for sample in samples if isinstance(sample, Mapping)]
    total = len(samples)

    for key in sorted(obj.properties):
        prop = obj.properties[key]
        field_path = f'{path}.{key}' if path else key
        stats.append(_field_stat(field_path, prop, key, objects, total))

        values = [o[key] for o in objects if o.get(key) is not None]
        if prop.object_branch() is not None:
            _walk(prop, field_path, values, depth + 1, max_depth, stats)

        array = prop.array_branch()
        if array is not None and array.items is not None and array.items.object_branch() is not None:
            elements = [element for value in values if isinstance(value, list) for element in value]
            _walk(array.items, f'{field_path}[]', elements, depth + 1, max_depth, stats)


def compute_field_stats(
    schema: JSONSchema,
    samples: Sequence[bytes | str],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[FieldStat]:
    """
    Field statistics for every object property the schema describes.

    Args:
        schema: Schema to walk (typically inferred from the same samples)
        samples: Raw JSON documents; invalid ones are skipped
        max_depth: Nesting limit; deeper objects get one truncation placeholder

    Returns:
        Field stats in walk order, properties sorted by name at each level
    """
    values = parse_samples(samples)
    if not values:
        return []
    stats: list[FieldStat] = []
    _walk(schema, '', values, 0, max_depth, stats)
    return stats


def inference_report(
    samples: Sequence[bytes | str],
    options: InferOptions | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> InferenceReport | None:
    """Infer a schema from samples and attach field statistics. None when no sample parses."""
    inferred = infer_schema(samples, options)
    if inferred is None:
        return None
    return InferenceReport(
        json_schema=inferred.ir.to_dict(),
        sample_count=inferred.sample_count,
        all_match=inferred.all_match,
        field_stats=compute_field_stats(inferred.ir, samples, max_depth),
    )
