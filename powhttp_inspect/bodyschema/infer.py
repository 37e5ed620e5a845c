"""
JSON Schema inference from sample documents.

Each sample is inferred on its own, then the per-sample schemas are merged:
same-typed schemas merge recursively (object properties are unioned, array
items merged) and mixed types become a sorted ``anyOf``. Required properties
are computed against the raw samples afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import attrs
import orjson

from powhttp_inspect.schemas.json_schema import JSONSchema
from powhttp_inspect.schemas.validation import InferredSchema

__all__ = ['InferOptions', 'infer_from_value', 'infer_schema', 'merge_schemas', 'parse_samples']


@attrs.define(frozen=True)
class InferOptions:
    """
    Inference options.

    Attributes:
        strict_required: Mark properties present in every sample as required
        additional_properties: Set on every object schema when not None
        mark_nullable_as_optional: Properties that are null in some sample are not required
    """

    strict_required: bool = True
    additional_properties: bool | None = None
    mark_nullable_as_optional: bool = True


def parse_samples(samples: Sequence[bytes | str]) -> list[Any]:
    """Parse JSON samples, skipping the ones that aren't valid JSON."""
    values: list[Any] = []
    for sample in samples:
        try:
            values.append(orjson.loads(sample))
        except orjson.JSONDecodeError:
            continue
    return values


def infer_from_value(value: Any) -> JSONSchema:
    """Schema describing a single parsed JSON value."""
    if value is None:
        return JSONSchema(type='null')
    if isinstance(value, bool):
        return JSONSchema(type='boolean')
    if isinstance(value, int):
        return JSONSchema(type='integer')
    if isinstance(value, float):
        return JSONSchema(type='integer' if value.is_integer() else 'number')
    if isinstance(value, str):
        return JSONSchema(type='string')
    if isinstance(value, list):
        if not value:
            return JSONSchema(type='array')
        return JSONSchema(type='array', items=merge_schemas([infer_from_value(item) for item in value]))
    if isinstance(value, dict):
        return JSONSchema(
            type='object',
            properties={key: infer_from_value(value[key]) for key in sorted(value)},
        )
    return JSONSchema()


def _flatten(schemas: Sequence[JSONSchema]) -> list[JSONSchema]:
    flat: list[JSONSchema] = []
    for schema in schemas:
        if schema.type:
            flat.append(schema)
        elif schema.any_of:
            flat.extend(_flatten(schema.any_of))
    return flat


def merge_schemas(schemas: Sequence[JSONSchema]) -> JSONSchema:
    """
    Merge schemas describing the same location.

    Typeless schemas are dropped (``anyOf`` members are merged in their place).
    One type merges recursively; several types become an ``anyOf`` sorted by
    type name, one member per type.
    """
    typed = _flatten(schemas)
    if not typed:
        return JSONSchema()

    by_type: dict[str, list[JSONSchema]] = {}
    for schema in typed:
        by_type.setdefault(schema.type, []).append(schema)

    members = [_merge_same_type(type_name, by_type[type_name]) for type_name in sorted(by_type)]
    if len(members) == 1:
        return members[0]
    return JSONSchema(any_of=members)


def _merge_same_type(type_name: str, schemas: list[JSONSchema]) -> JSONSchema:
    if type_name == 'object':
        return _merge_objects(schemas)
    if type_name == 'array':
        return _merge_arrays(schemas)
    return JSONSchema(type=type_name)


def _merge_objects(schemas: Sequence[JSONSchema]) -> JSONSchema:
    collected: dict[str, list[JSONSchema]] = {}
    for schema in schemas:
        for key, prop in (schema.properties or {}).items():
            collected.setdefault(key, []).append(prop)
    return JSONSchema(
        type='object',
        properties={key: merge_schemas(collected[key]) for key in sorted(collected)},
    )


def _merge_arrays(schemas: Sequence[JSONSchema]) -> JSONSchema:
    items = [schema.items for schema in schemas if schema.items is not None]
    if not items:
        return JSONSchema(type='array')
    return JSONSchema(type='array', items=merge_schemas(items))


# ==============================================================================
# Required properties
# ==============================================================================


def _compute_required(schema: JSONSchema, samples: Sequence[Any], nullable_optional: bool) -> None:
    """Set ``required`` on object schemas from the samples at that location."""
    array = schema.array_branch()
    if array is not None and array.items is not None:
        elements = [element for sample in samples if isinstance(sample, list) for element in sample]
        _compute_required(array.items, elements, nullable_optional)

    obj = schema.object_branch()
    if obj is None or not obj.properties:
        return

    objects = [sample for sample in samples if isinstance(sample, Mapping)]
    total = len(objects)
    required: list[str] = []
    for key, prop in obj.properties.items():
        present = [sample[key] for sample in objects if key in sample]
        null_count = sum(1 for value in present if value is None)
        if total and len(present) == total and not (nullable_optional and null_count):
            required.append(key)
        _compute_required(prop, [value for value in present if value is not None], nullable_optional)

    obj.required = sorted(required)


def _apply_additional_properties(schema: JSONSchema, value: bool) -> None:
    if schema.type == 'object':
        schema.additional_properties = value
    for prop in (schema.properties or {}).values():
        _apply_additional_properties(prop, value)
    if schema.items is not None:
        _apply_additional_properties(schema.items, value)
    for member in schema.any_of:
        _apply_additional_properties(member, value)


# ==============================================================================
# Entry point
# ==============================================================================


def infer_schema(samples: Sequence[bytes | str], options: InferOptions | None = None) -> InferredSchema | None:
    """
    Infer a JSON Schema from JSON samples.

    Args:
        samples: Raw JSON documents; invalid ones are skipped
        options: Inference options (defaults when None)

    Returns:
        The merged schema, the number of samples that parsed and whether every
        sample produced the same schema. None when no sample parses.
    """
    options = options or InferOptions()
    values = parse_samples(samples)
    if not values:
        return None

    per_sample = [infer_from_value(value) for value in values]
    first = per_sample[0].canonical_json()
    all_match = all(schema.canonical_json() == first for schema in per_sample[1:])

    merged = merge_schemas(per_sample)
    if options.strict_required:
        _compute_required(merged, values, options.mark_nullable_as_optional)
    if options.additional_properties is not None:
        _apply_additional_properties(merged, options.additional_properties)

    return InferredSchema(ir=merged, sample_count=len(values), all_match=all_match)
