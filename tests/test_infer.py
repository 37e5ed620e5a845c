"""Tests for schema inference from JSON samples."""

from __future__ import annotations

import orjson
import pytest

from powhttp_inspect.bodyschema.infer import InferOptions, infer_from_value, infer_schema, merge_schemas
from powhttp_inspect.schemas.json_schema import JSONSchema

NULLABLE_SAMPLES = [b'{"id": 1, "name": "a"}', b'{"id": 2, "name": null}', b'{"id": 3, "name": "c"}']


def _samples(*values: object) -> list[bytes]:
    return [orjson.dumps(value) for value in values]


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        (None, {'type': 'null'}),
        (True, {'type': 'boolean'}),
        (3, {'type': 'integer'}),
        (3.0, {'type': 'integer'}),
        (3.5, {'type': 'number'}),
        ('x', {'type': 'string'}),
        ([], {'type': 'array'}),
        ([1, 'a'], {'type': 'array', 'items': {'anyOf': [{'type': 'integer'}, {'type': 'string'}]}}),
        ({'b': 1, 'a': 'x'}, {'type': 'object', 'properties': {'a': {'type': 'string'}, 'b': {'type': 'integer'}}}),
    ],
)
def test_infer_from_value(value: object, expected: dict[str, object]) -> None:
    assert infer_from_value(value).to_dict() == expected


def test_required_with_nullable_as_optional() -> None:
    inferred = infer_schema(NULLABLE_SAMPLES, InferOptions(strict_required=True, mark_nullable_as_optional=True))

    assert inferred is not None
    assert inferred.ir.required == ['id']
    assert inferred.sample_count == 3
    assert not inferred.all_match


def test_required_with_nullable_as_required() -> None:
    inferred = infer_schema(NULLABLE_SAMPLES, InferOptions(strict_required=True, mark_nullable_as_optional=False))

    assert inferred is not None
    assert inferred.ir.required == ['id', 'name']


def test_nullable_property_becomes_any_of() -> None:
    inferred = infer_schema(NULLABLE_SAMPLES)

    assert inferred is not None
    assert inferred.ir.to_dict()['properties']['name'] == {'anyOf': [{'type': 'null'}, {'type': 'string'}]}


def test_required_means_present_in_every_sample() -> None:
    samples = _samples({'a': 1, 'b': 2}, {'a': 1}, {'a': 2, 'c': None})

    inferred = infer_schema(samples)

    assert inferred is not None
    assert inferred.ir.required == ['a']
    assert set(inferred.ir.properties or {}) == {'a', 'b', 'c'}


def test_strict_required_off() -> None:
    inferred = infer_schema(_samples({'a': 1}), InferOptions(strict_required=False))

    assert inferred is not None
    assert inferred.ir.required == []


def test_identical_samples_all_match() -> None:
    inferred = infer_schema(_samples({'a': [1, 2], 'b': {'c': 'x'}}) * 4)

    assert inferred is not None
    assert inferred.all_match
    assert inferred.sample_count == 4


def test_invalid_samples_are_skipped() -> None:
    inferred = infer_schema([b'not json', b'{"a": 1}', b''])

    assert inferred is not None
    assert inferred.sample_count == 1


def test_no_valid_samples() -> None:
    assert infer_schema([b'not json']) is None
    assert infer_schema([]) is None


def test_nested_required_in_array_items() -> None:
    samples = _samples({'items': [{'id': 1, 'tag': 'x'}, {'id': 2}]}, {'items': [{'id': 3}]})

    inferred = infer_schema(samples)

    assert inferred is not None
    items = inferred.ir.to_dict()['properties']['items']['items']
    assert items['required'] == ['id']


def test_top_level_array_of_objects() -> None:
    inferred = infer_schema(_samples([{'id': 1, 'x': 1}, {'id': 2}]))

    assert inferred is not None
    assert inferred.ir.type == 'array'
    assert inferred.ir.items is not None
    assert inferred.ir.items.required == ['id']


def test_additional_properties_applied_to_every_object() -> None:
    inferred = infer_schema(_samples({'a': {'b': [{'c': 1}]}}), InferOptions(additional_properties=False))

    assert inferred is not None
    data = inferred.ir.to_dict()
    assert data['additionalProperties'] is False
    assert data['properties']['a']['additionalProperties'] is False
    assert data['properties']['a']['properties']['b']['items']['additionalProperties'] is False


def test_merge_schemas_flattens_any_of() -> None:
    nullable_string = JSONSchema.nullable(JSONSchema(type='string'))

    merged = merge_schemas([nullable_string, JSONSchema(type='integer'), JSONSchema()])

    assert merged.to_dict() == {'anyOf': [{'type': 'integer'}, {'type': 'null'}, {'type': 'string'}]}


def test_merge_objects_unions_properties() -> None:
    merged = merge_schemas([infer_from_value({'a': 1}), infer_from_value({'b': 'x', 'a': 2.5})])

    assert merged.to_dict() == {
        'type': 'object',
        'properties': {'a': {'anyOf': [{'type': 'integer'}, {'type': 'number'}]}, 'b': {'type': 'string'}},
    }
