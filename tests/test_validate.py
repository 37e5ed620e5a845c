"""Tests for schema parsing dispatch and body validation."""

from __future__ import annotations

import orjson
import pytest

from powhttp_inspect.bodyschema import Validator, infer_schema, new_validator, parse_schema, validate_bodies
from powhttp_inspect.exceptions import ForbiddenTypeError, SchemaSyntaxError
from powhttp_inspect.schemas.json_schema import JSONSchema

STATUS_STRUCT = """
type S struct {
    Status string `json:"status"`
    Value  *int   `json:"value"`
}
"""

NODE_STRUCT = """
type Node struct {
    Name string `json:"name"`
    Next *Node  `json:"next,omitempty"`
}
"""

ID_SCHEMA = '{"type": "object", "properties": {"id": {"type": "integer"}}, "required": ["id"]}'


def _validator(text: str, format: str = 'json_schema') -> Validator:
    return Validator.from_text(text, format)  # type: ignore[arg-type]


# ==============================================================================
# Validator
# ==============================================================================


def test_pointer_fields_accept_null_but_plain_fields_do_not() -> None:
    validator = _validator(STATUS_STRUCT, 'go_struct')

    assert validator.validate(b'{"status": "ok", "value": null}').valid
    assert validator.validate(b'{"status": "ok"}').valid

    result = validator.validate(b'{"status": null, "value": 1}')
    assert not result.valid
    assert list(result.errors) == ['/status: got null, want string']


def test_missing_required_property() -> None:
    result = _validator(ID_SCHEMA).validate(b'{}')

    assert list(result.errors) == ["missing property 'id'"]


def test_additional_properties_not_allowed() -> None:
    validator = _validator('{"type": "object", "properties": {"a": {"type": "string"}}, "additionalProperties": false}')

    result = validator.validate(b'{"a": "x", "b": 1}')

    assert list(result.errors) == ["additional properties 'b' not allowed"]


def test_any_of_reports_each_branch() -> None:
    validator = _validator('{"type": "object", "properties": {"x": {"anyOf": [{"type": "string"}, {"type": "null"}]}}}')

    result = validator.validate(b'{"x": 5}')

    assert set(result.errors) == {'/x: got integer, want string', '/x: got integer, want null'}


def test_recursive_struct() -> None:
    validator = _validator(NODE_STRUCT, 'go_struct')

    assert validator.validate(b'{"name": "a", "next": {"name": "b", "next": null}}').valid

    result = validator.validate(b'{"name": "a", "next": {"name": 1}}')
    assert '/next/name: got integer, want string' in result.errors


def test_zod_schema() -> None:
    validator = _validator('z.object({ id: z.number(), tags: z.array(z.string()).optional() })', 'zod')

    assert validator.validate(b'{"id": 1.5}').valid
    assert list(validator.validate(b'{"id": 1, "tags": [1]}').errors) == ['/tags/0: got integer, want string']


def test_validate_parsed_value() -> None:
    validator = new_validator('z.object({ id: z.number(), name: z.string().nullable() })', 'zod')

    assert validator.validate_value({'id': 1, 'name': None}).valid
    assert list(validator.validate_value({'id': 1}).errors) == ["missing property 'name'"]


def test_invalid_json_is_a_validation_error() -> None:
    result = _validator(ID_SCHEMA).validate(b'{"id": ')

    assert not result.valid
    assert result.errors[0].startswith('invalid JSON')


def test_unresolvable_reference() -> None:
    with pytest.raises(SchemaSyntaxError, match='unresolvable reference'):
        Validator(JSONSchema(type='object', properties={'a': JSONSchema.ref_to('Missing')}))


def test_schema_that_does_not_compile() -> None:
    with pytest.raises(SchemaSyntaxError, match='compiling schema'):
        Validator(JSONSchema(type='bogus'))


def test_forbidden_type_propagates() -> None:
    with pytest.raises(ForbiddenTypeError):
        _validator('z.object({ a: z.unknown() })', 'zod')


def test_inferred_schema_accepts_its_samples() -> None:
    samples = [
        orjson.dumps({'id': 1, 'name': 'a', 'tags': ['x'], 'meta': {'n': 1.5}}),
        orjson.dumps({'id': 2, 'name': None, 'tags': [], 'extra': True}),
        orjson.dumps({'id': 3, 'tags': [1, 'y'], 'meta': None}),
    ]
    inferred = infer_schema(samples)
    assert inferred is not None

    validator = Validator(inferred.ir)

    for sample in samples:
        assert validator.validate(sample).valid


def test_wire_form_round_trip() -> None:
    schema = parse_schema(
        """
        type Order struct {
            ID    int               `json:"id"`
            Items []Item            `json:"items"`
            Note  *string           `json:"note,omitempty"`
            Attrs map[string]string `json:"attrs"`
        }
        type Item struct {
            SKU string `json:"sku"`
        }
        """,
        'go_struct',
    ).schema

    assert JSONSchema.from_dict(schema.to_dict()).to_dict() == schema.to_dict()


# ==============================================================================
# parse_schema
# ==============================================================================


def test_json_schema_drops_unknown_keywords() -> None:
    result = parse_schema('{"type": "string", "format": "email", "minLength": 3}', 'json_schema')

    assert result.schema.to_dict() == {'type': 'string'}
    assert list(result.warnings) == []


@pytest.mark.parametrize(
    ('text', 'message'),
    [
        ('{"type": ', 'invalid JSON schema'),
        ('[1, 2]', 'expected an object'),
        ('{"type": 5}', 'invalid JSON schema'),
    ],
)
def test_invalid_json_schema(text: str, message: str) -> None:
    with pytest.raises(SchemaSyntaxError, match=message):
        parse_schema(text, 'json_schema')


def test_unknown_format() -> None:
    with pytest.raises(SchemaSyntaxError, match='unsupported schema format'):
        parse_schema('{}', 'xml')  # type: ignore[arg-type]


def test_go_struct_warnings_are_kept() -> None:
    result = parse_schema('type E struct { Raw json.RawMessage `json:"raw"` }', 'go_struct')

    assert len(result.warnings) == 1
    assert 'E.Raw' in result.warnings[0]


# ==============================================================================
# validate_bodies
# ==============================================================================


def test_validate_bodies_summary() -> None:
    bodies: list[tuple[str, bytes | None]] = [
        ('a', b'{"id": 1}'),
        ('b', b'{}'),
        ('c', None),
        ('d', b'{"id": "x"}'),
        ('e', b'{}'),
    ]

    summary = validate_bodies(_validator(ID_SCHEMA), bodies, warnings=['w'])

    assert summary.total_entries == 5
    assert summary.matching_count == 1
    assert summary.failed_count == 3
    assert summary.skipped_count == 1
    assert not summary.all_match
    assert [(e.message, e.count) for e in summary.common_errors] == [
        ("missing property 'id'", 2),
        ('/id: got string, want integer', 1),
    ]
    assert [r.label for r in summary.results] == ['a', 'b', 'c', 'd', 'e']
    assert summary.results[2].skipped
    assert summary.results[2].result is None
    assert list(summary.warnings) == ['w']


def test_all_match_needs_a_match() -> None:
    validator = _validator(ID_SCHEMA)

    assert validate_bodies(validator, [('a', b'{"id": 1}'), ('b', b'{"id": 2}')]).all_match
    assert not validate_bodies(validator, [('a', None), ('b', b'')]).all_match
    assert not validate_bodies(validator, []).all_match
