"""Tests for the Go struct parser."""

from __future__ import annotations

import pytest

from powhttp_inspect.bodyschema.struct_parser import parse_go_structs
from powhttp_inspect.exceptions import ForbiddenTypeError, SchemaSyntaxError

USER_STRUCTS = """
type User struct {
    ID        int64             `json:"id"`
    Name      string            `json:"name"`
    Email     *string           `json:"email"`
    Nickname  string            `json:"nickname,omitempty"`
    Score     float64           `json:"score"`
    Active    bool              `json:"active"`
    Tags      []string          `json:"tags"`
    Labels    map[string]string `json:"labels,omitempty"`
    Address   Address           `json:"address"`
    Previous  *Address          `json:"previous"`
    Manager   *User             `json:"manager,omitempty"`
    internal  string            `json:"-"`
    CreatedAt string
}

type Address struct {
    Street string `json:"street"`
    City   string `json:"city"`
}
"""


def test_parse_root_and_definitions() -> None:
    result = parse_go_structs(USER_STRUCTS)
    schema = result.schema

    assert schema.type == 'object'
    assert schema.properties is not None
    assert list(schema.properties) == [
        'id',
        'name',
        'email',
        'nickname',
        'score',
        'active',
        'tags',
        'labels',
        'address',
        'previous',
        'manager',
        'createdAt',
    ]
    assert schema.required == ['id', 'name', 'score', 'active', 'tags', 'address', 'createdAt']
    assert schema.definitions is not None
    assert set(schema.definitions) == {'Address'}
    assert schema.definitions['Address'].required == ['street', 'city']
    assert result.warnings == ()


def test_field_types() -> None:
    props = parse_go_structs(USER_STRUCTS).schema.properties
    assert props is not None

    assert props['id'].to_dict() == {'type': 'integer'}
    assert props['score'].to_dict() == {'type': 'number'}
    assert props['active'].to_dict() == {'type': 'boolean'}
    assert props['tags'].to_dict() == {'type': 'array', 'items': {'type': 'string'}}
    assert props['labels'].to_dict() == {'type': 'object', 'additionalProperties': True, 'items': {'type': 'string'}}
    assert props['email'].to_dict() == {'anyOf': [{'type': 'string'}, {'type': 'null'}]}
    assert props['address'].to_dict() == {'$ref': '#/$defs/Address'}
    assert props['previous'].to_dict() == {'anyOf': [{'$ref': '#/$defs/Address'}, {'type': 'null'}]}
    assert props['manager'].to_dict() == {'anyOf': [{'$ref': '#'}, {'type': 'null'}]}


def test_pointer_and_omitempty_fields_are_never_required() -> None:
    schema = parse_go_structs(USER_STRUCTS).schema

    for optional in ('email', 'nickname', 'labels', 'previous', 'manager'):
        assert optional not in schema.required


def test_literal_newlines_and_semicolons() -> None:
    text = 'type Point struct {\\n X int `json:"x"`; Y int `json:"y"` }'

    schema = parse_go_structs(text).schema

    assert schema.required == ['x', 'y']


@pytest.mark.parametrize('go_type', ['interface{}', 'any', '*interface{}', '[]any'])
def test_forbidden_types(go_type: str) -> None:
    text = f'type Event struct {{\n Payload {go_type} `json:"payload"`\n}}'

    with pytest.raises(ForbiddenTypeError) as exc_info:
        parse_go_structs(text)

    assert exc_info.value.struct_name == 'Event'
    assert exc_info.value.field_name == 'Payload'


@pytest.mark.parametrize('go_type', ['json.RawMessage', '[]byte', 'time.Duration'])
def test_loose_types_warn_and_match_anything(go_type: str) -> None:
    text = f'type Event struct {{\n Payload {go_type} `json:"payload"`\n}}'

    result = parse_go_structs(text)

    assert len(result.warnings) == 1
    assert 'Event.Payload' in result.warnings[0]
    assert result.schema.properties is not None
    assert result.schema.properties['payload'].is_any


def test_no_structs() -> None:
    with pytest.raises(SchemaSyntaxError, match='no struct definitions found'):
        parse_go_structs('const x = 1')


def test_unterminated_struct() -> None:
    with pytest.raises(SchemaSyntaxError, match='unterminated struct Broken'):
        parse_go_structs('type Broken struct {\n A string `json:"a"`\n')
