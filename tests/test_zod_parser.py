"""Tests for the Zod parser."""

from __future__ import annotations

import pytest

from powhttp_inspect.bodyschema.zod_parser import parse_zod
from powhttp_inspect.exceptions import ForbiddenTypeError, SchemaSyntaxError

ORDER_SCHEMA = """
z.object({
  id: z.number().int().positive(),
  status: z.enum(["pending", "shipped"]),
  "display-name": z.string().min(1).nullable().optional(),
  note: z.string().nullable(),
  tags: z.array(z.string()).default([]),
  kind: z.literal("order"),
  metadata: z.record(z.string(), z.number()),
  total: z.union([z.number(), z.string()]),
  customer: z.object({ email: z.string().email(), vip: z.boolean().optional() }).describe("buyer"),
})
"""


def test_parse_object() -> None:
    schema = parse_zod(ORDER_SCHEMA)

    assert schema.type == 'object'
    assert schema.required == ['id', 'status', 'note', 'kind', 'metadata', 'total', 'customer']
    assert schema.to_dict()['properties'] == {
        'id': {'type': 'number'},
        'status': {'type': 'string'},
        'display-name': {'anyOf': [{'type': 'string'}, {'type': 'null'}]},
        'note': {'anyOf': [{'type': 'string'}, {'type': 'null'}]},
        'tags': {'type': 'array', 'items': {'type': 'string'}},
        'kind': {'type': 'string'},
        'metadata': {'type': 'object', 'additionalProperties': True, 'items': {'type': 'number'}},
        'total': {'anyOf': [{'type': 'number'}, {'type': 'string'}]},
        'customer': {
            'type': 'object',
            'properties': {'email': {'type': 'string'}, 'vip': {'type': 'boolean'}},
            'required': ['email'],
        },
    }


def test_literal_newlines() -> None:
    schema = parse_zod('z.object({\\n  a: z.string(),\\n  b: z.null()\\n})')

    assert schema.required == ['a', 'b']


@pytest.mark.parametrize(
    ('literal', 'expected'),
    [('"x"', 'string'), ("'x'", 'string'), ('42', 'number'), ('-1.5', 'number'), ('true', 'boolean'), ('null', 'null')],
)
def test_literal_types(literal: str, expected: str) -> None:
    assert parse_zod(f'z.literal({literal})').type == expected


def test_single_member_union_is_unwrapped() -> None:
    assert parse_zod('z.union([z.string()])').to_dict() == {'type': 'string'}


def test_record_with_value_only() -> None:
    assert parse_zod('z.record(z.boolean())').to_dict() == {
        'type': 'object',
        'additionalProperties': True,
        'items': {'type': 'boolean'},
    }


def test_modifier_arguments_with_parentheses_in_strings() -> None:
    schema = parse_zod('z.object({ code: z.string().regex(/^\\d+$/).describe("digits (0-9)") })')

    assert schema.to_dict() == {'type': 'object', 'properties': {'code': {'type': 'string'}}, 'required': ['code']}


def test_trailing_content_is_ignored() -> None:
    assert parse_zod('z.string(); export type S = z.infer<typeof S>').type == 'string'


@pytest.mark.parametrize('text', ['z.any()', 'z.object({ data: z.unknown() })'])
def test_forbidden_types(text: str) -> None:
    with pytest.raises(ForbiddenTypeError):
        parse_zod(text)


@pytest.mark.parametrize(
    'text',
    [
        'string()',
        'z.date()',
        'z.object({ a: z.string() ',
        'z.object({ a z.string() })',
        'z.string().optional',
        'z.array(z.string()',
    ],
)
def test_syntax_errors(text: str) -> None:
    with pytest.raises(SchemaSyntaxError):
        parse_zod(text)
