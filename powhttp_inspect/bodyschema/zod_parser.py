"""
Zod schema expressions to JSON Schema.

Recursive descent over chained Zod calls::

    z.object({
      id: z.number().int(),
      name: z.string().min(1),
      "display-name": z.string().nullable().optional(),
      tags: z.array(z.string()).default([]),
    })

Supported types: string, number, boolean, null, array, object, record, enum
(as string), literal (as the literal's JSON type) and union. ``z.any()`` and
``z.unknown()`` are rejected. ``.optional()`` and ``.default(...)`` make a
property non-required, ``.nullable()`` also accepts null; every other modifier
is skipped along with its arguments.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from powhttp_inspect.exceptions import ForbiddenTypeError, SchemaSyntaxError
from powhttp_inspect.schemas.json_schema import JSONSchema

__all__ = ['parse_zod']

_IDENT_RE = re.compile(r'\w+')
_PROP_NAME_RE = re.compile(r'["\']([^"\']+)["\']|(\w+)')

FORBIDDEN_TYPES = frozenset({'any', 'unknown'})

_PRIMITIVES = {'string': 'string', 'number': 'number', 'boolean': 'boolean', 'null': 'null'}


class _ZodParser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self._types: dict[str, Callable[[], JSONSchema]] = {
            'object': self._parse_object,
            'array': self._parse_array,
            'record': self._parse_record,
            'enum': self._parse_enum,
            'literal': self._parse_literal,
            'union': self._parse_union,
        }

    # ==========================================================================
    # Scanning helpers
    # ==========================================================================

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in ' \t\r\n':
            self.pos += 1

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def _match(self, token: str) -> bool:
        if self.text.startswith(token, self.pos):
            self.pos += len(token)
            return True
        return False

    def _expect(self, token: str, context: str) -> None:
        self._skip_whitespace()
        if not self._match(token):
            raise SchemaSyntaxError(f"expected '{token}' {context}", position=self.pos)

    def _identifier(self) -> str:
        match = _IDENT_RE.match(self.text, self.pos)
        if match is None:
            return ''
        self.pos = match.end()
        return match.group(0)

    def _skip_string(self) -> None:
        quote = self.text[self.pos]
        self.pos += 1
        while self.pos < len(self.text) and self.text[self.pos] != quote:
            if self.text[self.pos] == '\\':
                self.pos += 1
            self.pos += 1
        self.pos += 1

    def _skip_balanced(self, open_char: str, close_char: str) -> None:
        """Skip past the ``close_char`` matching an already-consumed ``open_char``."""
        start = self.pos
        depth = 1
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char in '"\'`':
                self._skip_string()
                continue
            if char == open_char:
                depth += 1
            elif char == close_char:
                depth -= 1
                if depth == 0:
                    self.pos += 1
                    return
            self.pos += 1
        raise SchemaSyntaxError(f"unbalanced '{open_char}'", position=start - 1)

    # ==========================================================================
    # Grammar
    # ==========================================================================

    def parse_type(self) -> tuple[JSONSchema, bool]:
        """Parse one Zod expression. Returns the schema and whether it was marked optional."""
        self._skip_whitespace()
        if not self._match('z.'):
            raise SchemaSyntaxError("expected 'z.'", position=self.pos)

        name_position = self.pos
        name = self._identifier()
        if name in FORBIDDEN_TYPES:
            raise ForbiddenTypeError(f'z.{name}()')

        if name in _PRIMITIVES:
            self._expect('(', f'after z.{name}')
            self._skip_balanced('(', ')')
            schema = JSONSchema(type=_PRIMITIVES[name])
        elif name in self._types:
            self._expect('(', f'after z.{name}')
            schema = self._types[name]()
        else:
            raise SchemaSyntaxError(f'unknown zod type {name!r}', position=name_position)

        return self._parse_modifiers(schema)

    def _parse_object(self) -> JSONSchema:
        self._expect('{', 'after z.object(')
        properties: dict[str, JSONSchema] = {}
        required: list[str] = []

        while True:
            self._skip_whitespace()
            if self._peek() == '}':
                break

            name = self._property_name()
            self._expect(':', f'after property {name!r}')
            schema, optional = self.parse_type()
            properties[name] = schema
            if not optional and name not in required:
                required.append(name)

            self._skip_whitespace()
            if self._match(','):
                continue
            if self._peek() != '}':
                raise SchemaSyntaxError("expected ',' or '}' in object", position=self.pos)

        self._expect('}', 'to close object')
        self._expect(')', 'after object')
        return JSONSchema(type='object', properties=properties, required=required)

    def _property_name(self) -> str:
        match = _PROP_NAME_RE.match(self.text, self.pos)
        if match is None:
            raise SchemaSyntaxError('expected property name', position=self.pos)
        self.pos = match.end()
        return match.group(1) or match.group(2)

    def _parse_array(self) -> JSONSchema:
        items, _ = self.parse_type()
        self._expect(')', 'after array element type')
        return JSONSchema(type='array', items=items)

    def _parse_record(self) -> JSONSchema:
        values, _ = self.parse_type()
        self._skip_whitespace()
        if self._match(','):
            # z.record(keySchema, valueSchema)
            values, _ = self.parse_type()
        self._expect(')', 'after record value')
        return JSONSchema(type='object', additional_properties=True, items=values)

    def _parse_enum(self) -> JSONSchema:
        self._expect('[', 'after z.enum(')
        self._skip_balanced('[', ']')
        self._expect(')', 'after enum values')
        return JSONSchema(type='string')

    def _parse_literal(self) -> JSONSchema:
        self._skip_whitespace()
        char = self._peek()
        if char in ('"', "'", '`'):
            schema = JSONSchema(type='string')
        elif char.isdigit() or char == '-':
            schema = JSONSchema(type='number')
        elif self.text.startswith(('true', 'false'), self.pos):
            schema = JSONSchema(type='boolean')
        elif self.text.startswith('null', self.pos):
            schema = JSONSchema(type='null')
        else:
            schema = JSONSchema()
        self._skip_balanced('(', ')')
        return schema

    def _parse_union(self) -> JSONSchema:
        self._expect('[', 'after z.union(')
        members: list[JSONSchema] = []
        while True:
            self._skip_whitespace()
            if self._peek() == ']':
                break
            member, _ = self.parse_type()
            members.append(member)
            self._skip_whitespace()
            if not self._match(',') and self._peek() != ']':
                raise SchemaSyntaxError("expected ',' or ']' in union", position=self.pos)

        self._expect(']', 'to close union')
        self._expect(')', 'after union')
        if len(members) == 1:
            return members[0]
        return JSONSchema(any_of=members)

    def _parse_modifiers(self, schema: JSONSchema) -> tuple[JSONSchema, bool]:
        optional = False
        while True:
            self._skip_whitespace()
            if not self._match('.'):
                return schema, optional

            modifier = self._identifier()
            if modifier == 'optional':
                if not self._match('()'):
                    raise SchemaSyntaxError("expected '()' after .optional", position=self.pos)
                optional = True
            elif modifier == 'nullable':
                if not self._match('()'):
                    raise SchemaSyntaxError("expected '()' after .nullable", position=self.pos)
                schema = JSONSchema.nullable(schema)
            elif modifier == 'default':
                if not self._match('('):
                    raise SchemaSyntaxError("expected '(' after .default", position=self.pos)
                self._skip_balanced('(', ')')
                optional = True
            elif self._match('('):
                # describe, min, regex, refine, transform... only constrain values
                self._skip_balanced('(', ')')


def parse_zod(text: str) -> JSONSchema:
    """
    Parse a Zod schema expression into a JSON Schema.

    Args:
        text: Zod expression starting with ``z.``

    Returns:
        Root schema

    Raises:
        ForbiddenTypeError: If the expression uses ``z.any()`` or ``z.unknown()``
        SchemaSyntaxError: If the expression is malformed
    """
    # Schemas pasted through JSON tool arguments often carry literal "\n"
    parser = _ZodParser(text.replace('\\n', '\n'))
    schema, _ = parser.parse_type()
    return schema
