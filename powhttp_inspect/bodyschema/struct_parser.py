"""
Go struct definitions to JSON Schema.

Parses one or more ``type Name struct { ... }`` blocks. The first struct is the
root; the others are emitted under ``$defs`` and referenced with ``$ref``.

Field lines look like ``Name Type `json:"name,omitempty"```. Lines that don't
match (embedded structs, nested anonymous structs, comments) are skipped.
A field is optional when its tag carries ``omitempty`` or its type is a
pointer; pointers also accept null.
"""

from __future__ import annotations

import re

import attrs

from powhttp_inspect.exceptions import ForbiddenTypeError, SchemaSyntaxError
from powhttp_inspect.schemas.json_schema import JSONSchema

__all__ = ['ParseResult', 'parse_go_structs']

_STRUCT_HEADER_RE = re.compile(r'type\s+(\w+)\s+struct\s*\{')
_FIELD_RE = re.compile(r'^\s*(\w+)\s+(\S+)(?:\s+`([^`]+)`)?\s*$')
_JSON_TAG_RE = re.compile(r'json:"([^"]*)"')

FORBIDDEN_TYPES = frozenset({'any', 'interface{}'})
WARNING_TYPES = frozenset({'json.RawMessage', '[]byte'})

_INTEGER_TYPES = frozenset(
    {'int', 'int8', 'int16', 'int32', 'int64', 'uint', 'uint8', 'uint16', 'uint32', 'uint64', 'uintptr', 'byte', 'rune'}
)
_NUMBER_TYPES = frozenset({'float32', 'float64'})


@attrs.define(frozen=True)
class ParseResult:
    """Parsed schema plus warnings about fields that cannot be fully validated."""

    schema: JSONSchema
    warnings: tuple[str, ...] = ()


@attrs.define(frozen=True)
class _StructDef:
    name: str
    body: str


def _normalize(text: str) -> str:
    # Schemas pasted through JSON tool arguments often carry literal "\n"
    return text.replace('\\n', '\n').replace(';', '\n')


def _find_closing_brace(text: str, open_index: int) -> int:
    """Index of the brace closing the one at ``open_index``, skipping string and raw-string literals."""
    depth = 0
    i = open_index
    while i < len(text):
        char = text[i]
        if char == '"':
            i += 1
            while i < len(text) and text[i] != '"':
                if text[i] == '\\':
                    i += 1
                i += 1
        elif char == '`':
            i += 1
            while i < len(text) and text[i] != '`':
                i += 1
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _extract_structs(text: str) -> list[_StructDef]:
    structs: list[_StructDef] = []
    position = 0
    while True:
        match = _STRUCT_HEADER_RE.search(text, position)
        if match is None:
            break
        open_index = match.end() - 1
        close_index = _find_closing_brace(text, open_index)
        if close_index == -1:
            raise SchemaSyntaxError(f'unterminated struct {match.group(1)}', position=open_index)
        structs.append(_StructDef(name=match.group(1), body=text[open_index + 1 : close_index]))
        position = close_index + 1
    return structs


def _json_name(field_name: str, tag: str) -> tuple[str | None, bool]:
    """
    JSON property name and omitempty flag from a struct tag.

    Returns (None, False) for fields tagged ``json:"-"``.
    """
    match = _JSON_TAG_RE.search(tag) if tag else None
    if match is None:
        return field_name[:1].lower() + field_name[1:], False

    name, *flags = match.group(1).split(',')
    if name == '-' and not flags:
        return None, False
    if not name:
        name = field_name[:1].lower() + field_name[1:]
    return name, 'omitempty' in flags


class _StructParser:
    def __init__(self, struct_names: set[str], root_name: str) -> None:
        self.struct_names = struct_names
        self.root_name = root_name
        self.warnings: list[str] = []

    def parse_struct(self, struct: _StructDef) -> JSONSchema:
        properties: dict[str, JSONSchema] = {}
        required: list[str] = []
        for line in struct.body.split('\n'):
            stripped = line.strip()
            if not stripped or stripped.startswith('//'):
                continue
            match = _FIELD_RE.match(stripped)
            if match is None:
                continue

            field_name, go_type, tag = match.group(1), match.group(2), match.group(3) or ''
            json_name, omitempty = _json_name(field_name, tag)
            if json_name is None:
                continue

            properties[json_name] = self.parse_type(go_type, struct.name, field_name)
            if not (omitempty or go_type.startswith('*')) and json_name not in required:
                required.append(json_name)
        return JSONSchema(type='object', properties=properties, required=required)

    def parse_type(self, go_type: str, struct_name: str, field_name: str) -> JSONSchema:
        is_pointer = go_type.startswith('*')
        base_type = go_type.lstrip('*')

        if base_type in FORBIDDEN_TYPES:
            raise ForbiddenTypeError(base_type, struct_name=struct_name, field_name=field_name)

        if base_type in WARNING_TYPES:
            self.warnings.append(
                f'field {struct_name}.{field_name} uses type "{base_type}" '
                f'which allows arbitrary data and cannot be fully validated'
            )
            return JSONSchema()

        if base_type.startswith('[]'):
            items = self.parse_type(base_type[2:], struct_name, field_name)
            return self._maybe_nullable(JSONSchema(type='array', items=items), is_pointer)

        if base_type.startswith('map['):
            close = base_type.find(']')
            if close == -1:
                raise SchemaSyntaxError(f'malformed map type {base_type!r} in field {struct_name}.{field_name}')
            values = self.parse_type(base_type[close + 1 :], struct_name, field_name)
            schema = JSONSchema(type='object', additional_properties=True, items=values)
            return self._maybe_nullable(schema, is_pointer)

        primitive = _primitive(base_type)
        if primitive is not None:
            return self._maybe_nullable(JSONSchema(type=primitive), is_pointer)

        if base_type in self.struct_names:
            ref = JSONSchema(ref='#') if base_type == self.root_name else JSONSchema.ref_to(base_type)
            return self._maybe_nullable(ref, is_pointer)

        self.warnings.append(
            f'field {struct_name}.{field_name} uses unknown type "{base_type}" which will match any value'
        )
        return JSONSchema()

    @staticmethod
    def _maybe_nullable(schema: JSONSchema, is_pointer: bool) -> JSONSchema:
        return JSONSchema.nullable(schema) if is_pointer else schema


def _primitive(go_type: str) -> str | None:
    if go_type == 'string':
        return 'string'
    if go_type == 'bool':
        return 'boolean'
    if go_type in _INTEGER_TYPES:
        return 'integer'
    if go_type in _NUMBER_TYPES:
        return 'number'
    return None


def parse_go_structs(text: str) -> ParseResult:
    """
    Parse Go struct definitions into a JSON Schema.

    Args:
        text: One or more struct definitions; the first one is the root

    Returns:
        ParseResult with the root schema (other structs under ``$defs``) and warnings

    Raises:
        SchemaSyntaxError: If no struct definition is found or a body is unterminated
        ForbiddenTypeError: If a field is declared as ``any`` / ``interface{}``
    """
    structs = _extract_structs(_normalize(text))
    if not structs:
        raise SchemaSyntaxError('no struct definitions found')

    root_name = structs[0].name
    parser = _StructParser({struct.name for struct in structs}, root_name)
    schemas = {struct.name: parser.parse_struct(struct) for struct in structs}

    root = schemas.pop(root_name)
    if schemas:
        root.definitions = schemas
    return ParseResult(schema=root, warnings=tuple(parser.warnings))
