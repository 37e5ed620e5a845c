"""Schema text to JSONSchema, dispatching on the surface format."""

from __future__ import annotations

from typing import Literal, get_args

import orjson
import pydantic

from powhttp_inspect.bodyschema.struct_parser import ParseResult, parse_go_structs
from powhttp_inspect.bodyschema.zod_parser import parse_zod
from powhttp_inspect.exceptions import SchemaSyntaxError
from powhttp_inspect.schemas.json_schema import JSONSchema

__all__ = ['SCHEMA_FORMATS', 'ParseResult', 'SchemaFormat', 'parse', 'parse_schema']

SchemaFormat = Literal['go_struct', 'zod', 'json_schema']
SCHEMA_FORMATS: tuple[str, ...] = get_args(SchemaFormat)


def _parse_json_schema(text: str) -> JSONSchema:
    try:
        data = orjson.loads(text)
    except orjson.JSONDecodeError as e:
        raise SchemaSyntaxError(f'invalid JSON schema: {e}', position=e.pos) from e
    if not isinstance(data, dict):
        raise SchemaSyntaxError('invalid JSON schema: expected an object')
    try:
        return JSONSchema.from_dict(data)
    except pydantic.ValidationError as e:
        raise SchemaSyntaxError(f'invalid JSON schema: {e}') from e


def parse_schema(text: str, format: SchemaFormat) -> ParseResult:
    """
    Parse schema text, keeping parser warnings.

    Args:
        text: Schema source
        format: 'go_struct', 'zod' or 'json_schema'

    Returns:
        ParseResult with the schema and any warnings (Go structs only)

    Raises:
        ForbiddenTypeError: If the schema uses an untyped value type
        SchemaSyntaxError: If the text is malformed or the format is unknown
    """
    if format == 'go_struct':
        return parse_go_structs(text)
    if format == 'zod':
        return ParseResult(schema=parse_zod(text))
    if format == 'json_schema':
        return ParseResult(schema=_parse_json_schema(text))
    raise SchemaSyntaxError(f'unsupported schema format {format!r} (expected one of {", ".join(SCHEMA_FORMATS)})')


def parse(text: str, format: SchemaFormat) -> JSONSchema:
    """Parse schema text into a JSONSchema, discarding warnings."""
    return parse_schema(text, format).schema
