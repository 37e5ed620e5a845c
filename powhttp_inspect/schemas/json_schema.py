"""
JSON Schema intermediate representation.

Every schema surface (Go structs, Zod, raw JSON Schema, inference from samples)
produces a JSONSchema tree. The tree serialises to Draft 2020-12 JSON via
``to_dict()`` and is rebuilt from it with ``from_dict()``; the two are inverse.

Records referenced from other records live under ``$defs`` on the root and are
referenced by ``$ref`` strings, so the tree never holds cycles.

Map value schemas are kept in ``items`` next to ``additionalProperties: true``.
Validators ignore ``items`` on objects, so maps accept any values.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import orjson
import pydantic

__all__ = ['JSONSchema']


class JSONSchema(pydantic.BaseModel):
    """Mutable JSON Schema node. The empty node accepts any value."""

    model_config = pydantic.ConfigDict(
        populate_by_name=True,
        extra='ignore',  # Keywords outside the IR (format, pattern, ...) are dropped
    )

    type: str = ''
    properties: dict[str, JSONSchema] | None = None
    items: JSONSchema | None = None
    required: list[str] = []
    additional_properties: bool | None = pydantic.Field(default=None, alias='additionalProperties')
    any_of: list[JSONSchema] = pydantic.Field(default=[], alias='anyOf')
    ref: str = pydantic.Field(default='', alias='$ref')
    definitions: dict[str, JSONSchema] | None = pydantic.Field(default=None, alias='$defs')

    @classmethod
    def nullable(cls, inner: JSONSchema) -> JSONSchema:
        """Wrap a schema so that it also accepts null."""
        return cls(any_of=[inner, cls(type='null')])

    @classmethod
    def ref_to(cls, name: str) -> JSONSchema:
        return cls(ref=f'#/$defs/{name}')

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> JSONSchema:
        return cls.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        """Draft 2020-12 representation, omitting empty members."""
        return self.model_dump(mode='json', by_alias=True, exclude_defaults=True)

    def canonical_json(self) -> bytes:
        """Serialized form with sorted keys, for byte-wise comparison."""
        return orjson.dumps(self.to_dict(), option=orjson.OPT_SORT_KEYS)

    @property
    def is_any(self) -> bool:
        return not self.to_dict()

    def object_branch(self) -> JSONSchema | None:
        """This node if it is an object schema, else its first object ``anyOf`` member."""
        if self.type == 'object':
            return self
        for member in self.any_of:
            if member.type == 'object':
                return member
        return None

    def array_branch(self) -> JSONSchema | None:
        """This node if it is an array schema, else its first array ``anyOf`` member."""
        if self.type == 'array':
            return self
        for member in self.any_of:
            if member.type == 'array':
                return member
        return None
