"""
JSON Schema validation of request and response bodies.

Schemas are compiled once with a Draft 2020-12 validator and can be shared.
Only leaf errors are reported (an ``anyOf`` failure reports each branch's own
failure), rendered as ``/instance/path: message`` and deduplicated in the order
they were found.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator, Sequence
from typing import Any

import jsonschema
import orjson
from jsonschema import Draft202012Validator

from powhttp_inspect.bodyschema.parse import SchemaFormat, parse
from powhttp_inspect.exceptions import SchemaSyntaxError
from powhttp_inspect.schemas.json_schema import JSONSchema
from powhttp_inspect.schemas.validation import BodyValidation, CommonError, ValidationResult, ValidationSummary

__all__ = ['Validator', 'new_validator', 'validate_bodies']

_BOUND_COMPARISONS = {
    'minimum': '>=',
    'maximum': '<=',
    'exclusiveMinimum': '>',
    'exclusiveMaximum': '<',
}


class Validator:
    """Compiled schema. Immutable after construction and safe to share."""

    def __init__(self, schema: JSONSchema) -> None:
        _check_refs(schema)
        document = schema.to_dict()
        try:
            Draft202012Validator.check_schema(document)
        except jsonschema.exceptions.SchemaError as e:
            raise SchemaSyntaxError(f'compiling schema: {e.message}') from e
        self.schema = schema
        self._validator = Draft202012Validator(document)

    @classmethod
    def from_text(cls, text: str, format: SchemaFormat) -> Validator:
        """
        Parse and compile schema text.

        Raises:
            ForbiddenTypeError: If the schema uses an untyped value type
            SchemaSyntaxError: If the schema is malformed or doesn't compile
        """
        return cls(parse(text, format))

    def validate(self, data: bytes | str) -> ValidationResult:
        """Validate a raw JSON document. Invalid JSON is reported as a validation error."""
        try:
            value = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            return ValidationResult(valid=False, errors=[f'invalid JSON: {e}'])
        return self.validate_value(value)

    def validate_value(self, value: Any) -> ValidationResult:
        """Validate an already-parsed JSON value."""
        errors: list[str] = []
        seen: set[str] = set()
        for error in self._validator.iter_errors(value):
            for leaf in _leaves(error):
                rendered = _render(leaf)
                if rendered not in seen:
                    seen.add(rendered)
                    errors.append(rendered)
        return ValidationResult(valid=not errors, errors=errors)


def new_validator(text: str, format: SchemaFormat) -> Validator:
    return Validator.from_text(text, format)


# ==============================================================================
# Reference checks
# ==============================================================================


def _iter_nodes(schema: JSONSchema) -> Iterator[JSONSchema]:
    yield schema
    for child in (schema.properties or {}).values():
        yield from _iter_nodes(child)
    if schema.items is not None:
        yield from _iter_nodes(schema.items)
    for member in schema.any_of:
        yield from _iter_nodes(member)
    for definition in (schema.definitions or {}).values():
        yield from _iter_nodes(definition)


def _check_refs(root: JSONSchema) -> None:
    """Only '#' and '#/$defs/<name>' references to existing definitions resolve."""
    definitions = root.definitions or {}
    for node in _iter_nodes(root):
        if not node.ref or node.ref == '#':
            continue
        name = node.ref.removeprefix('#/$defs/')
        if name == node.ref or name not in definitions:
            raise SchemaSyntaxError(f'compiling schema: unresolvable reference {node.ref!r}')


# ==============================================================================
# Error rendering
# ==============================================================================


def _leaves(error: jsonschema.ValidationError) -> Iterator[jsonschema.ValidationError]:
    if not error.context:
        yield error
        return
    for child in error.context:
        yield from _leaves(child)


def _pointer(path: Sequence[Any]) -> str:
    return ''.join('/' + str(part).replace('~', '~0').replace('/', '~1') for part in path)


def _render(error: jsonschema.ValidationError) -> str:
    path = _pointer(list(error.absolute_path))
    message = _message(error)
    return f'{path}: {message}' if path else message


def _json(value: Any) -> str:
    return orjson.dumps(value, default=str).decode()


def _json_type(value: Any) -> str:
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, int):
        return 'integer'
    if isinstance(value, float):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, list):
        return 'array'
    if isinstance(value, dict):
        return 'object'
    return type(value).__name__


def _quoted(names: Sequence[str]) -> str:
    return ', '.join(f"'{name}'" for name in names)


def _message(error: jsonschema.ValidationError) -> str:
    """Human-readable message for a leaf error, without echoing schema internals."""
    keyword = error.validator
    expected = error.validator_value
    instance = error.instance

    if keyword == 'type':
        types = expected if isinstance(expected, list) else [expected]
        return f'got {_json_type(instance)}, want {" or ".join(types)}'
    if keyword == 'required':
        missing = [name for name in expected if isinstance(instance, dict) and name not in instance]
        if len(missing) == 1:
            return f'missing property {_quoted(missing)}'
        return f'missing properties {_quoted(missing)}'
    if keyword == 'additionalProperties':
        known = error.schema.get('properties', {}) if isinstance(error.schema, dict) else {}
        extras = [name for name in instance if name not in known] if isinstance(instance, dict) else []
        return f'additional properties {_quoted(extras)} not allowed'
    if keyword == 'enum':
        return f'value must be one of {", ".join(_json(v) for v in expected)}'
    if keyword == 'const':
        return f'value must be {_json(expected)}'
    if keyword in _BOUND_COMPARISONS:
        return f'must be {_BOUND_COMPARISONS[keyword]} {_json(expected)} but found {_json(instance)}'
    if keyword == 'minLength':
        return f'length must be >= {expected}, but got {len(instance)}'
    if keyword == 'maxLength':
        return f'length must be <= {expected}, but got {len(instance)}'
    if keyword == 'minItems':
        return f'minimum {expected} items required, but found {len(instance)} items'
    if keyword == 'maxItems':
        return f'maximum {expected} items allowed, but found {len(instance)} items'
    if keyword == 'minProperties':
        return f'minimum {expected} properties required, but found {len(instance)}'
    if keyword == 'maxProperties':
        return f'maximum {expected} properties allowed, but found {len(instance)}'
    if keyword == 'pattern':
        return f'does not match pattern {_json(expected)}'
    if keyword == 'format':
        return f'is not valid {expected}'
    if keyword == 'multipleOf':
        return f'{_json(instance)} is not a multiple of {_json(expected)}'
    if keyword == 'uniqueItems':
        return 'items must be unique'
    if keyword == 'oneOf':
        return 'valid against more than one allowed schema'
    if keyword == 'anyOf':
        return 'does not match any allowed schema'
    if keyword == 'not':
        return 'matches a schema it must not match'
    if keyword is None or keyword is False:
        return 'not allowed'
    return f'fails {keyword} constraint'


# ==============================================================================
# Batch validation
# ==============================================================================


def validate_bodies(
    validator: Validator,
    bodies: Sequence[tuple[str, bytes | str | None]],
    warnings: Sequence[str] = (),
) -> ValidationSummary:
    """
    Validate many bodies against one schema and summarize.

    Args:
        validator: Compiled schema
        bodies: (label, raw JSON) pairs; missing or empty bodies are skipped
        warnings: Schema parser warnings to carry into the summary

    Returns:
        Counts, per-body results and the errors seen most often (most frequent
        first, ties by message)
    """
    results: list[BodyValidation] = []
    error_counts: Counter[str] = Counter()
    matching = failed = skipped = 0

    for label, body in bodies:
        if not body:
            skipped += 1
            results.append(BodyValidation(label=label, skipped=True))
            continue
        result = validator.validate(body)
        results.append(BodyValidation(label=label, result=result))
        if result.valid:
            matching += 1
        else:
            failed += 1
            error_counts.update(result.errors)

    common_errors = [
        CommonError(message=message, count=count)
        for message, count in sorted(error_counts.items(), key=lambda item: (-item[1], item[0]))
    ]
    return ValidationSummary(
        total_entries=len(bodies),
        matching_count=matching,
        failed_count=failed,
        skipped_count=skipped,
        all_match=failed == 0 and matching > 0,
        common_errors=common_errors,
        results=results,
        warnings=tuple(warnings),
    )
