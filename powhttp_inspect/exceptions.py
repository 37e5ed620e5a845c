"""
Shared exceptions for powhttp-inspect.

Exception Hierarchy:
    PowHTTPInspectError (base)
    ├── FetchError (transport / API failure against the entry store)
    │   ├── EntryNotFoundError (entry id missing)
    │   └── FetchTimeoutError (entry store did not answer in time)
    ├── SideFetchError (TLS / HTTP2 side-channel fetch failed - never surfaced by the core)
    └── SchemaError (schema text cannot be turned into a validator)
        ├── ForbiddenTypeError (untyped field that cannot be validated)
        └── SchemaSyntaxError (malformed schema input, with position)
"""

from __future__ import annotations


class PowHTTPInspectError(Exception):
    """Base exception for all powhttp-inspect errors."""


class FetchError(PowHTTPInspectError):
    """Raised when the entry store cannot deliver an entry."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class EntryNotFoundError(FetchError):
    """Raised when the entry store has no entry with the requested id."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


class FetchTimeoutError(FetchError):
    """Raised when the entry store does not answer within the client timeout."""


class SideFetchError(PowHTTPInspectError):
    """Raised when a TLS or HTTP/2 side-channel fetch fails."""


class SchemaError(PowHTTPInspectError):
    """Base exception for schema parsing failures."""


class ForbiddenTypeError(SchemaError):
    """Raised when a schema uses a type that accepts arbitrary values."""

    def __init__(self, type_name: str, struct_name: str | None = None, field_name: str | None = None) -> None:
        self.type_name = type_name
        self.struct_name = struct_name
        self.field_name = field_name
        if struct_name is not None and field_name is not None:
            message = (
                f'field {struct_name}.{field_name} uses forbidden type {type_name!r}: '
                f'untyped values cannot be validated against a schema'
            )
        else:
            message = f'{type_name} is forbidden: untyped values cannot be validated against a schema'
        super().__init__(message)


class SchemaSyntaxError(SchemaError):
    """Raised when schema text is malformed."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        if position is not None:
            message = f'{message} at position {position}'
        super().__init__(message)


def error_code(error: PowHTTPInspectError) -> str:
    """Stable code for surfacing an error to tool callers."""
    if isinstance(error, EntryNotFoundError):
        return 'NOT_FOUND'
    if isinstance(error, FetchTimeoutError):
        return 'TIMEOUT'
    if isinstance(error, FetchError):
        return 'POWHTTP_ERROR'
    if isinstance(error, SchemaError):
        return 'INVALID_INPUT'
    return 'INTERNAL'
