from __future__ import annotations

from fastapi import HTTPException

from schemaevo.core.errors import (
    ConversionError,
    IrreversibleConversionError,
    NameCollisionError,
    SchemaEvoError,
)


def http_status_for(exc: SchemaEvoError) -> int:
    """400 for bad descriptions, 422 when a valid description cannot be generated."""
    if isinstance(exc, ConversionError):
        return exc.http_status_code
    if isinstance(exc, (NameCollisionError, IrreversibleConversionError)):
        return 422
    return 400


def to_http(exc: SchemaEvoError) -> HTTPException:
    return HTTPException(status_code=http_status_for(exc), detail=exc.to_dict())
