"""
Domain model for envguard.

Schema declarations and the value objects produced by a resolution pass.
"""

from .schema import (
    DEFAULT_GROUP,
    MISSING,
    FieldSchema,
    FieldType,
    SchemaBuilder,
    SchemaRegistry,
    define_schema,
)
from .values import (
    ErrorKind,
    RawValue,
    ResolutionResult,
    ResolvedConfig,
    ValidationError,
    ValueOrigin,
)

__all__ = [
    "DEFAULT_GROUP",
    "MISSING",
    "FieldSchema",
    "FieldType",
    "SchemaBuilder",
    "SchemaRegistry",
    "define_schema",
    "ErrorKind",
    "RawValue",
    "ResolutionResult",
    "ResolvedConfig",
    "ValidationError",
    "ValueOrigin",
]
