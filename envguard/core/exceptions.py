"""
Exception hierarchy for envguard.

Every error raised by the store carries an ``ErrorCode`` so callers can
branch on the category without string matching.
"""

from enum import Enum
from typing import Any, List, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .domain.values import ErrorKind, ValidationError


class ErrorCode(Enum):
    """Error code enumeration."""
    UNKNOWN_ERROR = 10000
    SCHEMA_ERROR = 10001
    VALIDATION_ERROR = 10002
    UNKNOWN_FIELD = 10003
    DECRYPTION_ERROR = 10004
    ENCRYPTION_ERROR = 10005
    IO_ERROR = 10006


class EnvGuardError(Exception):
    """Base exception for all envguard errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class SchemaError(EnvGuardError):
    """Raised when a schema definition is inconsistent."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.SCHEMA_ERROR, message, details)


class UnknownFieldError(EnvGuardError, KeyError):
    """Raised when a key is not declared in the schema."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(ErrorCode.UNKNOWN_FIELD, f"Unknown field: {key}", key)

    def __str__(self) -> str:
        return self.message


class DecryptionError(EnvGuardError):
    """Raised when an encrypted payload is malformed or fails authentication."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.DECRYPTION_ERROR, message, details)


class EncryptionError(EnvGuardError):
    """Raised when a value cannot be encrypted."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.ENCRYPTION_ERROR, message, details)


class FileStoreError(EnvGuardError):
    """Raised when the backing env file cannot be read or written."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.IO_ERROR, message, details)


class FieldValidationError(EnvGuardError):
    """
    A single field failed coercion or validation.

    Raised by the validator and collected by the store into a batch; it never
    escapes the public API on its own.
    """

    def __init__(self, kind: "ErrorKind", message: str):
        self.kind = kind
        super().__init__(ErrorCode.VALIDATION_ERROR, message, kind)


class ConfigValidationError(EnvGuardError):
    """Aggregate of every field error found in one resolution pass."""

    def __init__(self, errors: Sequence["ValidationError"]):
        self.errors: List["ValidationError"] = list(errors)
        lines = [f"  - {error.field}: {error.message} ({error.kind.value})"
                 for error in self.errors]
        message = "Environment validation failed:\n" + "\n".join(lines)
        super().__init__(ErrorCode.VALIDATION_ERROR, message, self.errors)

    @property
    def fields(self) -> List[str]:
        """Names of the offending fields, in discovery order."""
        return [error.field for error in self.errors]
