"""
Value objects produced while resolving configuration.

These types describe where a raw value came from, the errors found while
validating it and the result of a complete resolution pass.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional


class ValueOrigin(Enum):
    """Source that supplied a raw value."""
    PROCESS_ENVIRONMENT = "process-environment"
    FILE = "file"
    DEFAULT = "default"
    NONE = "none"


class ErrorKind(Enum):
    """Category of a field-level error."""
    MISSING = "missing"
    INVALID = "invalid"
    TYPE_ERROR = "type_error"
    DECRYPTION_FAILURE = "decryption_failure"
    IO_FAILURE = "io_failure"


@dataclass(frozen=True)
class RawValue:
    """An unparsed value tagged with its origin."""
    value: Optional[str] = None
    origin: ValueOrigin = ValueOrigin.NONE

    @property
    def is_present(self) -> bool:
        return self.value is not None

    @classmethod
    def absent(cls) -> 'RawValue':
        return cls(None, ValueOrigin.NONE)


@dataclass(frozen=True)
class ValidationError:
    """A single problem found while resolving one field."""
    field: str
    message: str
    kind: ErrorKind

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


ResolvedConfig = Mapping[str, Any]


@dataclass
class ResolutionResult:
    """Outcome of one resolution pass, computed before touching the cache."""
    values: Dict[str, Any] = field(default_factory=dict)
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    file_digest: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def errors_for(self, name: str) -> List[ValidationError]:
        return [error for error in self.errors if error.field == name]

    def freeze(self) -> ResolvedConfig:
        """Return the values as a read-only snapshot."""
        return MappingProxyType(dict(self.values))
