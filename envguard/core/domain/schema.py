"""
Schema definitions for environment fields.

A schema is plain data: an ordered, immutable mapping from field name to
``FieldSchema``. It is assembled with ``SchemaBuilder`` or ``define_schema``
and never changes after construction.
"""

import re
from dataclasses import dataclass, fields as dataclass_fields
from enum import Enum
from typing import (
    Any, Callable, Dict, Iterator, List, Mapping, Optional, Pattern, Tuple, Union
)

from ..exceptions import SchemaError


class _Missing:
    """Sentinel for "no default declared" (``None`` is a legal default)."""

    _instance: Optional['_Missing'] = None

    def __new__(cls) -> '_Missing':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

DEFAULT_GROUP = "General"

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")


class FieldType(Enum):
    """Declared type of a field."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    URL = "url"
    EMAIL = "email"
    PORT = "port"
    JSON = "json"


CustomValidator = Callable[[Any], Union[bool, str]]
Transform = Callable[[Any], Any]


@dataclass(frozen=True)
class FieldSchema:
    """Declaration of a single configuration field."""
    name: str
    type: FieldType = FieldType.STRING
    required: bool = False
    default: Any = MISSING
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[Pattern[str]] = None
    enum_values: Tuple[str, ...] = ()
    transform: Optional[Transform] = None
    custom_validate: Optional[CustomValidator] = None
    sensitive: bool = False
    deprecated: Union[bool, str] = False
    group: str = DEFAULT_GROUP
    description: Optional[str] = None
    example: Optional[str] = None

    def __post_init__(self) -> None:
        # Normalise loosely typed input; object.__setattr__ because frozen.
        if isinstance(self.type, str):
            try:
                object.__setattr__(self, "type", FieldType(self.type.lower()))
            except ValueError:
                raise SchemaError(
                    f"Field {self.name!r} has unsupported type {self.type!r}") from None
        if isinstance(self.pattern, str):
            try:
                object.__setattr__(self, "pattern", re.compile(self.pattern))
            except re.error as e:
                raise SchemaError(f"Field {self.name!r} has invalid pattern: {e}") from e
        if not isinstance(self.enum_values, tuple):
            object.__setattr__(self, "enum_values",
                               tuple(str(v) for v in self.enum_values))
        if not self.group:
            object.__setattr__(self, "group", DEFAULT_GROUP)

        self._validate()

    def _validate(self) -> None:
        if not isinstance(self.name, str) or not _NAME_RE.match(self.name):
            raise SchemaError(f"Invalid field name: {self.name!r}")
        if self.type is FieldType.ENUM and not self.enum_values:
            raise SchemaError(
                f"Field {self.name!r} is an enum but declares no enum values")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise SchemaError(
                f"Field {self.name!r} has min ({self.min}) greater than max ({self.max})")
        if self.transform is not None and not callable(self.transform):
            raise SchemaError(f"Field {self.name!r} transform is not callable")
        if self.custom_validate is not None and not callable(self.custom_validate):
            raise SchemaError(f"Field {self.name!r} custom_validate is not callable")

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def is_deprecated(self) -> bool:
        return self.deprecated is not False and self.deprecated is not None

    @property
    def deprecation_hint(self) -> str:
        if isinstance(self.deprecated, str) and self.deprecated:
            return self.deprecated
        return "This variable is deprecated"


class SchemaRegistry(Mapping[str, FieldSchema]):
    """
    Immutable, insertion-ordered collection of field schemas.

    Field names are unique; the order is the order fields were declared and
    drives generated files.
    """

    def __init__(self, fields: Union[Mapping[str, FieldSchema], List[FieldSchema], Tuple[FieldSchema, ...]] = ()):
        items: Dict[str, FieldSchema] = {}
        iterable = fields.values() if isinstance(fields, Mapping) else fields

        for field_schema in iterable:
            if not isinstance(field_schema, FieldSchema):
                raise SchemaError(
                    f"Expected FieldSchema, got {type(field_schema).__name__}")
            if field_schema.name in items:
                raise SchemaError(f"Duplicate field name: {field_schema.name}")
            items[field_schema.name] = field_schema

        if isinstance(fields, Mapping):
            for key, field_schema in fields.items():
                if key != field_schema.name:
                    raise SchemaError(
                        f"Schema key {key!r} does not match field name {field_schema.name!r}")

        self._fields = items

    def __getitem__(self, name: str) -> FieldSchema:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"SchemaRegistry({list(self._fields)})"

    def groups(self) -> Dict[str, List[FieldSchema]]:
        """Fields grouped by ``group``; ``General`` always comes first."""
        grouped: Dict[str, List[FieldSchema]] = {DEFAULT_GROUP: []}
        for field_schema in self._fields.values():
            grouped.setdefault(field_schema.group, []).append(field_schema)
        return grouped

    def sensitive_fields(self) -> List[str]:
        return [name for name, f in self._fields.items() if f.sensitive]

    def deprecated_fields(self) -> List[FieldSchema]:
        return [f for f in self._fields.values() if f.is_deprecated]


class SchemaBuilder:
    """
    Fluent builder that assembles a ``SchemaRegistry``.

    >>> schema = (SchemaBuilder()
    ...           .field("PORT", "port", default=3000)
    ...           .field("NODE_ENV", "enum", enum_values=["dev", "prod"], required=True)
    ...           .build())
    """

    def __init__(self) -> None:
        self._fields: List[FieldSchema] = []
        self._group: Optional[str] = None

    def group(self, name: str) -> 'SchemaBuilder':
        """Apply ``name`` as the group of the fields declared after this call."""
        self._group = name
        return self

    def field(self, name: str, type: Union[FieldType, str] = FieldType.STRING,
              **options: Any) -> 'SchemaBuilder':
        if self._group is not None:
            options.setdefault("group", self._group)
        self._fields.append(_make_field(name, type, options))
        return self

    def extend(self, schema: Mapping[str, FieldSchema]) -> 'SchemaBuilder':
        """Append every field of an existing schema."""
        self._fields.extend(schema.values())
        return self

    def build(self) -> SchemaRegistry:
        return SchemaRegistry(self._fields)


_OPTION_ALIASES = {
    "enum": "enum_values",
    "enumValues": "enum_values",
    "validate": "custom_validate",
    "customValidate": "custom_validate",
}

_FIELD_OPTIONS = frozenset(f.name for f in dataclass_fields(FieldSchema)) - {"name", "type"}


def _make_field(name: str, type: Union[FieldType, str], options: Dict[str, Any]) -> FieldSchema:
    normalized: Dict[str, Any] = {}
    for key, value in options.items():
        key = _OPTION_ALIASES.get(key, key)
        if key not in _FIELD_OPTIONS:
            raise SchemaError(f"Field {name!r} has unknown option {key!r}")
        normalized[key] = value

    if "enum_values" in normalized and normalized["enum_values"] is not None:
        normalized["enum_values"] = tuple(str(v) for v in normalized["enum_values"])

    return FieldSchema(name=name, type=type, **normalized)


def define_schema(definition: Mapping[str, Any]) -> SchemaRegistry:
    """
    Build a registry from a plain mapping.

    Values may be ``FieldSchema`` instances or option dictionaries such as
    ``{"type": "port", "default": 3000}``.
    """
    if isinstance(definition, SchemaRegistry):
        return definition

    builder = SchemaBuilder()
    for name, spec in definition.items():
        if isinstance(spec, FieldSchema):
            if spec.name != name:
                raise SchemaError(
                    f"Schema key {name!r} does not match field name {spec.name!r}")
            builder._fields.append(spec)
            continue
        if not isinstance(spec, Mapping):
            raise SchemaError(f"Field {name!r} must be a mapping of options")
        options = dict(spec)
        field_type = options.pop("type", FieldType.STRING)
        builder.field(name, field_type, **options)
    return builder.build()
