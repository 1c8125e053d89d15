"""
Type coercion and constraint validation for schema fields.

The validator turns a raw value (usually a string read from the environment
or the env file) into the typed value declared by the field, then runs the
field's custom validator and transform. Every failure is reported as a
``FieldValidationError`` carrying an ``ErrorKind``.
"""

import json
import math
import re
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import urlsplit

from ...core.domain.schema import FieldSchema, FieldType
from ...core.domain.values import ErrorKind
from ...core.exceptions import FieldValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_INT_RE = re.compile(r"^[+-]?\d+$")

_TRUE_VALUES = frozenset({"true", "1", "yes"})
_FALSE_VALUES = frozenset({"false", "0", "no"})

PORT_MIN = 1
PORT_MAX = 65535

Number = Union[int, float]


def _invalid(message: str) -> FieldValidationError:
    return FieldValidationError(ErrorKind.INVALID, message)


def _type_error(message: str) -> FieldValidationError:
    return FieldValidationError(ErrorKind.TYPE_ERROR, message)


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def parse_number(value: Any) -> Number:
    """
    Parse ``value`` as a number.

    Integral literals become ``int``; everything else that parses becomes
    ``float``. ``NaN`` and unparsable input raise a ``type_error``.
    """
    if isinstance(value, bool):
        raise _type_error(f"Invalid number: {value}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            raise _type_error(f"Invalid number: {value}")
        return value

    text = str(value).strip()
    if _INT_RE.match(text):
        return int(text)
    try:
        number = float(text)
    except ValueError:
        raise _type_error(f"Invalid number: {value}") from None
    if math.isnan(number):
        raise _type_error(f"Invalid number: {value}")
    return number


class TypeCoercionValidator:
    """Coerce and validate raw values against a ``FieldSchema``."""

    def __init__(self) -> None:
        self._coercers: Dict[FieldType, Callable[[Any, FieldSchema], Any]] = {
            FieldType.STRING: self._coerce_string,
            FieldType.NUMBER: self._coerce_number,
            FieldType.BOOLEAN: self._coerce_boolean,
            FieldType.ENUM: self._coerce_enum,
            FieldType.URL: self._coerce_url,
            FieldType.EMAIL: self._coerce_email,
            FieldType.PORT: self._coerce_port,
            FieldType.JSON: self._coerce_json,
        }

    def validate_field(self, field: FieldSchema, raw: Optional[Any]) -> Any:
        """
        Resolve one field from its raw value.

        Args:
            field: Field declaration
            raw: Raw value, or ``None`` when no source supplied one

        Returns:
            The typed value, or ``None`` for an absent optional field

        Raises:
            FieldValidationError: ``missing`` for an absent required field,
                otherwise whatever ``coerce`` raises
        """
        if raw is None or (isinstance(raw, str) and raw == ""):
            if field.required:
                raise FieldValidationError(
                    ErrorKind.MISSING, "Required environment variable is missing")
            return None
        return self.coerce(field, raw)

    def coerce(self, field: FieldSchema, raw: Any) -> Any:
        """
        Coerce ``raw`` to the field's type, then apply custom validation and
        the transform.
        """
        coercer = self._coercers[field.type]
        value = coercer(raw, field)
        self._run_custom_validation(field, value)
        return self._apply_transform(field, value)

    def _run_custom_validation(self, field: FieldSchema, value: Any) -> None:
        if field.custom_validate is None:
            return

        try:
            result = field.custom_validate(value)
        except Exception as e:
            raise _invalid(f"Custom validation raised: {e}") from e

        if result is True:
            return
        if isinstance(result, str) and result:
            raise _invalid(result)
        raise _invalid("Custom validation failed")

    def _apply_transform(self, field: FieldSchema, value: Any) -> Any:
        if field.transform is None:
            return value
        try:
            return field.transform(value)
        except Exception as e:
            raise _invalid(f"Transform failed: {e}") from e

    # -- per-type coercion -------------------------------------------------

    def _coerce_string(self, value: Any, field: FieldSchema) -> str:
        text = value if isinstance(value, str) else str(value)

        if field.pattern is not None and not field.pattern.search(text):
            raise _invalid(f"Value does not match pattern {field.pattern.pattern}")
        if field.min is not None and len(text) < field.min:
            raise _invalid(f"String length must be at least {_format_bound(field.min)}")
        if field.max is not None and len(text) > field.max:
            raise _invalid(f"String length must be at most {_format_bound(field.max)}")

        return text

    def _coerce_number(self, value: Any, field: FieldSchema) -> Number:
        number = parse_number(value)

        if field.min is not None and number < field.min:
            raise _invalid(f"Number must be at least {_format_bound(field.min)}")
        if field.max is not None and number > field.max:
            raise _invalid(f"Number must be at most {_format_bound(field.max)}")

        return number

    def _coerce_boolean(self, value: Any, field: FieldSchema) -> bool:
        if isinstance(value, bool):
            return value

        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise _type_error(f"Invalid boolean value: {value}")

    def _coerce_enum(self, value: Any, field: FieldSchema) -> str:
        text = str(value)
        if text not in field.enum_values:
            raise _invalid(f"Value must be one of: {', '.join(field.enum_values)}")
        return text

    def _coerce_url(self, value: Any, field: FieldSchema) -> str:
        text = str(value)
        if not text or any(ch.isspace() for ch in text):
            raise _invalid(f"Invalid URL: {value}")

        try:
            parts = urlsplit(text)
            # Accessing .port validates it.
            parts.port
        except ValueError:
            raise _invalid(f"Invalid URL: {value}") from None

        if not parts.scheme or not (parts.netloc or parts.path):
            raise _invalid(f"Invalid URL: {value}")
        return text

    def _coerce_email(self, value: Any, field: FieldSchema) -> str:
        text = str(value)
        if not EMAIL_RE.match(text):
            raise _invalid(f"Invalid email: {value}")
        return text

    def _coerce_port(self, value: Any, field: FieldSchema) -> int:
        try:
            number = parse_number(value)
        except FieldValidationError:
            raise _type_error(f"Invalid port number: {value}") from None

        if isinstance(number, float):
            if not number.is_integer():
                raise _invalid(f"Invalid port number: {value}")
            number = int(number)
        if number < PORT_MIN or number > PORT_MAX:
            raise _invalid(f"Invalid port number: {value}")
        return number

    def _coerce_json(self, value: Any, field: FieldSchema) -> Any:
        if isinstance(value, (dict, list)):
            return value
        if not isinstance(value, str):
            return value
        try:
            return json.loads(value)
        except ValueError:
            raise _invalid(f"Invalid JSON: {value}") from None
