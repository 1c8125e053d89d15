"""
Artifacts derived purely from the schema.

``render_types`` produces a Python module with a ``TypedDict`` describing the
resolved configuration; ``render_template`` produces an env file skeleton.
Neither looks at resolved values.
"""

import keyword
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

from ...core.domain.schema import FieldSchema, FieldType, SchemaRegistry
from .parser import format_env_line, stringify_value

_PY_TYPES = {
    FieldType.STRING: "str",
    FieldType.URL: "str",
    FieldType.EMAIL: "str",
    FieldType.NUMBER: "int | float",
    FieldType.PORT: "int",
    FieldType.BOOLEAN: "bool",
    FieldType.JSON: "Any",
}

_HEADER = [
    "# Auto-generated by envguard",
    "# Do not edit this file manually",
    "",
]


def python_type(field: FieldSchema) -> str:
    """Python annotation for a field's resolved value."""
    if field.type is FieldType.ENUM:
        return "Literal[" + ", ".join(repr(v) for v in field.enum_values) + "]"
    return _PY_TYPES[field.type]


def _is_attribute_name(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)


def render_types(schema: Mapping[str, FieldSchema], class_name: str = "Env") -> str:
    """Render a Python module declaring a ``TypedDict`` for ``schema``."""
    if all(_is_attribute_name(name) for name in schema):
        lines = _class_form(schema, class_name)
    else:
        # Names such as "APP.NAME" cannot be class attributes.
        lines = _functional_form(schema, class_name)
    return "\n".join(lines) + "\n"


def _class_form(schema: Mapping[str, FieldSchema], class_name: str) -> List[str]:
    lines = _HEADER + [
        "from typing import Any, Literal, NotRequired, TypedDict",
        "",
        "",
        f"class {class_name}(TypedDict):",
    ]
    if not schema:
        lines.append("    pass")

    for name, field in schema.items():
        if field.description:
            lines.append(f"    #: {field.description}")
        if field.is_deprecated:
            lines.append(f"    #: Deprecated: {field.deprecation_hint}")
        annotation = python_type(field)
        if not field.required:
            annotation = f"NotRequired[{annotation}]"
        lines.append(f"    {name}: {annotation}")
    return lines


def _functional_form(schema: Mapping[str, FieldSchema], class_name: str) -> List[str]:
    entries = []
    for name, field in schema.items():
        annotation = python_type(field)
        if field.required:
            annotation = f"Required[{annotation}]"
        entries.append(f"    {name!r}: {annotation},")

    return _HEADER + [
        "from typing import Any, Literal, Required, TypedDict",
        "",
        f"{class_name} = TypedDict({class_name!r}, {{",
        *entries,
        "}, total=False)",
    ]


def write_types(schema: Mapping[str, FieldSchema], output_path: Union[str, Path]) -> Path:
    """Render types and write them to ``output_path``, creating parent directories."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_types(schema), encoding='utf-8')
    return path


def default_string(field: FieldSchema) -> str:
    if not field.has_default or field.default is None:
        return ""
    return stringify_value(field.default)


def render_template(
    schema: SchemaRegistry,
    values: Optional[Mapping[str, str]] = None
) -> str:
    """
    Render an env file skeleton grouped by field group.

    Args:
        schema: Field declarations
        values: Optional persisted string per field, overriding the default

    Returns:
        Env file text
    """
    values = values or {}
    content = "# Environment Variables\n# Generated by envguard\n\n"

    for group_name, fields in schema.groups().items():
        if not fields:
            continue
        content += f"# ========== {group_name.upper()} ==========\n"
        for field in fields:
            if field.description:
                content += f"# {field.description}\n"
            if field.example:
                content += f"# Example: {field.name}={field.example}\n"
            if field.is_deprecated:
                content += f"# Deprecated: {field.deprecation_hint}\n"
            value = values.get(field.name, default_string(field))
            content += format_env_line(field.name, value) + "\n\n"

    return content


def deprecation_report(schema: SchemaRegistry) -> List[Tuple[str, str]]:
    """``(name, hint)`` for every deprecated field, in schema order."""
    return [(field.name, field.deprecation_hint) for field in schema.deprecated_fields()]
