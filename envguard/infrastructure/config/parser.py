"""
Env file parsing and value formatting.

``parse_env_content`` is a pure function of the file text; it never looks at
the process environment.
"""

import json
import re
from typing import Any, Dict, List, Tuple

_LINE_SPLIT = re.compile(r"\r?\n")
_QUOTES = ('"', "'")


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        return value[1:-1]
    return value


def _has_continuation(value: str) -> bool:
    """True when ``value`` ends with an odd number of backslashes."""
    trailing = len(value) - len(value.rstrip("\\"))
    return trailing % 2 == 1


def iter_entries(content: str) -> List[Tuple[str, str, int, int]]:
    """
    Parse ``content`` into ``(key, value, first_line, last_line)`` tuples.

    Line indexes are zero based and inclusive; a continued value spans
    several physical lines.
    """
    lines = _LINE_SPLIT.split(content)
    entries: List[Tuple[str, str, int, int]] = []
    i = 0

    while i < len(lines):
        first = i
        line = lines[i].strip()
        i += 1

        if not line or line.startswith("#") or "=" not in line:
            continue

        key, _, raw = line.partition("=")
        key = key.strip()
        raw = raw.strip()
        value = _strip_quotes(raw)
        if not key:
            continue

        # A quoted value ends at its closing quote.
        quoted = value != raw
        while not quoted and _has_continuation(value) and i < len(lines):
            value = value[:-1] + "\n" + lines[i].strip()
            i += 1

        entries.append((key, value, first, i - 1))

    return entries


def parse_env_content(content: str) -> Dict[str, str]:
    """
    Parse env file text into a ``{key: value}`` mapping.

    Later duplicates of a key win, matching the order a reader sees them.
    """
    return {key: value for key, value, _, _ in iter_entries(content)}


def stringify_value(value: Any) -> str:
    """Convert a typed value into its persisted string form."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_env_value(value: str) -> str:
    """
    Render a string so that ``parse_env_content`` reads it back unchanged.

    Embedded newlines become backslash continuations. Values with
    surrounding whitespace, that already look quoted, or that end in an
    unpaired backslash are wrapped in quotes.

    Raises:
        ValueError: If a line of a multi-line value ends in an unpaired
            backslash, which the file format cannot represent
    """
    segments = value.split("\n")
    if len(segments) > 1:
        if any(_has_continuation(segment) for segment in segments):
            raise ValueError("Multi-line values cannot have lines ending in a backslash")
        return "\\\n".join(segments)

    needs_quotes = (
        value != value.strip()
        or (len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0])
        or _has_continuation(value)
    )
    if needs_quotes:
        quote = "'" if value.startswith('"') else '"'
        return f"{quote}{value}{quote}"
    return value


def format_env_line(key: str, value: str) -> str:
    return f"{key}={format_env_value(value)}"
