"""
Loading of schemas and store options from files and the environment.

Schemas and options can live in a YAML or JSON file; options can further be
overridden through ``ENVGUARD_*`` environment variables and finally by
explicit keyword arguments.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import yaml

from ...core.domain.schema import SchemaRegistry, define_schema
from ...core.exceptions import SchemaError
from .models import StoreOptions

ENV_PREFIX = "ENVGUARD_"

# Fallbacks for the encryption passphrase, checked in order.
KEY_FALLBACK_VARS = ("MASTER_KEY", "ENCRYPTION_KEY")

_CAMEL_CASE_OPTIONS = {
    "envPath": "env_path",
    "skipOsEnv": "skip_os_env",
    "autoCreate": "auto_create",
    "autoPopulate": "auto_populate",
    "encryptionKey": "encryption_key",
    "encryptionSalt": "encryption_salt",
    "debounceDelay": "debounce_delay",
    "usePolling": "use_polling",
    "pollInterval": "poll_interval",
}


def parse_bool(value: str) -> bool:
    """Parse boolean value from string."""
    lowered = value.strip().lower()
    if lowered in ('true', '1', 'yes', 'on', 'enabled'):
        return True
    if lowered in ('false', '0', 'no', 'off', 'disabled', ''):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def load_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML or JSON mapping from disk.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or the content is invalid
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    suffix = path.suffix.lower()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if suffix in ('.yaml', '.yml'):
                data = yaml.safe_load(f) or {}
            elif suffix == '.json':
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration file format: {path.suffix}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {file_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {file_path}")
    return data


def _extract_schema(data: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    for key in ("schema", "fields"):
        if key in data:
            section = data[key]
            if not isinstance(section, Mapping):
                raise SchemaError(f"'{key}' section must be a mapping")
            return section
    return None


def load_schema(file_path: Union[str, Path]) -> SchemaRegistry:
    """
    Load a schema from a YAML or JSON file.

    The file may hold the field definitions at the top level or under a
    ``schema`` / ``fields`` key. Patterns are given as strings; transforms
    and custom validators cannot be expressed in a file.
    """
    data = load_file(file_path)
    section = _extract_schema(data)
    return define_schema(section if section is not None else data)


def _env_mappings() -> Dict[str, Tuple[str, Callable[[str], Any]]]:
    return {
        f"{ENV_PREFIX}ENV_PATH": ("env_path", str),
        f"{ENV_PREFIX}SKIP_OS_ENV": ("skip_os_env", parse_bool),
        f"{ENV_PREFIX}AUTO_CREATE": ("auto_create", parse_bool),
        f"{ENV_PREFIX}AUTO_POPULATE": ("auto_populate", parse_bool),
        f"{ENV_PREFIX}STRICT": ("strict", parse_bool),
        f"{ENV_PREFIX}CACHE": ("cache", parse_bool),
        f"{ENV_PREFIX}WATCH": ("watch", parse_bool),
        f"{ENV_PREFIX}ENCRYPT": ("encrypt", parse_bool),
        f"{ENV_PREFIX}ENCRYPTION_KEY": ("encryption_key", str),
        f"{ENV_PREFIX}ENCRYPTION_SALT": ("encryption_salt", str),
        f"{ENV_PREFIX}DEBOUNCE_DELAY": ("debounce_delay", float),
        f"{ENV_PREFIX}USE_POLLING": ("use_polling", parse_bool),
        f"{ENV_PREFIX}POLL_INTERVAL": ("poll_interval", float),
    }


def load_options_from_environment(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect option overrides from ``ENVGUARD_*`` variables."""
    env = os.environ if environ is None else environ
    options: Dict[str, Any] = {}

    for env_var, (option, converter) in _env_mappings().items():
        value = env.get(env_var)
        if value is not None:
            try:
                options[option] = converter(value)
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid value for {env_var}: {value} ({e})") from e

    if "encryption_key" not in options:
        for env_var in KEY_FALLBACK_VARS:
            if env.get(env_var):
                options["encryption_key"] = env[env_var]
                break

    return options


def load_options(
    schema: Optional[Union[SchemaRegistry, Mapping[str, Any]]] = None,
    config_file: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any
) -> StoreOptions:
    """
    Build ``StoreOptions`` with precedence: overrides > environment > file.

    Args:
        schema: Schema to use; when omitted the file's ``schema`` section is used
        config_file: Optional YAML/JSON options file
        environ: Environment mapping (defaults to ``os.environ``)
        **overrides: Explicit option values

    Returns:
        Validated store options
    """
    data: Dict[str, Any] = {}
    file_schema: Optional[Mapping[str, Any]] = None

    if config_file:
        raw = load_file(config_file)
        file_schema = _extract_schema(raw)
        for key, value in raw.items():
            if key in ("schema", "fields"):
                continue
            data[_CAMEL_CASE_OPTIONS.get(key, key)] = value

        env_path = data.get("env_path")
        if env_path and not Path(env_path).is_absolute():
            data["env_path"] = str(Path(config_file).parent / env_path)

    data.update(load_options_from_environment(environ))
    data.update({_CAMEL_CASE_OPTIONS.get(k, k): v for k, v in overrides.items()})

    effective_schema = schema if schema is not None else file_schema
    if effective_schema is None:
        raise SchemaError("No schema given and none found in the configuration file")
    data["schema"] = effective_schema

    return StoreOptions.from_dict(data)
