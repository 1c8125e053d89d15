"""
envguard - Schema-driven environment configuration.

Declare the variables an application needs, then resolve them from the
process environment, a ``.env`` file and schema defaults into validated,
typed values. Sensitive values can be stored encrypted, and the env file can
be watched for hot reloads.
"""

__version__ = "0.1.0"

# Public API exports
from .core.domain.schema import FieldSchema, FieldType, SchemaBuilder, SchemaRegistry, define_schema
from .core.domain.values import ErrorKind, ValidationError, ValueOrigin
from .core.exceptions import (
    ConfigValidationError,
    DecryptionError,
    EncryptionError,
    EnvGuardError,
    ErrorCode,
    FileStoreError,
    SchemaError,
    UnknownFieldError,
)
from .core.services.event_emitter import StoreEvent
from .infrastructure.config.crypto import EncryptionCodec
from .infrastructure.config.environment import InMemoryEnvironment, OsEnvironment
from .infrastructure.config.loader import load_options, load_schema
from .infrastructure.config.models import LoggingConfig, StoreOptions
from .infrastructure.logging.setup import setup_logging
from .application.store import ConfigStore, create_config_store

__all__ = [
    "FieldSchema",
    "FieldType",
    "SchemaBuilder",
    "SchemaRegistry",
    "define_schema",
    "ErrorKind",
    "ValidationError",
    "ValueOrigin",
    "ConfigValidationError",
    "DecryptionError",
    "EncryptionError",
    "EnvGuardError",
    "ErrorCode",
    "FileStoreError",
    "SchemaError",
    "UnknownFieldError",
    "StoreEvent",
    "EncryptionCodec",
    "InMemoryEnvironment",
    "OsEnvironment",
    "load_options",
    "load_schema",
    "LoggingConfig",
    "StoreOptions",
    "setup_logging",
    "ConfigStore",
    "create_config_store",
]
