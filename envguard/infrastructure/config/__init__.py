"""
Configuration infrastructure.

Env file parsing and storage, source resolution, type coercion, field
encryption, caching and file watching.
"""

from .cache import ResolvedCache
from .crypto import EncryptionCodec
from .environment import InMemoryEnvironment, OsEnvironment
from .file_store import FileStore
from .loader import load_options, load_schema
from .models import LoggingConfig, StoreOptions
from .parser import parse_env_content
from .resolver import SourceResolver
from .validator import TypeCoercionValidator
from .watcher import (
    ChangeWatcher,
    IChangeWatcher,
    PollingChangeWatcher,
    create_change_watcher,
)

__all__ = [
    "ResolvedCache",
    "EncryptionCodec",
    "InMemoryEnvironment",
    "OsEnvironment",
    "FileStore",
    "load_options",
    "load_schema",
    "LoggingConfig",
    "StoreOptions",
    "parse_env_content",
    "SourceResolver",
    "TypeCoercionValidator",
    "ChangeWatcher",
    "IChangeWatcher",
    "PollingChangeWatcher",
    "create_change_watcher",
]
