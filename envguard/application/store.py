"""
Configuration store.

``ConfigStore`` composes the schema, source resolution, type validation,
encryption, the env file, the cache and the file watcher, and exposes the
public API: ``get``, ``get_all``, ``update``, ``reload``, ``generate_types``
and event subscription.
"""

import dataclasses
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..core.domain.schema import FieldSchema, SchemaRegistry
from ..core.domain.values import (
    ErrorKind, RawValue, ResolutionResult, ResolvedConfig, ValidationError
)
from ..core.exceptions import (
    ConfigValidationError, DecryptionError, FieldValidationError,
    FileStoreError, UnknownFieldError
)
from ..core.interfaces.lifecycle import IComponent
from ..core.services.event_emitter import EventEmitter, EventHandler, StoreEvent
from ..infrastructure.config.cache import ResolvedCache
from ..infrastructure.config.crypto import EncryptionCodec
from ..infrastructure.config.environment import OsEnvironment
from ..infrastructure.config.file_store import FileStore
from ..infrastructure.config.models import StoreOptions
from ..infrastructure.config.parser import parse_env_content, stringify_value
from ..infrastructure.config.resolver import SourceResolver
from ..infrastructure.config.typegen import (
    default_string, deprecation_report, render_template, write_types
)
from ..infrastructure.config.validator import TypeCoercionValidator
from ..infrastructure.config.watcher import IChangeWatcher, create_change_watcher

logger = logging.getLogger(__name__)


class ConfigStore(IComponent):
    """
    Schema-driven configuration store with caching and hot reload.

    Values are resolved from the process environment, the env file and the
    schema defaults, in that order of precedence. A successful resolution is
    cached as one read-only snapshot until ``update()`` or a reload replaces
    it. File watching starts with ``await store.start()`` when the ``watch``
    option is set.
    """

    def __init__(self, options: Optional[StoreOptions] = None, **kwargs: Any) -> None:
        if options is None:
            options = StoreOptions(**kwargs)
        elif kwargs:
            options = dataclasses.replace(options, **kwargs)

        self._options = options
        self._schema: SchemaRegistry = options.schema  # type: ignore[assignment]
        self._environment = options.environment or OsEnvironment()
        self._file_store = FileStore(options.env_path)
        self._resolver = SourceResolver()
        self._validator = TypeCoercionValidator()
        self._codec: Optional[EncryptionCodec] = None
        self._cache = ResolvedCache(enabled=options.cache)
        self._events = EventEmitter()
        self._watcher: Optional[IChangeWatcher] = None
        self._last_digest: Optional[str] = None
        self._started = False

        if options.encrypt:
            self._codec = EncryptionCodec(
                options.encryption_key or "", options.encryption_salt)

        self._prepare_env_file()

        logger.info(f"Config store initialized with {len(self._schema)} fields "
                    f"(env file: {self._file_store.path})")

    # -- properties --------------------------------------------------------

    @property
    def name(self) -> str:
        return "ConfigStore"

    @property
    def schema(self) -> SchemaRegistry:
        return self._schema

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def env_path(self) -> Path:
        return self._file_store.path

    @property
    def is_cached(self) -> bool:
        return self._cache.is_valid

    # -- env file preparation ------------------------------------------------

    def _persisted_defaults(self) -> Dict[str, str]:
        """Persisted string for every field with a default, encrypted when sensitive."""
        values: Dict[str, str] = {}
        for name, field in self._schema.items():
            value = default_string(field)
            if not value:
                continue
            if field.sensitive and self._codec is not None:
                value = self._codec.encrypt(value)
            values[name] = value
        return values

    def _prepare_env_file(self) -> None:
        if not self._file_store.exists():
            if not self._options.auto_create:
                logger.warning(f"Env file not found: {self._file_store.path}")
                return
            content = ""
            if self._options.auto_populate:
                content = render_template(self._schema, self._persisted_defaults())
            self._file_store.create(content)
            return

        if self._options.auto_populate:
            added = self._file_store.append_missing(self._persisted_defaults())
            if added:
                logger.info(f"Added {added} default value(s) to {self._file_store.path}")

    # -- resolution ------------------------------------------------------------

    def _decode(self, field: FieldSchema, raw: RawValue) -> Optional[str]:
        if raw.value is None:
            return None
        if (field.sensitive and self._codec is not None
                and self._codec.looks_encrypted(raw.value)):
            return self._codec.decrypt(raw.value)
        return raw.value

    def _resolve(self) -> ResolutionResult:
        """Run one full resolution pass without touching the cache."""
        result = ResolutionResult()

        try:
            content = self._file_store.read()
            file_map = parse_env_content(content)
            result.file_digest = self._file_store.digest(content)
        except FileStoreError as e:
            file_map = {}
            result.errors.append(ValidationError(
                str(self._file_store.path), e.message, ErrorKind.IO_FAILURE))

        raw_values = self._resolver.resolve(
            self._schema, file_map, self._environment, self._options.skip_os_env)

        for name, field in self._schema.items():
            raw = raw_values[name]
            try:
                value = self._validator.validate_field(field, self._decode(field, raw))
            except FieldValidationError as e:
                result.errors.append(ValidationError(name, e.message, e.kind))
                continue
            except DecryptionError as e:
                result.errors.append(ValidationError(
                    name, e.message, ErrorKind.DECRYPTION_FAILURE))
                continue

            result.values[name] = value
            if field.is_deprecated and raw.is_present:
                result.warnings.append(f"{name} is deprecated: {field.deprecation_hint}")

        if self._options.strict:
            for key in file_map:
                if key not in self._schema:
                    result.errors.append(ValidationError(
                        key, "Unknown field (not declared in schema)", ErrorKind.INVALID))

        return result

    def _commit(self, result: ResolutionResult) -> ResolvedConfig:
        snapshot = result.freeze()
        if self._options.cache:
            self._cache.store(snapshot)
            self._last_digest = result.file_digest
        return snapshot

    def _publish_failure(self, errors: List[ValidationError]) -> None:
        handler = self._options.on_error
        if handler is not None:
            try:
                handler(list(errors))
            except Exception as e:
                logger.error(f"Error in on_error handler: {e}")
        elif not self._events.handler_count(StoreEvent.ERROR):
            for error in errors:
                logger.error(f"Invalid configuration: {error.field}: {error.message}")

        self._events.emit(StoreEvent.ERROR, list(errors))

    def _publish_warnings(self, warnings: List[str]) -> None:
        if not warnings:
            return
        handler = self._options.on_warning
        if handler is None:
            for warning in warnings:
                logger.warning(warning)
            return
        try:
            handler(list(warnings))
        except Exception as e:
            logger.error(f"Error in on_warning handler: {e}")

    # -- public API --------------------------------------------------------------

    def get_all(self) -> ResolvedConfig:
        """
        Resolve and return every field.

        Returns:
            Read-only mapping of field name to typed value. With caching
            enabled the same object is returned until an update or reload.

        Raises:
            ConfigValidationError: With every field error found
        """
        if self._options.cache:
            cached = self._cache.get()
            if cached is not None:
                return cached

        result = self._resolve()
        self._publish_warnings(result.warnings)

        if not result.ok:
            self._publish_failure(result.errors)
            raise ConfigValidationError(result.errors)

        return self._commit(result)

    def get(self, key: str) -> Any:
        """
        Return the typed value of one field.

        Outside strict mode a field resolves independently of unrelated
        invalid fields.

        Raises:
            UnknownFieldError: If ``key`` is not in the schema
            ConfigValidationError: If the field (or, in strict mode, any
                field) fails validation
        """
        if key not in self._schema:
            raise UnknownFieldError(key)

        if self._options.cache:
            cached = self._cache.get()
            if cached is not None:
                return cached[key]

        result = self._resolve()
        self._publish_warnings(result.warnings)

        if result.ok:
            return self._commit(result)[key]

        if self._options.strict:
            self._publish_failure(result.errors)
            raise ConfigValidationError(result.errors)

        field_errors = result.errors_for(key)
        if field_errors:
            self._publish_failure(field_errors)
            raise ConfigValidationError(field_errors)

        logger.debug(f"Returning {key} from a partial resolution "
                     f"({len(result.errors)} unrelated error(s))")
        return result.values[key]

    def update(self, key: str, value: Any) -> None:
        """
        Set a field at runtime and persist it to the env file.

        The value is validated first; sensitive fields are encrypted when
        encryption is enabled. On success the env file line is replaced (or
        appended), the process environment override is set, the cache is
        invalidated and the ``update`` event fires. On failure nothing is
        written.

        Raises:
            UnknownFieldError: If ``key`` is not in the schema
            ConfigValidationError: If ``value`` is not valid for the field
            EncryptionError: If the value cannot be encrypted
            FileStoreError: If the env file cannot be written
        """
        field = self._schema.get(key)
        if field is None:
            raise UnknownFieldError(key)

        try:
            self._validator.validate_field(field, value)
        except FieldValidationError as e:
            raise ConfigValidationError([ValidationError(key, e.message, e.kind)]) from e

        persisted = "" if value is None else stringify_value(value)
        encrypted = field.sensitive and self._codec is not None and bool(persisted)
        stored = self._codec.encrypt(persisted) if encrypted else persisted

        try:
            self._file_store.update_key(key, stored)
        except ValueError as e:
            raise ConfigValidationError([ValidationError(key, str(e), ErrorKind.INVALID)]) from e
        # Not atomic with the file write: a crash here leaves the file updated
        # but the process environment unchanged.
        self._environment.write(key, persisted)
        self._cache.invalidate()

        logger.info(f"Updated {key}" + (" (encrypted)" if encrypted else ""))
        self._events.emit(StoreEvent.UPDATE, key, value)

    def reload(self) -> bool:
        """
        Re-resolve from the current sources and swap the result in.

        On failure the last valid snapshot is kept and the errors are routed
        to ``on_error`` and the ``error`` event.

        Returns:
            True if the configuration was reloaded
        """
        logger.info(f"Reloading configuration from {self._file_store.path}")
        result = self._resolve()
        self._publish_warnings(result.warnings)

        if not result.ok:
            logger.error(f"Configuration reload failed with {len(result.errors)} error(s); "
                         f"keeping last valid configuration")
            self._publish_failure(result.errors)
            return False

        snapshot = self._commit(result)
        self._last_digest = result.file_digest
        logger.info("Configuration reloaded successfully")
        self._events.emit(StoreEvent.RELOAD, snapshot)
        return True

    def _on_file_changed(self) -> None:
        try:
            digest = self._file_store.digest()
        except FileStoreError as e:
            self._publish_failure([ValidationError(
                str(self._file_store.path), e.message, ErrorKind.IO_FAILURE)])
            return

        if digest == self._last_digest:
            logger.debug("Env file content unchanged, skipping reload")
            return
        self.reload()

    def on(self, event: Union[StoreEvent, str], handler: EventHandler) -> None:
        """
        Subscribe to ``reload(config)``, ``update(key, value)`` or
        ``error(errors)``.
        """
        self._events.on(event, handler)

    def off(self, event: Union[StoreEvent, str], handler: EventHandler) -> bool:
        return self._events.off(event, handler)

    def generate_types(self, output_path: Union[str, Path]) -> None:
        """Write a Python ``TypedDict`` module describing the schema."""
        path = write_types(self._schema, output_path)
        logger.info(f"Types generated at {path}")

    def generate_template(self) -> str:
        """Env file skeleton for the schema, with defaults filled in."""
        return render_template(self._schema)

    def deprecated_fields(self) -> List[Tuple[str, str]]:
        return deprecation_report(self._schema)

    # -- lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Start watching the env file when the ``watch`` option is set."""
        if self._started:
            return

        if self._options.watch:
            self._watcher = create_change_watcher(
                self._file_store.path,
                self._on_file_changed,
                use_polling=self._options.use_polling,
                debounce_delay=self._options.debounce_delay,
                poll_interval=self._options.poll_interval,
            )
            await self._watcher.start()

        self._started = True
        logger.info("Config store started")

    async def stop(self) -> None:
        """Stop the file watcher."""
        if not self._started:
            return

        if self._watcher is not None:
            await self._watcher.stop()
            self._watcher = None

        self._started = False
        logger.info("Config store stopped")

    async def __aenter__(self) -> 'ConfigStore':
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    def check_health(self) -> Dict[str, Any]:
        """Report store status."""
        return {
            'healthy': self._file_store.exists() or not self._options.auto_create,
            'status': 'running' if self._started else 'stopped',
            'details': {
                'env_file': str(self._file_store.path),
                'env_file_exists': self._file_store.exists(),
                'fields': len(self._schema),
                'strict': self._options.strict,
                'encryption_enabled': self._codec is not None,
                'watching': self._watcher is not None and self._watcher.is_running(),
                'cache': self._cache.stats(),
                'events': self._events.get_metrics(),
            }
        }


def create_config_store(**kwargs: Any) -> ConfigStore:
    """Create a ``ConfigStore`` from keyword options (see ``StoreOptions``)."""
    return ConfigStore(StoreOptions(**kwargs))
