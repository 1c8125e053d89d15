"""
Tests for the configuration store.

This module tests resolution through ConfigStore: source precedence,
validation batches, caching, runtime updates, encryption, reloads, file
watching and generated artifacts.
"""

import asyncio
import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, List
from unittest.mock import Mock, patch

import pytest

from envguard.application.store import ConfigStore, create_config_store
from envguard.core.domain.values import ErrorKind, ValidationError
from envguard.core.exceptions import ConfigValidationError, UnknownFieldError
from envguard.core.services.event_emitter import StoreEvent
from envguard.infrastructure.config.crypto import EncryptionCodec
from envguard.infrastructure.config.environment import InMemoryEnvironment
from envguard.infrastructure.config.parser import parse_env_content
from envguard.infrastructure.config.typegen import render_template


BASE_SCHEMA: Dict[str, Any] = {
    "PORT": {"type": "port", "default": 3000},
    "NODE_ENV": {"type": "enum", "enum_values": ["development", "production"],
                 "default": "development"},
    "DEBUG": {"type": "boolean", "default": False},
}


@pytest.fixture
def env_file(tmp_path: Path) -> Path:
    return tmp_path / ".env"


@pytest.fixture
def environment() -> InMemoryEnvironment:
    return InMemoryEnvironment()


@pytest.fixture
def make_store(env_file: Path, environment: InMemoryEnvironment) -> Callable[..., ConfigStore]:
    def factory(schema: Any = None, **kwargs: Any) -> ConfigStore:
        kwargs.setdefault("env_path", env_file)
        kwargs.setdefault("environment", environment)
        return ConfigStore(schema=schema if schema is not None else BASE_SCHEMA, **kwargs)
    return factory


async def wait_for(condition: Callable[[], bool], timeout: float = 3.0) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            return False
        await asyncio.sleep(0.02)
    return True


class TestInitialization:
    """Test cases for env file creation and population."""

    def test_auto_create_writes_template(self, make_store: Callable[..., ConfigStore],
                                         env_file: Path) -> None:
        """Test that a missing file is created from the schema template."""
        store = make_store()

        assert env_file.exists()
        assert parse_env_content(env_file.read_text()) == {
            "PORT": "3000",
            "NODE_ENV": "development",
            "DEBUG": "false",
        }
        assert env_file.read_text() == store.generate_template()

    def test_auto_create_without_populate(self, make_store: Callable[..., ConfigStore],
                                          env_file: Path) -> None:
        """Test that an empty file is created when population is off."""
        make_store(auto_populate=False)
        assert env_file.read_text() == ""

    def test_no_auto_create(self, make_store: Callable[..., ConfigStore], env_file: Path) -> None:
        """Test that no file is created and defaults still resolve."""
        store = make_store(auto_create=False)

        assert not env_file.exists()
        assert store.get("PORT") == 3000

    def test_existing_file_gets_missing_defaults(self, make_store: Callable[..., ConfigStore],
                                                 env_file: Path) -> None:
        """Test that keys with defaults are appended to an existing file."""
        env_file.write_text("PORT=8000\n")

        make_store()

        assert parse_env_content(env_file.read_text()) == {
            "PORT": "8000",
            "NODE_ENV": "development",
            "DEBUG": "false",
        }

    def test_existing_file_untouched_without_populate(
        self, make_store: Callable[..., ConfigStore], env_file: Path
    ) -> None:
        """Test that population can be disabled."""
        env_file.write_text("PORT=8000\n")
        make_store(auto_populate=False)
        assert env_file.read_text() == "PORT=8000\n"

    def test_options_object_with_overrides(self, env_file: Path,
                                           environment: InMemoryEnvironment) -> None:
        """Test constructing from StoreOptions plus keyword overrides."""
        from envguard.infrastructure.config.models import StoreOptions

        options = StoreOptions(schema=BASE_SCHEMA, env_path=env_file, environment=environment)
        store = ConfigStore(options, strict=True)

        assert store.options.strict is True
        assert options.strict is False
        assert store.env_path == env_file.resolve()


class TestResolution:
    """Test cases for get and get_all."""

    def test_precedence(self, make_store: Callable[..., ConfigStore], env_file: Path,
                        environment: InMemoryEnvironment) -> None:
        """Test process environment > file > default."""
        env_file.write_text("PORT=8000\nNODE_ENV=production\n")
        environment.values["PORT"] = "9000"

        store = make_store()

        assert store.get("PORT") == 9000
        assert store.get("NODE_ENV") == "production"
        assert store.get("DEBUG") is False

    def test_skip_os_env(self, make_store: Callable[..., ConfigStore], env_file: Path,
                         environment: InMemoryEnvironment) -> None:
        """Test ignoring the process environment."""
        env_file.write_text("PORT=8000\n")
        environment.values["PORT"] = "9000"

        assert make_store(skip_os_env=True).get("PORT") == 8000

    def test_typed_values(self, make_store: Callable[..., ConfigStore], env_file: Path) -> None:
        """Test that values are coerced to their declared types."""
        env_file.write_text("PORT=8080\nDEBUG=yes\n")

        config = make_store().get_all()

        assert config == {"PORT": 8080, "NODE_ENV": "development", "DEBUG": True}

    def test_unknown_key(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test reading a key that is not declared."""
        store = make_store()

        with pytest.raises(UnknownFieldError) as exc_info:
            store.get("NOT_DECLARED")

        assert exc_info.value.key == "NOT_DECLARED"
        assert isinstance(exc_info.value, KeyError)

    def test_result_is_read_only(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test that the resolved mapping cannot be modified."""
        config = make_store().get_all()

        assert isinstance(config, MappingProxyType)
        with pytest.raises(TypeError):
            config["PORT"] = 1  # type: ignore[index]

    def test_missing_required_field(self, make_store: Callable[..., ConfigStore],
                                    environment: InMemoryEnvironment) -> None:
        """Test a required field supplied only by an ignored environment."""
        environment.values["DATABASE_URL"] = "postgres://localhost/db"
        on_error = Mock()
        store = make_store(
            schema={**BASE_SCHEMA, "DATABASE_URL": {"type": "url", "required": True}},
            skip_os_env=True,
            on_error=on_error,
        )

        with pytest.raises(ConfigValidationError) as exc_info:
            store.get_all()

        errors = exc_info.value.errors
        assert [(e.field, e.kind) for e in errors] == [("DATABASE_URL", ErrorKind.MISSING)]
        assert "DATABASE_URL" in str(exc_info.value)
        on_error.assert_called_once_with(errors)

    def test_errors_are_aggregated(self, make_store: Callable[..., ConfigStore],
                                   env_file: Path) -> None:
        """Test that every invalid field is reported in one batch."""
        env_file.write_text("PORT=0\nNODE_ENV=staging\nDEBUG=maybe\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            make_store().get_all()

        assert exc_info.value.fields == ["PORT", "NODE_ENV", "DEBUG"]
        assert [e.kind for e in exc_info.value.errors] == [
            ErrorKind.INVALID, ErrorKind.INVALID, ErrorKind.TYPE_ERROR]

    def test_get_valid_key_despite_unrelated_errors(
        self, make_store: Callable[..., ConfigStore], env_file: Path
    ) -> None:
        """Test that a valid key resolves when another key is invalid."""
        env_file.write_text("PORT=0\nNODE_ENV=production\n")
        on_error = Mock()
        store = make_store(on_error=on_error)

        assert store.get("NODE_ENV") == "production"
        on_error.assert_not_called()
        assert store.is_cached is False

    def test_get_invalid_key(self, make_store: Callable[..., ConfigStore], env_file: Path) -> None:
        """Test that only the requested key's errors are reported."""
        env_file.write_text("PORT=0\nNODE_ENV=staging\n")
        on_error = Mock()
        store = make_store(on_error=on_error)

        with pytest.raises(ConfigValidationError) as exc_info:
            store.get("PORT")

        assert exc_info.value.fields == ["PORT"]
        on_error.assert_called_once()
        assert [e.field for e in on_error.call_args.args[0]] == ["PORT"]

    def test_strict_get_fails_on_any_error(self, make_store: Callable[..., ConfigStore],
                                           env_file: Path) -> None:
        """Test that strict mode validates the whole configuration."""
        env_file.write_text("PORT=0\nNODE_ENV=production\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            make_store(strict=True).get("NODE_ENV")

        assert exc_info.value.fields == ["PORT"]

    def test_strict_rejects_unknown_file_keys(self, make_store: Callable[..., ConfigStore],
                                              env_file: Path,
                                              environment: InMemoryEnvironment) -> None:
        """Test that undeclared keys in the env file fail strict validation."""
        env_file.write_text("PORT=8000\nUNKNOWN=1\n")
        environment.values["ALSO_UNKNOWN"] = "1"

        with pytest.raises(ConfigValidationError) as exc_info:
            make_store(strict=True).get_all()

        assert [(e.field, e.kind) for e in exc_info.value.errors] == [
            ("UNKNOWN", ErrorKind.INVALID)]

    def test_unknown_file_keys_allowed_when_not_strict(
        self, make_store: Callable[..., ConfigStore], env_file: Path
    ) -> None:
        """Test that non-strict mode ignores undeclared keys."""
        env_file.write_text("PORT=8000\nUNKNOWN=1\n")
        assert make_store().get_all()["PORT"] == 8000

    def test_error_event(self, make_store: Callable[..., ConfigStore], env_file: Path) -> None:
        """Test that validation failures are published as an error event."""
        env_file.write_text("PORT=abc\n")
        store = make_store()
        handler = Mock()
        store.on(StoreEvent.ERROR, handler)

        with pytest.raises(ConfigValidationError):
            store.get_all()

        errors: List[ValidationError] = handler.call_args.args[0]
        assert errors[0].field == "PORT"
        assert errors[0].kind is ErrorKind.TYPE_ERROR

    def test_on_error_failure_is_contained(self, make_store: Callable[..., ConfigStore],
                                           env_file: Path) -> None:
        """Test that a raising on_error handler does not mask the validation error."""
        env_file.write_text("PORT=abc\n")
        store = make_store(on_error=Mock(side_effect=RuntimeError("handler bug")))

        with pytest.raises(ConfigValidationError):
            store.get_all()

    def test_unreadable_file(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test that a read failure is reported as an io_failure."""
        store = make_store()

        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            with pytest.raises(ConfigValidationError) as exc_info:
                store.get_all()

        assert exc_info.value.errors[0].kind is ErrorKind.IO_FAILURE

    def test_deprecation_warning(self, make_store: Callable[..., ConfigStore],
                                 env_file: Path) -> None:
        """Test that deprecated fields in use produce warnings."""
        env_file.write_text("OLD_PORT=1\n")
        on_warning = Mock()
        store = make_store(
            schema={**BASE_SCHEMA, "OLD_PORT": {"type": "port", "deprecated": "Use PORT"}},
            on_warning=on_warning,
        )

        store.get_all()

        on_warning.assert_called_once_with(["OLD_PORT is deprecated: Use PORT"])

    def test_unused_deprecated_field_is_silent(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test that unset deprecated fields do not warn."""
        on_warning = Mock()
        store = make_store(
            schema={**BASE_SCHEMA, "OLD_PORT": {"type": "port", "deprecated": True}},
            on_warning=on_warning,
        )

        store.get_all()

        on_warning.assert_not_called()


class TestCaching:
    """Test cases for the resolved configuration cache."""

    def test_repeated_reads_return_same_object(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test cache identity."""
        store = make_store()
        first = store.get_all()

        assert store.get_all() is first
        assert store.is_cached is True

    def test_cached_get_does_not_reread_file(self, make_store: Callable[..., ConfigStore],
                                             env_file: Path) -> None:
        """Test that cached reads ignore later file edits until reload."""
        store = make_store()
        assert store.get("PORT") == 3000

        env_file.write_text("PORT=8000\n")

        assert store.get("PORT") == 3000

    def test_cache_disabled(self, make_store: Callable[..., ConfigStore], env_file: Path) -> None:
        """Test that every read resolves afresh without caching."""
        store = make_store(cache=False)
        first = store.get_all()

        assert store.get_all() is not first
        assert store.get_all() == first
        assert store.is_cached is False

        env_file.write_text("PORT=8000\n")
        assert store.get("PORT") == 8000


class TestUpdate:
    """Test cases for runtime updates."""

    def test_update_rewrites_file_line(self, make_store: Callable[..., ConfigStore],
                                       env_file: Path,
                                       environment: InMemoryEnvironment) -> None:
        """Test that update persists, overrides and notifies."""
        env_file.write_text("# server\nPORT=3000\nNODE_ENV=development\nDEBUG=false\n")
        store = make_store()
        handler = Mock()
        store.on("update", handler)

        store.update("PORT", 8080)

        assert env_file.read_text() == "# server\nPORT=8080\nNODE_ENV=development\nDEBUG=false\n"
        assert environment.values["PORT"] == "8080"
        assert store.get("PORT") == 8080
        handler.assert_called_once_with("PORT", 8080)

    def test_update_invalidates_cache(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test that a fresh snapshot is built after an update."""
        store = make_store()
        before = store.get_all()

        store.update("DEBUG", True)
        after = store.get_all()

        assert after is not before
        assert before["DEBUG"] is False
        assert after["DEBUG"] is True

    def test_update_appends_missing_key(self, make_store: Callable[..., ConfigStore],
                                        env_file: Path) -> None:
        """Test updating a key that is not yet in the file."""
        env_file.write_text("PORT=3000\n")
        store = make_store(auto_populate=False)

        store.update("NODE_ENV", "production")

        assert env_file.read_text() == "PORT=3000\nNODE_ENV=production\n"

    def test_invalid_value_writes_nothing(self, make_store: Callable[..., ConfigStore],
                                          env_file: Path,
                                          environment: InMemoryEnvironment) -> None:
        """Test that a rejected update has no side effects."""
        store = make_store()
        original = env_file.read_text()
        handler = Mock()
        store.on(StoreEvent.UPDATE, handler)

        with pytest.raises(ConfigValidationError) as exc_info:
            store.update("PORT", 70000)

        assert exc_info.value.fields == ["PORT"]
        assert env_file.read_text() == original
        assert "PORT" not in environment.values
        handler.assert_not_called()

    def test_update_unknown_key(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test updating an undeclared key."""
        with pytest.raises(UnknownFieldError):
            make_store().update("NOPE", "1")

    def test_update_value_ending_in_backslash(self, make_store: Callable[..., ConfigStore],
                                              env_file: Path) -> None:
        """Test that a trailing backslash does not swallow the following line."""
        env_file.write_text("WIN_DIR=x\nPORT=3000\n")
        store = make_store(schema={**BASE_SCHEMA, "WIN_DIR": {}}, auto_populate=False)

        store.update("WIN_DIR", "C:\\data\\")

        assert parse_env_content(env_file.read_text()) == {"WIN_DIR": "C:\\data\\", "PORT": "3000"}
        fresh = make_store(schema={**BASE_SCHEMA, "WIN_DIR": {}}, environment=InMemoryEnvironment())
        assert fresh.get("WIN_DIR") == "C:\\data\\"
        assert fresh.get("PORT") == 3000

    def test_unrepresentable_value_writes_nothing(self, make_store: Callable[..., ConfigStore],
                                                  env_file: Path,
                                                  environment: InMemoryEnvironment) -> None:
        """Test that a multi-line value with a trailing backslash line is rejected."""
        store = make_store(schema={**BASE_SCHEMA, "BANNER": {}})
        original = env_file.read_text()

        with pytest.raises(ConfigValidationError) as exc_info:
            store.update("BANNER", "first\\\nsecond")

        assert exc_info.value.errors[0].kind is ErrorKind.INVALID
        assert env_file.read_text() == original
        assert "BANNER" not in environment.values

    def test_update_json_value(self, make_store: Callable[..., ConfigStore], env_file: Path) -> None:
        """Test that structured values are stored as compact JSON."""
        store = make_store(schema={"FEATURES": {"type": "json"}})

        store.update("FEATURES", {"beta": True})

        assert parse_env_content(env_file.read_text())["FEATURES"] == '{"beta":true}'
        assert store.get("FEATURES") == {"beta": True}


class TestEncryption:
    """Test cases for sensitive field encryption."""

    SCHEMA = {
        **BASE_SCHEMA,
        "API_KEY": {"type": "string", "sensitive": True, "pattern": "^sk_"},
    }

    def test_update_stores_ciphertext(self, make_store: Callable[..., ConfigStore],
                                      env_file: Path) -> None:
        """Test that sensitive values are encrypted on disk."""
        store = make_store(schema=self.SCHEMA, encrypt=True, encryption_key="master")

        store.update("API_KEY", "sk_live_123")

        stored = parse_env_content(env_file.read_text())["API_KEY"]
        assert "sk_live_123" not in env_file.read_text()
        assert EncryptionCodec.is_encrypted(stored)

        fresh = make_store(schema=self.SCHEMA, encrypt=True, encryption_key="master",
                           environment=InMemoryEnvironment())
        assert fresh.get("API_KEY") == "sk_live_123"

    def test_plaintext_sensitive_value_is_accepted(self, make_store: Callable[..., ConfigStore],
                                                   env_file: Path) -> None:
        """Test that values not in encrypted form are read as plaintext."""
        env_file.write_text("API_KEY=sk_plain\n")
        store = make_store(schema=self.SCHEMA, encrypt=True, encryption_key="master")
        assert store.get("API_KEY") == "sk_plain"

    def test_non_sensitive_values_stay_plain(self, make_store: Callable[..., ConfigStore],
                                             env_file: Path) -> None:
        """Test that only sensitive fields are encrypted."""
        store = make_store(schema=self.SCHEMA, encrypt=True, encryption_key="master")
        store.update("PORT", 8081)
        assert "PORT=8081\n" in env_file.read_text()

    def test_sensitive_port_is_decrypted_before_parsing(
        self, make_store: Callable[..., ConfigStore], env_file: Path
    ) -> None:
        """Test that typed sensitive fields are coerced after decryption."""
        payload = EncryptionCodec("master").encrypt("5432")
        env_file.write_text(f"DB_PORT={payload}\n")
        schema = {"DB_PORT": {"type": "port", "sensitive": True}}

        store = make_store(schema=schema, encrypt=True, encryption_key="master")

        assert store.get("DB_PORT") == 5432

    def test_truncated_payload_is_a_decryption_failure(
        self, make_store: Callable[..., ConfigStore], env_file: Path
    ) -> None:
        """Test that a corrupted payload is never returned as plaintext."""
        payload = EncryptionCodec("master").encrypt("sk_live_123")
        env_file.write_text(f"API_KEY={payload[:-1]}\n")
        store = make_store(schema=self.SCHEMA, encrypt=True, encryption_key="master")

        with pytest.raises(ConfigValidationError) as exc_info:
            store.get("API_KEY")

        assert [(e.field, e.kind) for e in exc_info.value.errors] == [
            ("API_KEY", ErrorKind.DECRYPTION_FAILURE)]

    def test_wrong_key(self, make_store: Callable[..., ConfigStore], env_file: Path) -> None:
        """Test that a payload under another key is a decryption failure."""
        env_file.write_text(f"API_KEY={EncryptionCodec('other').encrypt('sk_x')}\n")
        store = make_store(schema=self.SCHEMA, encrypt=True, encryption_key="master")

        with pytest.raises(ConfigValidationError) as exc_info:
            store.get_all()

        assert [(e.field, e.kind) for e in exc_info.value.errors] == [
            ("API_KEY", ErrorKind.DECRYPTION_FAILURE)]

    def test_sensitive_default_encrypted_in_template(
        self, make_store: Callable[..., ConfigStore], env_file: Path
    ) -> None:
        """Test that generated files never hold sensitive defaults in clear."""
        schema = {"API_KEY": {"sensitive": True, "default": "sk_dev"}}
        store = make_store(schema=schema, encrypt=True, encryption_key="master")

        assert "sk_dev" not in env_file.read_text()
        assert EncryptionCodec.is_encrypted(parse_env_content(env_file.read_text())["API_KEY"])
        assert store.get("API_KEY") == "sk_dev"

    def test_without_encryption_payloads_are_opaque(
        self, make_store: Callable[..., ConfigStore], env_file: Path
    ) -> None:
        """Test that encrypted-looking values are left alone when encryption is off."""
        payload = EncryptionCodec("master").encrypt("sk_x")
        env_file.write_text(f"API_KEY={payload}\n")
        schema = {"API_KEY": {"type": "string", "sensitive": True}}

        assert make_store(schema=schema).get("API_KEY") == payload


class TestReload:
    """Test cases for reloading."""

    def test_reload_picks_up_changes(self, make_store: Callable[..., ConfigStore],
                                     env_file: Path) -> None:
        """Test a successful reload."""
        store = make_store()
        before = store.get_all()
        handler = Mock()
        store.on(StoreEvent.RELOAD, handler)

        env_file.write_text("PORT=8000\n")

        assert store.reload() is True
        config = handler.call_args.args[0]
        assert config["PORT"] == 8000
        assert store.get_all() is config
        assert before["PORT"] == 3000

    def test_failed_reload_keeps_last_valid_config(
        self, make_store: Callable[..., ConfigStore], env_file: Path
    ) -> None:
        """Test that an invalid edit does not replace the cached config."""
        env_file.write_text("PORT=8000\n")
        on_error = Mock()
        store = make_store(on_error=on_error)
        good = store.get_all()
        reload_handler = Mock()
        error_handler = Mock()
        store.on(StoreEvent.RELOAD, reload_handler)
        store.on(StoreEvent.ERROR, error_handler)

        env_file.write_text("PORT=0\n")

        assert store.reload() is False
        assert store.get_all() is good
        assert store.get("PORT") == 8000
        on_error.assert_called_once()
        assert on_error.call_args.args[0][0].field == "PORT"
        error_handler.assert_called_once()
        reload_handler.assert_not_called()

    def test_file_change_with_same_content_is_skipped(
        self, make_store: Callable[..., ConfigStore], env_file: Path
    ) -> None:
        """Test the content digest check on change notifications."""
        store = make_store()
        store.get_all()

        with patch.object(store, "reload") as mock_reload:
            store._on_file_changed()
            mock_reload.assert_not_called()

            env_file.write_text("PORT=8000\n")
            store._on_file_changed()
            mock_reload.assert_called_once()


class TestLifecycle:
    """Test cases for start, stop and watching."""

    @pytest.mark.asyncio
    async def test_watch_reloads_on_change(self, make_store: Callable[..., ConfigStore],
                                           env_file: Path) -> None:
        """Test that editing the file triggers a debounced reload."""
        store = make_store(watch=True, use_polling=True, poll_interval=0.05, debounce_delay=0.05)
        assert store.get("PORT") == 3000
        reloaded = Mock()
        store.on(StoreEvent.RELOAD, reloaded)

        async with store:
            assert store.check_health()["details"]["watching"] is True
            env_file.write_text("PORT=8000\nNODE_ENV=production\n")

            assert await wait_for(lambda: reloaded.called)

        assert store.get("PORT") == 8000
        reloaded.assert_called_once()
        assert store.check_health()["status"] == "stopped"

    @pytest.mark.asyncio
    async def test_touch_without_edit_does_not_reload(
        self, make_store: Callable[..., ConfigStore], env_file: Path
    ) -> None:
        """Test that a metadata-only change is ignored."""
        store = make_store(watch=True, use_polling=True, poll_interval=0.05, debounce_delay=0.05)
        store.get_all()
        reloaded = Mock()
        store.on(StoreEvent.RELOAD, reloaded)

        await store.start()
        try:
            stat = env_file.stat()
            os.utime(env_file, ns=(stat.st_atime_ns, stat.st_mtime_ns + 5_000_000_000))
            await asyncio.sleep(0.4)
        finally:
            await store.stop()

        reloaded.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_without_watch(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test that no watcher runs unless requested."""
        store = make_store()

        await store.start()
        health = store.check_health()
        await store.stop()

        assert health["status"] == "running"
        assert health["details"]["watching"] is False

    def test_name(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test the component name."""
        assert make_store().name == "ConfigStore"

    def test_check_health(self, make_store: Callable[..., ConfigStore], env_file: Path) -> None:
        """Test the health report."""
        health = make_store().check_health()

        assert health["healthy"] is True
        assert health["status"] == "stopped"
        assert health["details"]["env_file"] == str(env_file.resolve())
        assert health["details"]["fields"] == 3
        assert health["details"]["encryption_enabled"] is False


class TestGeneratedArtifacts:
    """Test cases for type, template and deprecation output."""

    def test_generate_types(self, make_store: Callable[..., ConfigStore], tmp_path: Path) -> None:
        """Test writing the TypedDict module."""
        output = tmp_path / "types" / "env.py"

        make_store().generate_types(output)

        source = output.read_text()
        assert "class Env(TypedDict):" in source
        assert "    PORT: NotRequired[int]" in source

    def test_generate_template(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test the env file template."""
        store = make_store()
        assert store.generate_template() == render_template(store.schema)

    def test_deprecated_fields(self, make_store: Callable[..., ConfigStore]) -> None:
        """Test listing deprecated fields."""
        store = make_store(schema={**BASE_SCHEMA, "LEGACY": {"deprecated": "Remove me"}})
        assert store.deprecated_fields() == [("LEGACY", "Remove me")]


class TestFactory:
    """Test cases for create_config_store."""

    def test_create_config_store(self, env_file: Path) -> None:
        """Test building a store from keyword options."""
        store = create_config_store(
            schema=BASE_SCHEMA, env_path=env_file, environment=InMemoryEnvironment())

        assert isinstance(store, ConfigStore)
        assert store.get("NODE_ENV") == "development"
