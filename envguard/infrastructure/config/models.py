"""
Option models for the configuration store and logging.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ...core.domain.schema import SchemaRegistry, define_schema
from ...core.domain.values import ValidationError
from ...core.interfaces.environment import IEnvironmentSource

ErrorHandler = Callable[[List[ValidationError]], Any]
WarningHandler = Callable[[List[str]], Any]


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_directory: str = "logs"
    log_file: str = "envguard.log"
    max_file_size: str = "10 MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = False


@dataclass
class StoreOptions:
    """Options recognized by ``ConfigStore``."""

    schema: Union[SchemaRegistry, Mapping[str, Any]]
    env_path: Union[str, Path] = ".env"
    skip_os_env: bool = False
    auto_create: bool = True
    auto_populate: bool = True
    strict: bool = False
    cache: bool = True
    watch: bool = False
    encrypt: bool = False
    encryption_key: Optional[str] = None
    on_error: Optional[ErrorHandler] = None
    on_warning: Optional[WarningHandler] = None

    # Extensions
    encryption_salt: Optional[Union[str, bytes]] = None
    debounce_delay: float = 0.5
    use_polling: bool = False
    poll_interval: float = 1.0
    environment: Optional[IEnvironmentSource] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate options after initialization."""
        self.schema = define_schema(self.schema)
        self.env_path = Path(self.env_path)
        self._validate_encryption()
        self._validate_timings()

    def _validate_encryption(self) -> None:
        if self.encrypt and not self.encryption_key:
            raise ValueError("Encryption key is required when encrypt is enabled")

    def _validate_timings(self) -> None:
        if self.debounce_delay < 0:
            raise ValueError(
                f"debounce_delay must not be negative, got {self.debounce_delay}")
        if self.poll_interval <= 0:
            raise ValueError(
                f"poll_interval must be positive, got {self.poll_interval}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary with the secret redacted."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            if f.name in ("schema", "on_error", "on_warning", "environment"):
                continue
            result[f.name] = getattr(self, f.name)
        result["env_path"] = str(self.env_path)
        if result.get("encryption_key"):
            result["encryption_key"] = "***"
        if result.get("encryption_salt"):
            result["encryption_salt"] = "***"
        result["fields"] = list(self.schema)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'StoreOptions':
        """Create options from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
