"""
Environment source implementations.
"""

import logging
import os
from typing import Dict, Mapping, MutableMapping, Optional

from ...core.interfaces.environment import IEnvironmentSource

logger = logging.getLogger(__name__)


class OsEnvironment(IEnvironmentSource):
    """Environment source backed by ``os.environ``."""

    def __init__(self, environ: Optional[MutableMapping[str, str]] = None) -> None:
        self._environ = os.environ if environ is None else environ

    def read(self, key: str) -> Optional[str]:
        return self._environ.get(key)

    def write(self, key: str, value: str) -> None:
        self._environ[key] = value
        logger.debug(f"Process environment override set for {key}")


class InMemoryEnvironment(IEnvironmentSource):
    """Isolated environment source, useful for tests and embedding."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self.values: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def write(self, key: str, value: str) -> None:
        self.values[key] = value
