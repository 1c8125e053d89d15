"""
Environment source interface.

The store never touches ``os.environ`` directly; it reads and writes through
an ``IEnvironmentSource`` so the process-wide mutation performed by
``update()`` is explicit and replaceable in tests.
"""

from abc import ABC, abstractmethod
from typing import Optional


class IEnvironmentSource(ABC):
    """Read/write access to process-level environment variables."""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the value of ``key`` or ``None`` when it is not defined."""
        pass

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """
        Define ``key`` for the rest of the process lifetime.

        Values written here are never removed by envguard.
        """
        pass
