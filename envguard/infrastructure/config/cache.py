"""
Single-slot cache for the last validated configuration snapshot.
"""

import logging
import time
from typing import Any, Dict, Optional

from ...core.domain.values import ResolvedConfig

logger = logging.getLogger(__name__)


class ResolvedCache:
    """
    Holds at most one resolved configuration.

    The slot is only ever replaced by a single assignment of a complete,
    read-only snapshot; it is never edited field by field.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._snapshot: Optional[ResolvedConfig] = None
        self._stored_at: Optional[float] = None
        self._generation = 0
        self._hits = 0
        self._misses = 0

    @property
    def is_valid(self) -> bool:
        return self._snapshot is not None

    @property
    def generation(self) -> int:
        """Incremented every time a new snapshot is stored."""
        return self._generation

    def get(self) -> Optional[ResolvedConfig]:
        if self._snapshot is None:
            self._misses += 1
        else:
            self._hits += 1
        return self._snapshot

    def store(self, snapshot: ResolvedConfig) -> None:
        if not self.enabled:
            return
        self._snapshot = snapshot
        self._stored_at = time.time()
        self._generation += 1
        logger.debug(f"Configuration cached (generation {self._generation})")

    def invalidate(self) -> None:
        if self._snapshot is not None:
            logger.debug("Configuration cache invalidated")
        self._snapshot = None
        self._stored_at = None

    def stats(self) -> Dict[str, Any]:
        return {
            'enabled': self.enabled,
            'valid': self.is_valid,
            'generation': self._generation,
            'hits': self._hits,
            'misses': self._misses,
            'stored_at': self._stored_at,
        }
