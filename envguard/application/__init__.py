"""
Application layer.

The configuration store that ties schema, sources, validation, encryption,
caching and watching together.
"""

from .store import ConfigStore, create_config_store

__all__ = [
    "ConfigStore",
    "create_config_store",
]
