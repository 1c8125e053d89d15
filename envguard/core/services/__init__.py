"""Core services."""

from .event_emitter import EventEmitter, StoreEvent

__all__ = [
    "EventEmitter",
    "StoreEvent",
]
