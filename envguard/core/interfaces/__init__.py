"""Interfaces implemented by envguard components."""

from .environment import IEnvironmentSource
from .lifecycle import IComponent, IHealthCheckable, IStartable, IStoppable

__all__ = [
    "IEnvironmentSource",
    "IComponent",
    "IHealthCheckable",
    "IStartable",
    "IStoppable",
]
