"""
Core layer: schema and value types, interfaces, exceptions and services.

Nothing in this package performs I/O.
"""
