"""
Container package.

Exports:
    ServiceContainer: per-process providers, handlers and pipeline components.
"""

from .service_container import ServiceContainer

__all__ = ["ServiceContainer"]
