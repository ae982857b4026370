"""Adapters — bindings for git, the shell and the download site.

Public re-exports for convenient access.
"""

from rose_installer.adapters.base import Adapter, ExecutionContext
from rose_installer.adapters.mock import MockAdapter
from rose_installer.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
