"""Directory and role hierarchy adapters."""

from .memory_directory import InMemoryDirectory, InMemoryDirectoryClient, FilterParser, MemoryEntry
from .static_role_hierarchy import StaticRoleHierarchy

__all__ = [
    "InMemoryDirectory",
    "InMemoryDirectoryClient",
    "FilterParser",
    "MemoryEntry",
    "StaticRoleHierarchy",
]
