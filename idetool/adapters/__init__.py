"""Adapters — tool repositories and the tool registry.

Public re-exports for convenient access.
"""

from idetool.adapters.base import ToolDependency, ToolRepository
from idetool.adapters.mock import InMemoryToolRepository
from idetool.adapters.registry import ToolRegistry

__all__ = [
    "InMemoryToolRepository",
    "ToolDependency",
    "ToolRegistry",
    "ToolRepository",
]
