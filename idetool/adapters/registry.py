"""
Tool registry — central lookup of tool definitions.

Definitions come from two places, later ones overriding earlier ones
field by field:

    1. a tool catalog file (``tools.yml``), shared across projects
    2. the ``tools:`` section of the project's ide.yml

The engine never reads tool definitions directly, always through the
registry.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from idetool.core.models.tool import ToolDefinition

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when a tool catalog file is invalid."""


def load_tool_catalog(path: Path) -> dict[str, ToolDefinition]:
    """Load tool definitions from a YAML catalog.

    The file holds a ``tools:`` mapping (or the mapping itself) of tool
    name to definition.

    Raises:
        CatalogError: If the file cannot be read or is invalid.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise CatalogError(f"Cannot read tool catalog {path}: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CatalogError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    tools = data.get("tools", data)

    catalog: dict[str, ToolDefinition] = {}
    for name, raw in tools.items():
        try:
            definition = ToolDefinition.model_validate(raw or {})
        except Exception as e:
            raise CatalogError(f"Invalid definition of tool '{name}' in {path}: {e}") from e
        if not definition.name:
            definition.name = name
        catalog[name] = definition
    logger.debug("Loaded %d tool definitions from %s", len(catalog), path)
    return catalog


class ToolRegistry:
    """Registry of tool definitions by name."""

    def __init__(self, definitions: dict[str, ToolDefinition] | None = None):
        self._tools: dict[str, ToolDefinition] = {}
        for definition in (definitions or {}).values():
            self.register(definition)

    def register(self, definition: ToolDefinition) -> None:
        """Register a definition, overlaying an existing one of the same name."""
        existing = self._tools.get(definition.name)
        if existing is not None:
            logger.debug("Overriding tool definition: %s", definition.name)
            definition = existing.merged_with(definition)
        self._tools[definition.name] = definition

    def get(self, name: str) -> ToolDefinition | None:
        """Look up a tool definition by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        """All registered tool names."""
        return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
