"""
Tool model — how a single tool is installed and used.

Tool definitions come from a catalog file (``tools.yml``) and/or the
``tools:`` section of ide.yml. Project entries override catalog
entries field by field.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ToolKind = Literal["local", "package_manager"]


class PackageManagerSpec(BaseModel):
    """Shell templates for a tool delegated to a package manager.

    Placeholders ``{package}`` and ``{version}`` are substituted in every
    argument. ``version_pattern`` is a regex whose first group captures
    the installed version from the output of ``query``.
    """

    executable: str
    package: str = ""
    install: list[str] = Field(default_factory=lambda: ["install", "{package}@{version}"])
    uninstall: list[str] = Field(default_factory=lambda: ["uninstall", "{package}"])
    query: list[str] = Field(default_factory=lambda: ["list", "{package}"])
    version_pattern: str = r"{package}@(\S+)"


class ToolDefinition(BaseModel):
    """A tool the manager knows how to install."""

    name: str = ""
    kind: ToolKind = "local"

    # Configured requirement (project level)
    version: str | None = None          # concrete, pattern or range; None = latest
    edition: str | None = None          # None = tool name

    editions: list[str] = Field(default_factory=list)
    binary: str | None = None           # executable name for `run` (default: name)
    extract: bool = True                # False = artifact is the tool itself
    self_managed: bool = False          # the manager's own installation
    parent_tool: str | None = None
    can_be_uninstalled: bool = True
    post_install: list[list[str]] = Field(default_factory=list)
    package_manager: PackageManagerSpec | None = None

    @property
    def configured_edition(self) -> str:
        return self.edition or self.name

    @property
    def executable(self) -> str:
        return self.binary or self.name

    @property
    def supports_extra_installation(self) -> bool:
        """Whether a second version can live beside the configured one."""
        return self.kind == "local"

    def known_editions(self) -> list[str]:
        return self.editions or [self.configured_edition]

    def merged_with(self, override: ToolDefinition) -> ToolDefinition:
        """Overlay the explicitly set fields of ``override`` onto this one."""
        data = self.model_dump()
        data.update(override.model_dump(exclude_unset=True))
        return ToolDefinition.model_validate(data)
