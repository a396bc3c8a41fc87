"""
Project model — the root configuration of a developer workspace.

Loaded from ide.yml, this declares where the shared software
repository lives, where tool metadata is read from and which tools
(with which editions and versions) the project needs.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from idetool.core.models.tool import ToolDefinition

DEFAULT_HOME = "~/.idetool"


class CveSettings(BaseModel):
    """Security check settings."""

    min_severity: float = 0.0
    choice: str | None = None   # batch-mode override: current | nearest | latest_safe | latest


class ProjectConfig(BaseModel):
    """Root project configuration — loaded from ide.yml."""

    name: str = "ide-project"
    software_repository: str = f"{DEFAULT_HOME}/software"
    repository_id: str = "default"
    urls: str = f"{DEFAULT_HOME}/urls"
    downloads: str = f"{DEFAULT_HOME}/downloads"
    catalog: str | None = None          # optional tools.yml, relative to the project
    skip_updates: bool = False

    cve: CveSettings = Field(default_factory=CveSettings)
    tools: dict[str, ToolDefinition] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _name_tools(self) -> ProjectConfig:
        for key, tool in self.tools.items():
            if not tool.name:
                tool.name = key
        return self

    def software_repository_path(self) -> Path:
        return Path(self.software_repository).expanduser()

    def urls_path(self) -> Path:
        return Path(self.urls).expanduser()

    def downloads_path(self) -> Path:
        return Path(self.downloads).expanduser()

    def get_tool(self, name: str) -> ToolDefinition | None:
        """Look up a configured tool by name."""
        return self.tools.get(name)
