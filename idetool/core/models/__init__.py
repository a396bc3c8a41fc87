"""
Domain models — Pydantic types for the tool manager.

All models are re-exported here for convenient access:

    from idetool.core.models import ProjectConfig, ToolDefinition, InstallationResult
"""

from idetool.core.models.installation import InstallationResult
from idetool.core.models.project import CveSettings, ProjectConfig
from idetool.core.models.tool import PackageManagerSpec, ToolDefinition, ToolKind

__all__ = [
    "CveSettings",
    "InstallationResult",
    "PackageManagerSpec",
    "ProjectConfig",
    "ToolDefinition",
    "ToolKind",
]
