"""
Installation result — what the engine hands back for one tool.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from idetool.core.services.tool_install.domain.version import VersionIdentifier


class InstallationResult(BaseModel):
    """Outcome of installing (or finding installed) one tool version.

    ``root_dir`` is the shared-repository directory, ``link_dir`` the
    directory the project link points to and ``bin_dir`` the directory
    holding executables (``link_dir/bin`` if present, else ``link_dir``).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    tool: str
    edition: str
    resolved_version: VersionIdentifier
    root_dir: Path
    link_dir: Path
    bin_dir: Path
    newly_installed: bool = False
    extra_installation: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "tool": self.tool,
            "edition": self.edition,
            "version": str(self.resolved_version),
            "root_dir": str(self.root_dir),
            "link_dir": str(self.link_dir),
            "bin_dir": str(self.bin_dir),
            "newly_installed": self.newly_installed,
            "extra_installation": self.extra_installation,
        }
