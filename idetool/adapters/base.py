"""
Adapter base — the contract between the install engine and a tool repository.

The engine never reads metadata or downloads artifacts itself; it
only talks to a ``ToolRepository``. Swapping the repository (metadata
tree on disk, in-memory test double, ...) changes where tools come
from without touching the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from idetool.core.services.tool_install.domain.version import (
    VersionIdentifier,
    resolve_version_pattern,
)
from idetool.core.services.tool_install.domain.version_range import (
    GenericVersionRange,
    VersionRange,
)
from idetool.core.services.tool_install.domain.vulnerabilities import ToolSecurity

ProgressCallback = Callable[[int, int], None]
"""``progress(bytes_done, bytes_total)``; ``bytes_total`` is 0 if unknown."""


@dataclass(frozen=True)
class ToolDependency:
    """A tool another tool needs, restricted to a version range."""

    tool: str
    version_range: VersionRange

    def __str__(self) -> str:
        return f"{self.tool}@{self.version_range}"


class ToolRepository(ABC):
    """Abstract source of tool versions, artifacts and metadata.

    To create a new repository:
        1. Subclass ToolRepository
        2. Implement id, download, find_dependencies, get_sorted_versions,
           get_sorted_editions, find_security
        3. Hand it to the InstallEngine
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Repository identifier, also the first path segment in the software repository."""

    def resolve_version(
        self,
        tool: str,
        edition: str,
        request: GenericVersionRange | None,
    ) -> VersionIdentifier:
        """Resolve a version request to exactly one available version.

        Raises:
            VersionResolutionError: If no available version matches.
        """
        return resolve_version_pattern(
            request, self.get_sorted_versions(tool, edition), tool=tool, edition=edition,
        )

    @abstractmethod
    def download(
        self,
        tool: str,
        edition: str,
        version: VersionIdentifier,
        progress: ProgressCallback | None = None,
    ) -> Path:
        """Download the artifact and return the local file path.

        Raises:
            DownloadError: On network failure or checksum mismatch.
        """

    @abstractmethod
    def find_dependencies(
        self, tool: str, edition: str, version: VersionIdentifier,
    ) -> list[ToolDependency]:
        """Dependencies of one tool version, in declaration order."""

    @abstractmethod
    def get_sorted_versions(self, tool: str, edition: str) -> list[VersionIdentifier]:
        """All available versions, latest first."""

    @abstractmethod
    def get_sorted_editions(self, tool: str) -> list[str]:
        """All available editions, alphabetically."""

    @abstractmethod
    def find_security(self, tool: str, edition: str) -> ToolSecurity:
        """Security metadata (CVEs) of a tool edition."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.id!r}>"
