"""
L1 Domain — Tool / edition / version identity (pure).

A tool (``java``) may ship in several editions (``java``, ``corretto``,
``zulu``). A request pairs an edition with a version requirement and,
once resolved, a concrete version.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from idetool.core.services.tool_install.domain.version import VersionIdentifier
from idetool.core.services.tool_install.domain.version_range import GenericVersionRange


@dataclass(frozen=True)
class ToolEdition:
    """A tool together with one of its editions.

    An empty edition defaults to the tool name.
    """

    tool: str
    edition: str = ""

    def __post_init__(self) -> None:
        if not self.tool:
            raise ValueError("Tool name must not be empty")
        if not self.edition:
            object.__setattr__(self, "edition", self.tool)

    def __str__(self) -> str:
        if self.edition == self.tool:
            return self.tool
        return f"{self.tool}/{self.edition}"


@dataclass(frozen=True)
class ToolEditionAndVersion:
    """Edition plus version requirement plus (optional) resolved version."""

    edition: ToolEdition
    version: GenericVersionRange
    resolved_version: VersionIdentifier | None = field(default=None)

    def __post_init__(self) -> None:
        resolved = self.resolved_version
        if resolved is None and isinstance(self.version, VersionIdentifier) and not self.version.is_pattern():
            object.__setattr__(self, "resolved_version", self.version)
        elif resolved is not None and resolved.is_pattern():
            raise ValueError(f"Resolved version must not be a pattern: {resolved}")

    @property
    def tool(self) -> str:
        return self.edition.tool

    def get_resolved_or_requested(self) -> GenericVersionRange:
        return self.resolved_version if self.resolved_version is not None else self.version

    def __str__(self) -> str:
        return f"{self.edition}@{self.get_resolved_or_requested()}"


class ToolEditionAndVersionBuilder:
    """Append-only builder for :class:`ToolEditionAndVersion`.

    Each field can be set exactly once; a second assignment raises
    ``ValueError`` instead of silently overwriting.
    """

    def __init__(self) -> None:
        self._edition: ToolEdition | None = None
        self._version: GenericVersionRange | None = None
        self._resolved: VersionIdentifier | None = None

    def with_edition(self, edition: ToolEdition) -> ToolEditionAndVersionBuilder:
        if self._edition is not None:
            raise ValueError(f"Edition already set to {self._edition}, cannot change to {edition}")
        self._edition = edition
        return self

    def with_version(self, version: GenericVersionRange) -> ToolEditionAndVersionBuilder:
        if self._version is not None:
            raise ValueError(f"Version already set to {self._version}, cannot change to {version}")
        self._version = version
        return self

    def with_resolved_version(self, version: VersionIdentifier) -> ToolEditionAndVersionBuilder:
        if self._resolved is not None:
            raise ValueError(f"Resolved version already set to {self._resolved}, cannot change to {version}")
        if version.is_pattern():
            raise ValueError(f"Resolved version must not be a pattern: {version}")
        self._resolved = version
        return self

    def build(self) -> ToolEditionAndVersion:
        if self._edition is None or self._version is None:
            raise ValueError("Both edition and version are required")
        return ToolEditionAndVersion(self._edition, self._version, self._resolved)
