"""
L1 Domain — Security remediation options (pure).

When the version about to be installed has known CVEs, the user is
offered alternative versions. This module computes those options;
asking the user is the orchestration layer's job.
"""

from __future__ import annotations

from dataclasses import dataclass

from idetool.core.services.tool_install.domain.version import VersionIdentifier
from idetool.core.services.tool_install.domain.vulnerabilities import (
    ToolSecurity,
    ToolVulnerabilities,
)

OPTION_CURRENT = "current"
OPTION_NEAREST = "nearest"
OPTION_LATEST_SAFE = "latest_safe"
OPTION_LATEST = "latest"

OPTIONS = (OPTION_CURRENT, OPTION_NEAREST, OPTION_LATEST_SAFE, OPTION_LATEST)


@dataclass(frozen=True)
class ToolVersionChoice:
    """One selectable remediation option."""

    option: str
    version: VersionIdentifier
    vulnerabilities: ToolVulnerabilities
    may_be_unsafe: bool = False

    @property
    def safe(self) -> bool:
        return self.vulnerabilities.is_empty

    def __str__(self) -> str:
        if self.safe:
            state = "safe"
        elif self.may_be_unsafe:
            state = "may be unsafe"
        else:
            state = "unsafe"
        return f"{self.option} ({self.version} - {state})"


def build_version_choices(
    current: VersionIdentifier,
    sorted_versions: list[VersionIdentifier],
    security: ToolSecurity,
) -> list[ToolVersionChoice]:
    """Compute remediation options for ``current``.

    Args:
        current: The vulnerable version about to be installed.
        sorted_versions: Candidate versions, descending.
        security: Security metadata used to score each candidate.

    Returns:
        Options in the order current, nearest, latest_safe, latest.
        An option whose version is already offered is dropped.
    """
    def score(version: VersionIdentifier) -> ToolVulnerabilities:
        return ToolVulnerabilities.of(security.find_cves(version))

    choices = [ToolVersionChoice(OPTION_CURRENT, current, score(current))]

    safe_versions = [v for v in sorted_versions if not security.is_vulnerable(v)]

    # Ascending walk from just above current.
    nearest = next((v for v in reversed(safe_versions) if v > current), None)
    if nearest is not None:
        choices.append(ToolVersionChoice(OPTION_NEAREST, nearest, score(nearest)))

    if safe_versions:
        latest_safe = safe_versions[0]
        choices.append(ToolVersionChoice(OPTION_LATEST_SAFE, latest_safe, score(latest_safe)))

    if sorted_versions:
        latest = sorted_versions[0]
        choices.append(
            ToolVersionChoice(OPTION_LATEST, latest, score(latest), may_be_unsafe=not safe_versions)
        )

    unique: list[ToolVersionChoice] = []
    seen: set[VersionIdentifier] = set()
    for choice in choices:
        if choice.version in seen:
            continue
        seen.add(choice.version)
        unique.append(choice)
    return unique
