"""
L1 Domain — Security metadata and vulnerability scoring (pure).

A tool's security metadata is a list of CVEs, each affecting one or
more version ranges. Vulnerability sets are ranked by their maximum
severity first and their severity sum second.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field

from idetool.core.services.tool_install.domain.version import VersionIdentifier
from idetool.core.services.tool_install.domain.version_range import VersionRange

NVD_URL = "https://nvd.nist.gov/vuln/detail/"


@dataclass(frozen=True)
class Cve:
    """A single security issue affecting the given version ranges."""

    id: str
    severity: float
    versions: tuple[VersionRange, ...] = ()

    def affects(self, version: VersionIdentifier) -> bool:
        return any(r.contains(version) for r in self.versions)

    @property
    def url(self) -> str:
        return f"{NVD_URL}{self.id}"

    def __str__(self) -> str:
        ranges = ", ".join(str(r) for r in self.versions)
        return f"{self.id} (severity {self.severity:g}, versions {ranges})"


@dataclass(frozen=True)
class ToolSecurity:
    """All known CVEs of a tool edition.

    Issues below ``min_severity`` are ignored by :meth:`find_cves`.
    """

    issues: tuple[Cve, ...] = ()
    min_severity: float = 0.0

    def find_cves(self, version: VersionIdentifier) -> list[Cve]:
        return [
            cve for cve in self.issues
            if cve.severity >= self.min_severity and cve.affects(version)
        ]

    def is_vulnerable(self, version: VersionIdentifier) -> bool:
        return bool(self.find_cves(version))

    def with_min_severity(self, min_severity: float) -> ToolSecurity:
        return ToolSecurity(self.issues, min_severity)


EMPTY_SECURITY = ToolSecurity()


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class ToolVulnerabilities:
    """CVEs of one concrete version with comparable scoring."""

    issues: tuple[Cve, ...] = field(default=())

    @classmethod
    def of(cls, issues) -> ToolVulnerabilities:
        return cls(tuple(issues))

    @property
    def max_severity(self) -> float:
        return max((c.severity for c in self.issues), default=0.0)

    @property
    def severity_sum(self) -> float:
        return sum(c.severity for c in self.issues)

    @property
    def is_empty(self) -> bool:
        return not self.issues

    def _key(self) -> tuple[float, float]:
        return (self.max_severity, self.severity_sum)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ToolVulnerabilities):
            return NotImplemented
        return self._key() < other._key()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ToolVulnerabilities):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def is_safer(self, other: ToolVulnerabilities | None) -> bool:
        return other is None or self < other

    def is_safer_or_equal(self, other: ToolVulnerabilities | None) -> bool:
        return other is None or self <= other

    def describe(self, subject: str = "") -> str:
        """Human readable summary, one CVE per line."""
        if self.is_empty:
            head = "No CVEs found"
        else:
            head = f"Found {len(self.issues)} CVE(s)"
        if subject:
            head += f" for {subject}"
        lines = [head + (":" if self.issues else ".")]
        lines.extend(str(c) for c in self.issues)
        return "\n".join(lines)
