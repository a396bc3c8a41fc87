"""
Tests for the pure domain layer — editions, CVEs, remediation choices
and dependency planning.
"""

import pytest

from idetool.adapters.base import ToolDependency
from idetool.core.services.tool_install.domain.edition import (
    ToolEdition,
    ToolEditionAndVersion,
    ToolEditionAndVersionBuilder,
)
from idetool.core.services.tool_install.domain.remediation import (
    OPTION_CURRENT,
    OPTION_LATEST,
    OPTION_LATEST_SAFE,
    OPTION_NEAREST,
    build_version_choices,
)
from idetool.core.services.tool_install.domain.version import LATEST, VersionIdentifier, sort_versions
from idetool.core.services.tool_install.domain.version_range import VersionRange
from idetool.core.services.tool_install.domain.vulnerabilities import (
    Cve,
    ToolSecurity,
    ToolVulnerabilities,
)
from idetool.core.services.tool_install.resolver.dependency_collection import (
    plan_dependencies,
    plan_dependency,
)


def v(text: str) -> VersionIdentifier:
    return VersionIdentifier.of(text)


# ── Editions ─────────────────────────────────────────────────────────


class TestToolEdition:
    """Tool edition naming."""

    def test_default_edition_is_tool(self):
        edition = ToolEdition("java")
        assert edition.edition == "java"
        assert str(edition) == "java"

    def test_explicit_edition(self):
        assert str(ToolEdition("java", "corretto")) == "java/corretto"

    def test_empty_tool_rejected(self):
        with pytest.raises(ValueError):
            ToolEdition("")

    def test_equality(self):
        assert ToolEdition("java") == ToolEdition("java", "java")


class TestToolEditionAndVersion:
    """Requested and resolved versions of an edition."""

    def test_concrete_version_is_resolved(self):
        tev = ToolEditionAndVersion(ToolEdition("java"), v("17.0.2_8"))
        assert tev.resolved_version == v("17.0.2_8")
        assert tev.tool == "java"
        assert str(tev) == "java@17.0.2_8"

    def test_pattern_stays_unresolved(self):
        tev = ToolEditionAndVersion(ToolEdition("java"), v("17*"))
        assert tev.resolved_version is None
        assert tev.get_resolved_or_requested() == v("17*")

    def test_resolved_pattern_rejected(self):
        with pytest.raises(ValueError):
            ToolEditionAndVersion(ToolEdition("java"), LATEST, v("17*"))


class TestBuilder:
    """Write-once builder."""

    def test_build(self):
        tev = (
            ToolEditionAndVersionBuilder()
            .with_edition(ToolEdition("mvn"))
            .with_version(v("3*"))
            .with_resolved_version(v("3.9.6"))
            .build()
        )
        assert str(tev) == "mvn@3.9.6"

    def test_fields_are_write_once(self):
        builder = ToolEditionAndVersionBuilder().with_edition(ToolEdition("mvn"))
        with pytest.raises(ValueError, match="already set"):
            builder.with_edition(ToolEdition("java"))
        builder.with_version(LATEST)
        with pytest.raises(ValueError):
            builder.with_version(v("1.0"))

    def test_missing_fields(self):
        with pytest.raises(ValueError):
            ToolEditionAndVersionBuilder().with_edition(ToolEdition("mvn")).build()

    def test_resolved_must_be_concrete(self):
        with pytest.raises(ValueError):
            ToolEditionAndVersionBuilder().with_resolved_version(v("3*"))


# ── Vulnerabilities ──────────────────────────────────────────────────


def _cve(cve_id: str, severity: float, *ranges: str) -> Cve:
    return Cve(cve_id, severity, tuple(VersionRange.of(r) for r in ranges))


class TestToolSecurity:
    """CVE lookup by version."""

    SECURITY = ToolSecurity((
        _cve("CVE-2024-0001", 7.5, "[1.0,1.2)"),
        _cve("CVE-2024-0002", 3.1, "[1.1,1.1]", "[2.0,2.1)"),
    ))

    def test_find_cves(self):
        assert [c.id for c in self.SECURITY.find_cves(v("1.1"))] == ["CVE-2024-0001", "CVE-2024-0002"]
        assert [c.id for c in self.SECURITY.find_cves(v("2.0"))] == ["CVE-2024-0002"]
        assert self.SECURITY.find_cves(v("1.2")) == []

    def test_min_severity(self):
        strict = self.SECURITY.with_min_severity(5.0)
        assert strict.is_vulnerable(v("1.0"))
        assert not strict.is_vulnerable(v("2.0"))

    def test_cve_url(self):
        assert self.SECURITY.issues[0].url == "https://nvd.nist.gov/vuln/detail/CVE-2024-0001"


class TestToolVulnerabilities:
    """Severity scoring of matching CVEs."""

    def test_ordering_by_max_then_sum(self):
        low = ToolVulnerabilities.of([_cve("a", 5.0), _cve("b", 5.0)])
        high = ToolVulnerabilities.of([_cve("c", 9.0)])
        assert low < high
        assert ToolVulnerabilities.of([_cve("d", 5.0)]) < low

    def test_is_safer(self):
        none = ToolVulnerabilities()
        some = ToolVulnerabilities.of([_cve("a", 1.0)])
        assert none.is_empty
        assert none.is_safer(some)
        assert not some.is_safer(some)
        assert some.is_safer_or_equal(some)
        assert some.is_safer(None)

    def test_describe(self):
        vulns = ToolVulnerabilities.of([_cve("CVE-1", 7.0, "[1,2)")])
        text = vulns.describe("java@1.5")
        assert text.startswith("Found 1 CVE(s) for java@1.5:")
        assert "CVE-1" in text
        assert ToolVulnerabilities().describe() == "No CVEs found."


# ── Remediation choices ──────────────────────────────────────────────


class TestBuildVersionChoices:
    """Current, nearest, latest-safe and latest options."""

    VERSIONS = sort_versions([v(x) for x in ("1.0", "1.1", "1.2", "1.3", "2.0")])

    def test_current_nearest_latest_safe_latest(self):
        security = ToolSecurity((_cve("CVE-A", 8.0, "[1.0,1.2]"), _cve("CVE-B", 5.0, "[2.0,2.0]")))
        choices = build_version_choices(v("1.1"), self.VERSIONS, security)
        assert [(c.option, str(c.version)) for c in choices] == [
            (OPTION_CURRENT, "1.1"),
            (OPTION_NEAREST, "1.3"),
            (OPTION_LATEST, "2.0"),
        ]
        assert not choices[0].safe
        assert choices[1].safe
        assert not choices[2].safe
        assert "may be unsafe" not in str(choices[2])

    def test_distinct_latest_safe(self):
        security = ToolSecurity((_cve("CVE-A", 8.0, "[1.0,1.1]", "[1.3,1.3]"),))
        choices = build_version_choices(v("1.0"), self.VERSIONS, security)
        assert [(c.option, str(c.version)) for c in choices] == [
            (OPTION_CURRENT, "1.0"),
            (OPTION_NEAREST, "1.2"),
            (OPTION_LATEST_SAFE, "2.0"),
        ]

    def test_no_safe_version(self):
        security = ToolSecurity((_cve("CVE-A", 8.0, "[1.0,)"),))
        choices = build_version_choices(v("1.1"), self.VERSIONS, security)
        assert [c.option for c in choices] == [OPTION_CURRENT, OPTION_LATEST]
        assert choices[1].may_be_unsafe
        assert str(choices[1]) == "latest (2.0 - may be unsafe)"

    def test_current_is_latest(self):
        security = ToolSecurity((_cve("CVE-A", 8.0, "[2.0,2.0]"),))
        choices = build_version_choices(v("2.0"), self.VERSIONS, security)
        assert [c.option for c in choices] == [OPTION_CURRENT, OPTION_LATEST_SAFE]
        assert str(choices[1]) == "latest_safe (1.3 - safe)"


# ── Dependency planning ──────────────────────────────────────────────


class TestDependencyPlanning:
    """Normal vs. extra installation of dependencies."""

    VERSIONS = sort_versions([v(x) for x in ("21.0.2", "17.0.10", "11.0.22")])

    def resolve(self, request):
        from idetool.core.services.tool_install.domain.version import resolve_version_pattern

        return resolve_version_pattern(request, self.VERSIONS)

    def test_configured_version_in_range(self):
        dep = ToolDependency("java", VersionRange.of("[11,)"))
        plan = plan_dependency(dep, v("17*"), self.resolve)
        assert plan.version == v("17.0.10")
        assert not plan.extra_installation

    def test_configured_version_outside_range(self):
        dep = ToolDependency("java", VersionRange.of("[11,12)"))
        plan = plan_dependency(dep, v("17*"), self.resolve)
        assert plan.extra_installation
        assert plan.version == VersionRange.of("[11,12)")
        assert plan.configured_version == v("17.0.10")

    def test_unconfigured_means_latest(self):
        dep = ToolDependency("java", VersionRange())
        assert plan_dependency(dep, None, self.resolve).version == v("21.0.2")

    def test_plan_dependencies_keeps_order(self):
        deps = [ToolDependency("b", VersionRange()), ToolDependency("a", VersionRange())]
        plans = plan_dependencies(deps, lambda tool: None, lambda tool: self.resolve)
        assert [p.dependency.tool for p in plans] == ["b", "a"]
