"""
Tool Install — Request tree state: write-once fields, chains, loops,
shared session state and the already-installed check.
"""

from __future__ import annotations

import pytest

from idetool.core.services.tool_install.domain.edition import ToolEdition, ToolEditionAndVersion
from idetool.core.services.tool_install.domain.version import LATEST, VersionIdentifier
from idetool.core.services.tool_install.domain.version_range import VersionRange
from idetool.core.services.tool_install.execution.request import (
    CachedValue,
    InstallRequest,
    SessionCache,
)


def tev(tool: str, version: str, resolved: str | None = None, edition: str = "") -> ToolEditionAndVersion:
    requested = VersionIdentifier.of(version) if not VersionRange.looks_like_range(version) else VersionRange.of(version)
    return ToolEditionAndVersion(
        ToolEdition(tool, edition),
        requested,
        VersionIdentifier.of(resolved) if resolved else None,
    )


class TestWriteOnce:
    """Fields that can only be set once."""

    def test_requested(self):
        request = InstallRequest()
        request.requested = tev("java", "17.0.2")
        with pytest.raises(ValueError, match="already set"):
            request.requested = tev("java", "17.0.3")

    def test_installed(self):
        request = InstallRequest()
        request.installed = tev("java", "17.0.2")
        with pytest.raises(ValueError):
            request.installed = tev("java", "17.0.2")


class TestTree:
    """Parent/child requests and loop detection."""

    def test_child_shares_context_and_cache(self):
        root = InstallRequest(direct=True)
        root.requested = tev("mvn", "3.9.6")
        child = root.child()
        assert child.parent is root
        assert child.silent
        assert not child.direct
        assert child.process_context is root.process_context
        assert child.session_cache is root.session_cache

    def test_chain_text(self):
        root = InstallRequest()
        root.requested = tev("app", "1.0")
        child = root.child()
        child.requested = tev("mvn", "3.9.6")
        grandchild = child.child()
        grandchild.requested = tev("java", "17*", "17.0.2")
        assert grandchild.chain_text() == "app@1.0 -> mvn@3.9.6 -> java@17.0.2"
        assert [r.requested.tool for r in grandchild.chain()] == ["app", "mvn", "java"]

    def test_loop_detection(self):
        root = InstallRequest()
        root.requested = tev("a", "1.0")
        child = root.child()
        child.requested = tev("b", "2.0")
        grandchild = child.child()
        grandchild.requested = tev("a", "*", "1.0")
        assert grandchild.is_loop()
        assert not child.is_loop()

    def test_same_tool_other_version_is_no_loop(self):
        root = InstallRequest()
        root.requested = tev("a", "1.0")
        child = root.child()
        child.requested = tev("a", "2.0")
        assert not child.is_loop()

    def test_retry_keeps_position(self):
        root = InstallRequest(direct=True)
        root.requested = tev("java", "17.0.2")
        root.cve_check_done = True
        fresh = root.retry()
        assert fresh.requested is None
        assert fresh.direct
        assert fresh.cve_check_done
        assert fresh.process_context is root.process_context

        child = root.child(extra_installation=True)
        child.requested = tev("mvn", "3.9.6")
        retried = child.retry()
        assert retried.parent is root
        assert retried.extra_installation


class TestAlreadyInstalled:
    """Deciding whether installation can be skipped."""

    def test_nothing_installed(self):
        request = InstallRequest()
        request.requested = tev("java", "17.0.2")
        assert not request.is_already_installed(skip_updates=False)

    def test_same_version(self):
        request = InstallRequest()
        request.requested = tev("java", "17*", "17.0.2")
        request.installed = tev("java", "17.0.2")
        assert request.is_already_installed(skip_updates=False)

    def test_other_version_needs_update(self):
        request = InstallRequest()
        request.requested = tev("java", "17*", "17.0.3")
        request.installed = tev("java", "17.0.2")
        assert not request.is_already_installed(skip_updates=False)
        # the installed version still matches the pattern
        assert request.is_already_installed(skip_updates=True)

    def test_other_edition(self):
        request = InstallRequest()
        request.requested = tev("java", "17*", "17.0.2", edition="corretto")
        request.installed = tev("java", "17.0.2")
        assert not request.is_already_installed(skip_updates=True)

    def test_skip_updates_with_range(self):
        request = InstallRequest()
        request.requested = tev("java", "[11,18)", "17.0.3")
        request.installed = tev("java", "17.0.2")
        assert request.is_already_installed(skip_updates=True)

    def test_skip_updates_latest(self):
        request = InstallRequest()
        request.requested = ToolEditionAndVersion(ToolEdition("java"), LATEST, VersionIdentifier.of("21.0.2"))
        request.installed = tev("java", "17.0.2")
        assert request.is_already_installed(skip_updates=True)


class TestSessionCache:
    """Session-wide caching."""

    def test_value_is_computed_once(self):
        calls = []
        cache = SessionCache()
        first = cache.value("k", lambda: calls.append(1) or "v")
        assert first.get() == "v"
        assert cache.value("k", lambda: "other").get() == "v"
        assert calls == [1]

    def test_invalidate(self):
        counter = iter(range(10))
        cached = CachedValue(lambda: next(counter))
        assert cached.get() == 0
        assert cached.is_cached
        cached.invalidate()
        assert not cached.is_cached
        assert cached.get() == 1

    def test_invalidate_unknown_key(self):
        SessionCache().invalidate("missing")
