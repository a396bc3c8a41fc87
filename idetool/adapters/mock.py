"""
Mock repository — in-memory test double for all repository operations.

Used by tests (and dry experiments) to simulate a tool repository
without a metadata tree or network. Versions, dependencies, CVEs and
artifact payloads are configured per tool edition; every download is
recorded.
"""

from __future__ import annotations

import io
import tarfile
import tempfile
from pathlib import Path

from idetool.adapters.base import ProgressCallback, ToolDependency, ToolRepository
from idetool.core.services.tool_install.domain.version import VersionIdentifier, sort_versions
from idetool.core.services.tool_install.domain.version_range import VersionRange
from idetool.core.services.tool_install.domain.vulnerabilities import Cve, ToolSecurity
from idetool.core.services.tool_install.errors import DownloadError


class InMemoryToolRepository(ToolRepository):
    """Configurable in-memory repository.

    By default every version's artifact is a ``.tar.gz`` holding a
    ``bin/<tool>`` script. Custom artifacts can be set per version.
    """

    def __init__(self, repository_id: str = "default", download_dir: Path | None = None):
        self._id = repository_id
        self._download_dir = download_dir
        self._versions: dict[tuple[str, str], list[VersionIdentifier]] = {}
        self._dependencies: dict[tuple[str, str], list[tuple[VersionRange, list[ToolDependency]]]] = {}
        self._security: dict[tuple[str, str], list[Cve]] = {}
        self._artifacts: dict[tuple[str, str, str], tuple[str, bytes]] = {}
        self._download_log: list[tuple[str, str, str]] = []

    @property
    def id(self) -> str:
        return self._id

    @property
    def download_log(self) -> list[tuple[str, str, str]]:
        """All ``(tool, edition, version)`` downloads performed."""
        return self._download_log

    @property
    def download_count(self) -> int:
        return len(self._download_log)

    # ── Configuration ───────────────────────────────────────────

    def add_versions(self, tool: str, *versions: str, edition: str | None = None) -> InMemoryToolRepository:
        key = (tool, edition or tool)
        known = self._versions.setdefault(key, [])
        for v in versions:
            parsed = VersionIdentifier.of(v)
            if parsed not in known:
                known.append(parsed)
        return self

    def add_dependencies(
        self,
        tool: str,
        version_range: str,
        dependencies: dict[str, str],
        edition: str | None = None,
    ) -> InMemoryToolRepository:
        """Declare ``{dep_tool: range}`` for versions of ``tool`` within ``version_range``."""
        deps = [ToolDependency(name, VersionRange.of(rng)) for name, rng in dependencies.items()]
        self._dependencies.setdefault((tool, edition or tool), []).append(
            (VersionRange.of(version_range), deps)
        )
        return self

    def add_cve(
        self,
        tool: str,
        cve_id: str,
        severity: float,
        *ranges: str,
        edition: str | None = None,
    ) -> InMemoryToolRepository:
        cve = Cve(cve_id, severity, tuple(VersionRange.of(r) for r in ranges))
        self._security.setdefault((tool, edition or tool), []).append(cve)
        return self

    def set_artifact(
        self, tool: str, version: str, filename: str, payload: bytes, edition: str | None = None,
    ) -> InMemoryToolRepository:
        self._artifacts[(tool, edition or tool, version)] = (filename, payload)
        return self

    def reset(self) -> None:
        """Clear the download log."""
        self._download_log.clear()

    # ── ToolRepository ──────────────────────────────────────────

    def get_sorted_versions(self, tool: str, edition: str) -> list[VersionIdentifier]:
        return sort_versions(self._versions.get((tool, edition), []))

    def get_sorted_editions(self, tool: str) -> list[str]:
        return sorted({edition for (name, edition) in self._versions if name == tool})

    def find_dependencies(
        self, tool: str, edition: str, version: VersionIdentifier,
    ) -> list[ToolDependency]:
        for version_range, deps in self._dependencies.get((tool, edition), []):
            if version_range.contains(version):
                return list(deps)
        return []

    def find_security(self, tool: str, edition: str) -> ToolSecurity:
        return ToolSecurity(tuple(self._security.get((tool, edition), [])))

    def download(
        self,
        tool: str,
        edition: str,
        version: VersionIdentifier,
        progress: ProgressCallback | None = None,
    ) -> Path:
        if version not in self._versions.get((tool, edition), []):
            raise DownloadError(f"No artifact for {tool}/{edition}@{version}")
        self._download_log.append((tool, edition, str(version)))

        filename, payload = self._artifacts.get(
            (tool, edition, str(version)),
            (f"{tool}-{version}.tar.gz", _default_archive(tool, str(version))),
        )
        target_dir = self._download_dir or Path(tempfile.mkdtemp(prefix="idetool-mock-"))
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / filename
        target.write_bytes(payload)
        if progress is not None:
            progress(len(payload), len(payload))
        return target


def _default_archive(tool: str, version: str) -> bytes:
    """A tar.gz with ``<tool>-<version>/bin/<tool>`` printing the version."""
    script = f"#!/bin/sh\necho {tool} {version}\n".encode()
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        info = tarfile.TarInfo(f"{tool}-{version}/bin/{tool}")
        info.size = len(script)
        info.mode = 0o755
        tar.addfile(info, io.BytesIO(script))
    return buf.getvalue()
