"""
Shared test fixtures and configuration.
"""

import io
import logging
import tarfile
import textwrap
from pathlib import Path

import pytest

from idetool.adapters.mock import InMemoryToolRepository
from idetool.core.models.project import ProjectConfig
from idetool.core.services.tool_install.orchestration.orchestrator import InstallEngine


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """The CLI reconfigures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Return an empty project directory."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def software_repo(tmp_path: Path) -> Path:
    """Return the shared software repository directory."""
    return tmp_path / "software-repo"


@pytest.fixture
def repo(tmp_path: Path) -> InMemoryToolRepository:
    """In-memory repository with java, mvn and node."""
    return (
        InMemoryToolRepository(download_dir=tmp_path / "downloads")
        .add_versions("java", "17.0.10_7", "17.0.2_8", "11.0.22_7", "21.0.2_13")
        .add_versions("java", "17.0.9", "21.0.1", edition="corretto")
        .add_versions("mvn", "3.9.6", "3.8.8")
        .add_versions("node", "20.11.0", "18.19.0")
    )


@pytest.fixture
def make_engine(project_dir: Path, software_repo: Path, repo: InMemoryToolRepository):
    """Factory for an engine over ``repo`` with the given project settings."""

    def _make(tools: dict | None = None, repository=None, **settings) -> InstallEngine:
        config = ProjectConfig.model_validate({
            "software_repository": str(software_repo),
            "tools": tools or {},
            **settings,
        })
        return InstallEngine(config, project_dir, repository or repo)

    return _make


# ── Project on disk ──────────────────────────────────────────────────


def _write_java_tarball(path: Path, version: str) -> Path:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        content = b"#!/bin/sh\necho java\n"
        info = tarfile.TarInfo(f"jdk-{version}/bin/java")
        info.size = len(content)
        info.mode = 0o755
        tar.addfile(info, io.BytesIO(content))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(buf.getvalue())
    return path


@pytest.fixture
def ide_yml(tmp_path: Path, project_dir: Path, software_repo: Path) -> Path:
    """An ide.yml whose metadata tree serves java 17.0.2 and 21.0.1 from file:// URLs."""
    urls = tmp_path / "urls"
    for version in ("17.0.2", "21.0.1"):
        archive = _write_java_tarball(tmp_path / "mirror" / f"jdk-{version}.tar.gz", version)
        version_dir = urls / "java" / "java" / version
        version_dir.mkdir(parents=True)
        (version_dir / "urls").write_text(archive.as_uri() + "\n")

    path = project_dir / "ide.yml"
    path.write_text(textwrap.dedent(f"""\
        name: demo
        software_repository: {software_repo}
        urls: {urls}
        downloads: {tmp_path / "downloads"}
        tools:
          java:
            version: "17*"
    """))
    return path
