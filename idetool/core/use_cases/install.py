"""
Install use cases — tool lifecycle operations for the CLI.

Each use case loads the project configuration, builds the install
engine and turns failures into a result object with ``error`` set,
so the CLI never has to catch engine exceptions itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from idetool.adapters.registry import CatalogError, ToolRegistry, load_tool_catalog
from idetool.adapters.repository.metadata import MetadataToolRepository
from idetool.core.config.loader import ConfigError, find_project_file, load_project
from idetool.core.models.installation import InstallationResult
from idetool.core.services.tool_install.errors import InstallError
from idetool.core.services.tool_install.orchestration.orchestrator import InstallEngine
from idetool.core.services.tool_install.orchestration.remediation import (
    BatchChoiceProvider,
    InteractiveChoiceProvider,
)

logger = logging.getLogger(__name__)

_EXPECTED_ERRORS = (ConfigError, CatalogError, InstallError, ValueError)


def build_engine(config_path: Path | None = None, *, interactive: bool = False) -> InstallEngine:
    """Create the engine for the project owning ``config_path``.

    Raises:
        ConfigError: If ide.yml is missing or invalid.
        CatalogError: If the configured tool catalog is invalid.
    """
    if config_path is None:
        config_path = find_project_file()
    config = load_project(config_path)
    root = config_path.parent.resolve() if config_path else Path.cwd()

    registry = ToolRegistry()
    if config.catalog:
        catalog_path = (root / config.catalog).resolve()
        for definition in load_tool_catalog(catalog_path).values():
            registry.register(definition)
    for definition in config.tools.values():
        registry.register(definition)

    repository = MetadataToolRepository(
        config.urls_path(), config.downloads_path(), repository_id=config.repository_id,
    )
    provider = InteractiveChoiceProvider() if interactive else BatchChoiceProvider(config.cve.choice)
    return InstallEngine(config, root, repository, registry, choice_provider=provider)


# ── Install / uninstall ─────────────────────────────────────────


@dataclass
class InstallToolResult:
    """Outcome of ``idetool install``."""

    tool: str
    installation: InstallationResult | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"tool": self.tool, "error": self.error}
        assert self.installation is not None
        return self.installation.to_dict()


def install_tool(
    tool: str,
    version: str | None = None,
    *,
    config_path: Path | None = None,
    interactive: bool = False,
) -> InstallToolResult:
    """Install a tool requested explicitly by the user."""
    result = InstallToolResult(tool=tool)
    try:
        engine = build_engine(config_path, interactive=interactive)
        result.installation = engine.install(tool, version, direct=True)
    except _EXPECTED_ERRORS as e:
        logger.debug("install %s failed", tool, exc_info=True)
        result.error = str(e)
    return result


@dataclass
class UninstallToolResult:
    """Outcome of ``idetool uninstall``."""

    tool: str
    uninstalled: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        data: dict = {"tool": self.tool, "uninstalled": self.uninstalled}
        if self.error:
            data["error"] = self.error
        return data


def uninstall_tool(
    tool: str, *, force: bool = False, config_path: Path | None = None,
) -> UninstallToolResult:
    result = UninstallToolResult(tool=tool)
    try:
        result.uninstalled = build_engine(config_path).uninstall(tool, force=force)
    except _EXPECTED_ERRORS as e:
        result.error = str(e)
    return result


# ── Queries ─────────────────────────────────────────────────────


@dataclass
class ToolListingResult:
    """Versions or editions of a tool."""

    tool: str
    items: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"tool": self.tool, "error": self.error}
        return {"tool": self.tool, "items": self.items}


def list_versions(
    tool: str, edition: str | None = None, *, config_path: Path | None = None,
) -> ToolListingResult:
    result = ToolListingResult(tool=tool)
    try:
        result.items = [str(v) for v in build_engine(config_path).list_versions(tool, edition)]
    except _EXPECTED_ERRORS as e:
        result.error = str(e)
    return result


def list_editions(tool: str, *, config_path: Path | None = None) -> ToolListingResult:
    result = ToolListingResult(tool=tool)
    try:
        result.items = build_engine(config_path).list_editions(tool)
    except _EXPECTED_ERRORS as e:
        result.error = str(e)
    return result


@dataclass
class CveReport:
    """CVEs of one tool version."""

    tool: str
    edition: str = ""
    version: str = ""
    cves: list[dict] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"tool": self.tool, "error": self.error}
        return {"tool": self.tool, "edition": self.edition, "version": self.version, "cves": self.cves}


def report_cves(
    tool: str, version: str | None = None, *, config_path: Path | None = None,
) -> CveReport:
    report = CveReport(tool=tool)
    try:
        edition, resolved, vulnerabilities = build_engine(config_path).cves(tool, version)
    except _EXPECTED_ERRORS as e:
        report.error = str(e)
        return report
    report.edition = edition.edition
    report.version = str(resolved)
    report.cves = [
        {
            "id": cve.id,
            "severity": cve.severity,
            "versions": [str(r) for r in cve.versions],
            "url": cve.url,
        }
        for cve in vulnerabilities.issues
    ]
    return report


# ── Run ─────────────────────────────────────────────────────────


@dataclass
class RunToolResult:
    """Outcome of ``idetool run``."""

    tool: str
    exit_code: int = 0
    error: str | None = None


def run_tool(
    tool: str, args: Sequence[str] = (), *, config_path: Path | None = None,
) -> RunToolResult:
    result = RunToolResult(tool=tool)
    try:
        process = build_engine(config_path).run_tool(tool, args)
    except _EXPECTED_ERRORS as e:
        result.error = str(e)
        result.exit_code = 1
        return result
    result.exit_code = process.exit_code
    return result
