"""
L4 Execution — Tool handlers.

One handler per way of installing a tool, behind a single interface:

    LocalToolHandler            download + extract into the shared software
                                repository, then link into the project
    PackageManagerToolHandler   delegate to a package manager (npm, pip, ...)
                                through shell commands

The engine picks the handler from ``ToolDefinition.kind`` and never
touches the filesystem or runs commands for a tool itself.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from idetool.adapters.base import ProgressCallback, ToolRepository
from idetool.adapters.shell.filesystem import FileAccess
from idetool.core.models.installation import InstallationResult
from idetool.core.models.tool import ToolDefinition
from idetool.core.persistence.version_marker import find_marker
from idetool.core.services.tool_install.detection.tool_version import (
    find_bin_dir,
    find_link_dir,
    get_installed,
    parse_version_output,
)
from idetool.core.services.tool_install.domain.edition import ToolEdition, ToolEditionAndVersion
from idetool.core.services.tool_install.domain.version import VersionIdentifier
from idetool.core.services.tool_install.domain.version_range import GenericVersionRange
from idetool.core.services.tool_install.errors import InstallError, ToolConflictError
from idetool.core.services.tool_install.execution.extraction import ArchiveExtractor
from idetool.core.services.tool_install.execution.request import InstallRequest

logger = logging.getLogger(__name__)

SOFTWARE_DIR = "software"


@dataclass
class InstallLayout:
    """Where things live on disk for one project."""

    project_root: Path
    software_repository: Path
    repository: ToolRepository
    files: FileAccess
    extractor: ArchiveExtractor

    @property
    def software_path(self) -> Path:
        return self.project_root / SOFTWARE_DIR

    def link_path(self, tool: str) -> Path:
        """Project-local link of a tool: ``<project>/software/<tool>``."""
        return self.software_path / tool

    def install_path(self, tool: str, edition: str, version: VersionIdentifier) -> Path:
        """Shared installation: ``<software-repo>/<repo-id>/<tool>/<edition>/<version>``."""
        return self.software_repository / self.repository.id / tool / edition / str(version)


def home_variable(tool: str) -> str:
    """``<TOOL>_HOME`` environment variable name."""
    return f"{re.sub(r'[^A-Za-z0-9]', '_', tool).upper()}_HOME"


class ToolHandler(ABC):
    """How one tool is installed, detected and uninstalled."""

    def __init__(self, definition: ToolDefinition, layout: InstallLayout):
        self.definition = definition
        self.layout = layout

    @property
    def tool(self) -> str:
        return self.definition.name

    @property
    def supports_extra_installation(self) -> bool:
        return self.definition.supports_extra_installation

    def known_editions(self) -> list[str]:
        editions = list(self.layout.repository.get_sorted_editions(self.tool))
        for edition in self.definition.known_editions():
            if edition not in editions:
                editions.append(edition)
        return editions

    def resolve_version(self, edition: str, request: GenericVersionRange | None) -> VersionIdentifier:
        return self.layout.repository.resolve_version(self.tool, edition, request)

    @abstractmethod
    def resolve_installed_version(self, request: InstallRequest) -> ToolEditionAndVersion | None:
        """Currently installed edition/version relevant for ``request``."""

    @abstractmethod
    def installation_for(
        self,
        request: InstallRequest,
        newly_installed: bool = False,
        installed: ToolEditionAndVersion | None = None,
    ) -> InstallationResult:
        """Result describing an installation.

        Describes ``installed`` if given, the requested version otherwise.
        """

    @abstractmethod
    def perform_install(
        self, request: InstallRequest, progress: ProgressCallback | None = None,
    ) -> InstallationResult:
        """Physically install the requested version."""

    @abstractmethod
    def perform_uninstall(self, request: InstallRequest, force: bool = False) -> bool:
        """Remove the tool from the project. Returns False if it was not installed."""

    def register(self, request: InstallRequest, result: InstallationResult) -> None:
        """Make the installation visible to commands of the request tree."""
        request.process_context.with_path_entry(str(result.bin_dir))
        request.process_context.with_env_var(home_variable(self.tool), str(result.link_dir))

    def post_install(self, request: InstallRequest, result: InstallationResult) -> None:
        for cmd in self.definition.post_install:
            if not cmd:
                continue
            logger.info("Running post-install step for %s: %s", self.tool, " ".join(cmd))
            request.process_context.run(cmd[0], *cmd[1:]).fail_on_error()


class LocalToolHandler(ToolHandler):
    """Tools unpacked into the shared software repository and linked into the project."""

    def resolve_installed_version(self, request: InstallRequest) -> ToolEditionAndVersion | None:
        requested = request.requested
        if request.extra_installation and requested is not None and requested.resolved_version is not None:
            root = self._root_for(requested)
            version = self.layout.files.read_marker(root) if root.is_dir() else None
            if version is None:
                return None
            return ToolEditionAndVersion(requested.edition, version)
        return get_installed(
            self.layout.link_path(self.tool),
            self.tool,
            self.known_editions(),
            self.definition.configured_edition,
        )

    def _root_for(self, requested: ToolEditionAndVersion) -> Path:
        assert requested.resolved_version is not None
        return self.layout.install_path(self.tool, requested.edition.edition, requested.resolved_version)

    def installation_for(
        self,
        request: InstallRequest,
        newly_installed: bool = False,
        installed: ToolEditionAndVersion | None = None,
    ) -> InstallationResult:
        requested = installed or request.requested
        assert requested is not None and requested.resolved_version is not None
        root = self._root_for(requested)
        link_dir = find_link_dir(root, self.tool)
        return InstallationResult(
            tool=self.tool,
            edition=requested.edition.edition,
            resolved_version=requested.resolved_version,
            root_dir=root,
            link_dir=link_dir,
            bin_dir=find_bin_dir(link_dir),
            newly_installed=newly_installed,
            extra_installation=request.extra_installation,
        )

    def perform_install(
        self, request: InstallRequest, progress: ProgressCallback | None = None,
    ) -> InstallationResult:
        requested = request.requested
        assert requested is not None and requested.resolved_version is not None
        files = self.layout.files
        edition = requested.edition.edition
        version = requested.resolved_version
        root = self._root_for(requested)

        if files.has_marker(root):
            logger.debug("%s/%s@%s already present in software repository at %s", self.tool, edition, version, root)
        elif files.exists(root) and self.definition.self_managed:
            logger.warning(
                "Installation of %s at %s has no version marker but is the running installation, leaving it untouched",
                self.tool, root,
            )
        else:
            if files.exists(root):
                logger.warning("Deleting corrupted installation at %s", root)
                files.delete(root)
            artifact = self.layout.repository.download(self.tool, edition, version, progress)
            self.layout.extractor.extract(artifact, root, extract=self.definition.extract)
            files.write_marker(root, version)
            logger.debug("Installed %s/%s@%s into %s", self.tool, edition, version, root)

        result = self.installation_for(request, newly_installed=True)
        marker = find_marker(root)
        if result.link_dir != root and marker is not None and not files.has_marker(result.link_dir):
            # the project link points into the bundle, detection reads the marker there
            files.copy_file(marker, result.link_dir / marker.name)
        if not request.extra_installation:
            link = self.layout.link_path(self.tool)
            files.symlink(result.link_dir, link)
            request.target_link = link
        self.register(request, result)
        self.post_install(request, result)
        return result

    def perform_uninstall(self, request: InstallRequest, force: bool = False) -> bool:
        files = self.layout.files
        link = self.layout.link_path(self.tool)
        if not files.exists(link):
            logger.info("%s is not installed in this project", self.tool)
            return False
        if force and files.is_link(link):
            installed = self.resolve_installed_version(request)
            target = self._root_for(installed) if installed is not None else files.real_path(link)
            if target.exists():
                logger.warning(
                    "Deleting %s from the software repository at %s (forced uninstall); "
                    "other projects linking this version will break",
                    self.tool, target,
                )
                files.delete(target)
        files.delete(link)
        logger.info("Successfully uninstalled %s", self.tool)
        return True


class PackageManagerToolHandler(ToolHandler):
    """Tools installed by running a package manager (``npm install -g <pkg>@<version>``)."""

    def __init__(self, definition: ToolDefinition, layout: InstallLayout):
        super().__init__(definition, layout)
        if definition.package_manager is None:
            raise InstallError(f"Tool {definition.name} has kind package_manager but no package_manager settings")
        self.spec = definition.package_manager

    @property
    def package(self) -> str:
        return self.spec.package or self.tool

    @property
    def _cache_key(self) -> str:
        return f"installed-version:{self.tool}"

    def _args(self, template: list[str], version: VersionIdentifier | None = None) -> list[str]:
        return [
            arg.replace("{package}", self.package).replace("{version}", str(version or ""))
            for arg in template
        ]

    def resolve_version(self, edition: str, request: GenericVersionRange | None) -> VersionIdentifier:
        if isinstance(request, VersionIdentifier) and not request.is_pattern():
            return request
        return super().resolve_version(edition, request)

    def _query_installed(self, request: InstallRequest) -> VersionIdentifier | None:
        result = request.process_context.run(self.spec.executable, *self._args(self.spec.query))
        if not result.ok:
            logger.debug("%s not installed via %s (exit %d)", self.package, self.spec.executable, result.exit_code)
            return None
        pattern = self.spec.version_pattern.replace("{package}", re.escape(self.package))
        return parse_version_output(result.stdout, pattern)

    def installed_version(self, request: InstallRequest) -> VersionIdentifier | None:
        """Installed version, queried once per request tree."""
        return request.session_cache.value(self._cache_key, lambda: self._query_installed(request)).get()

    def resolve_installed_version(self, request: InstallRequest) -> ToolEditionAndVersion | None:
        version = self.installed_version(request)
        if version is None:
            return None
        return ToolEditionAndVersion(ToolEdition(self.tool, self.definition.configured_edition), version)

    def installation_for(
        self,
        request: InstallRequest,
        newly_installed: bool = False,
        installed: ToolEditionAndVersion | None = None,
    ) -> InstallationResult:
        requested = installed or request.requested
        assert requested is not None and requested.resolved_version is not None
        home = self.layout.link_path(self.definition.parent_tool or self.tool)
        bin_dir = home / "bin"
        return InstallationResult(
            tool=self.tool,
            edition=requested.edition.edition,
            resolved_version=requested.resolved_version,
            root_dir=home,
            link_dir=home,
            bin_dir=bin_dir if bin_dir.is_dir() else home,
            newly_installed=newly_installed,
        )

    def register(self, request: InstallRequest, result: InstallationResult) -> None:
        request.process_context.with_path_entry(str(result.bin_dir))

    def perform_install(
        self, request: InstallRequest, progress: ProgressCallback | None = None,
    ) -> InstallationResult:
        if request.extra_installation:
            raise ToolConflictError(
                f"{self.tool} is managed by {self.spec.executable} and cannot be installed in a second version"
            )
        requested = request.requested
        assert requested is not None and requested.resolved_version is not None
        args = self._args(self.spec.install, requested.resolved_version)
        try:
            request.process_context.run(self.spec.executable, *args).fail_on_error()
        finally:
            request.session_cache.invalidate(self._cache_key)
        result = self.installation_for(request, newly_installed=True)
        self.register(request, result)
        self.post_install(request, result)
        return result

    def perform_uninstall(self, request: InstallRequest, force: bool = False) -> bool:
        if self.installed_version(request) is None:
            logger.info("%s is not installed", self.tool)
            return False
        try:
            request.process_context.run(self.spec.executable, *self._args(self.spec.uninstall)).fail_on_error()
        finally:
            request.session_cache.invalidate(self._cache_key)
        logger.info("Successfully uninstalled %s", self.tool)
        return True


def create_handler(definition: ToolDefinition, layout: InstallLayout) -> ToolHandler:
    """Handler for a tool definition, selected by ``kind``."""
    if definition.kind == "package_manager":
        return PackageManagerToolHandler(definition, layout)
    return LocalToolHandler(definition, layout)
