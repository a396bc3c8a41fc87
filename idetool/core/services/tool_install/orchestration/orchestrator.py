"""
L5 Orchestration — The install engine.

Ties everything together for one project: resolve the requested
version, detect what is installed, run the security check, install
dependencies depth-first, then install, link and post-process the
tool itself.

Per install call::

    resolve version → loop check → already installed? → security check
        → dependencies → download/extract/marker → link → post-install

Every failure propagates as an ``InstallError``; a dependency loop is
only logged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from idetool.adapters.base import ProgressCallback, ToolDependency, ToolRepository
from idetool.adapters.registry import ToolRegistry
from idetool.adapters.shell.command import ProcessContext, ProcessResult
from idetool.adapters.shell.filesystem import FileAccess
from idetool.core.models.installation import InstallationResult
from idetool.core.models.project import ProjectConfig
from idetool.core.models.tool import ToolDefinition
from idetool.core.services.tool_install.domain.edition import (
    ToolEdition,
    ToolEditionAndVersion,
    ToolEditionAndVersionBuilder,
)
from idetool.core.services.tool_install.domain.version import LATEST, VersionIdentifier
from idetool.core.services.tool_install.domain.version_range import (
    GenericVersionRange,
    VersionRange,
    parse_version_request,
)
from idetool.core.services.tool_install.domain.vulnerabilities import ToolVulnerabilities
from idetool.core.services.tool_install.errors import ToolConflictError, UnknownToolError
from idetool.core.services.tool_install.execution.backup import BACKUP_DIR
from idetool.core.services.tool_install.execution.extraction import ArchiveExtractor
from idetool.core.services.tool_install.execution.handlers import (
    InstallLayout,
    ToolHandler,
    create_handler,
)
from idetool.core.services.tool_install.execution.request import InstallRequest
from idetool.core.services.tool_install.orchestration.remediation import (
    BatchChoiceProvider,
    ChoiceProvider,
    check_security,
    list_cves,
)
from idetool.core.services.tool_install.resolver.dependency_collection import plan_dependencies

logger = logging.getLogger(__name__)


def _log_progress(done: int, total: int) -> None:
    if total:
        logger.debug("Download progress: %d%% (%d/%d bytes)", done * 100 // total, done, total)
    else:
        logger.debug("Download progress: %d bytes", done)


class InstallEngine:
    """Installs, detects and uninstalls the tools of one project.

    Args:
        config: The project configuration.
        project_root: Directory holding ide.yml (links go to ``software/``).
        repository: Where versions, metadata and artifacts come from.
        registry: Tool definitions (catalog + project).
        choice_provider: Decides on security remediation; defaults to
            batch mode with ``cve.choice`` from the config.
        files: Filesystem adapter (default backs up into ``updates/backups``).
        extractor: Archive extractor.
        progress: Download progress callback.
    """

    def __init__(
        self,
        config: ProjectConfig,
        project_root: Path,
        repository: ToolRepository,
        registry: ToolRegistry | None = None,
        *,
        choice_provider: ChoiceProvider | None = None,
        files: FileAccess | None = None,
        extractor: ArchiveExtractor | None = None,
        progress: ProgressCallback | None = None,
    ):
        self.config = config
        self.project_root = project_root
        self.repository = repository
        self.registry = registry or ToolRegistry(config.tools)
        self.choice_provider = choice_provider or BatchChoiceProvider(config.cve.choice)
        self.progress = progress or _log_progress
        self.layout = InstallLayout(
            project_root=project_root,
            software_repository=config.software_repository_path(),
            repository=repository,
            files=files or FileAccess(project_root / BACKUP_DIR),
            extractor=extractor or ArchiveExtractor(),
        )

    # ── Lookup ──────────────────────────────────────────────────

    def definition(self, tool: str) -> ToolDefinition:
        """Definition of ``tool``; tools only known to the repository get defaults.

        Raises:
            UnknownToolError: If neither registry nor repository know the tool.
        """
        definition = self.registry.get(tool)
        if definition is not None:
            return definition
        if self.repository.get_sorted_editions(tool):
            return ToolDefinition(name=tool)
        raise UnknownToolError(f"Unknown tool: {tool}")

    def handler(self, tool: str) -> ToolHandler:
        return create_handler(self.definition(tool), self.layout)

    def configured_version(self, tool: str) -> GenericVersionRange:
        """Configured version request of a tool (latest if none)."""
        return parse_version_request(self.definition(tool).version) or LATEST

    def new_request(self, *, silent: bool = False, direct: bool = False) -> InstallRequest:
        return InstallRequest(
            silent=silent,
            direct=direct,
            process_context=ProcessContext(cwd=str(self.project_root)),
        )

    # ── Install ─────────────────────────────────────────────────

    def install(
        self,
        tool: str,
        version: GenericVersionRange | str | None = None,
        *,
        request: InstallRequest | None = None,
        silent: bool = False,
        direct: bool = False,
    ) -> InstallationResult:
        """Install ``tool`` (and its dependencies) into the project.

        Args:
            tool: Tool name.
            version: Version, pattern or range; None uses the configured one.
            request: The request of this call within a request tree.
                Top-level callers leave it out.
            silent: Log "already installed" at DEBUG instead of INFO.
            direct: The user asked for this tool explicitly (enables the
                security check).

        Returns:
            The installation, with ``newly_installed=False`` if nothing
            had to be done.
        """
        if request is None:
            request = self.new_request(silent=silent, direct=direct)
        definition = self.definition(tool)
        handler = create_handler(definition, self.layout)

        if isinstance(version, str):
            version = parse_version_request(version)
        if version is None:
            version = self.configured_version(tool)
        edition = ToolEdition(tool, definition.configured_edition)

        # 1. Resolve
        resolved = handler.resolve_version(edition.edition, version)
        request.requested = (
            ToolEditionAndVersionBuilder()
            .with_edition(edition)
            .with_version(version)
            .with_resolved_version(resolved)
            .build()
        )

        # 2. Loop
        if request.is_loop():
            logger.warning("Dependency loop detected, not installing again: %s", request.chain_text())
            return handler.installation_for(request)

        # 3. Already installed
        installed = handler.resolve_installed_version(request)
        if installed is not None:
            request.installed = installed
        if request.is_already_installed(self.config.skip_updates):
            level = logging.DEBUG if request.silent else logging.INFO
            logger.log(level, "Version %s of tool %s is already installed", installed.resolved_version, edition)
            result = handler.installation_for(request, installed=installed)
            handler.register(request, result)
            return result

        # 4. Security check
        if request.direct and not request.cve_check_done:
            request.cve_check_done = True
            chosen = check_security(
                self.repository,
                edition,
                resolved,
                self.choice_provider,
                min_severity=self.config.cve.min_severity,
                allowed=version if version.is_pattern() else None,
            )
            if chosen != resolved:
                logger.info("Installing %s@%s instead of %s for security reasons", edition, chosen, resolved)
                return self.install(tool, chosen, request=request.retry())

        # 5. Dependencies
        self._install_dependencies(request, definition, resolved)

        # 6-9. Install, link, post-install
        if installed is not None:
            logger.info("Updating %s from %s to %s", edition, installed.resolved_version, resolved)
        result = handler.perform_install(request, self.progress)
        logger.info(
            "Successfully installed %s in version %s%s",
            edition, resolved, " (extra installation)" if request.extra_installation else "",
        )
        return result

    def _install_dependencies(
        self, request: InstallRequest, definition: ToolDefinition, version: VersionIdentifier,
    ) -> None:
        requested = request.requested
        assert requested is not None
        dependencies = self.repository.find_dependencies(definition.name, requested.edition.edition, version)
        if definition.parent_tool and all(d.tool != definition.parent_tool for d in dependencies):
            dependencies = [ToolDependency(definition.parent_tool, VersionRange()), *dependencies]
        if not dependencies:
            return
        logger.debug(
            "%s@%s depends on %s", requested.edition, version, ", ".join(str(d) for d in dependencies),
        )

        def resolver_for(dep_tool: str):
            dep_handler = self.handler(dep_tool)
            dep_edition = self.definition(dep_tool).configured_edition
            return lambda request_version: dep_handler.resolve_version(dep_edition, request_version)

        plans = plan_dependencies(dependencies, self.configured_version, resolver_for)
        for plan in plans:
            dep_tool = plan.dependency.tool
            if plan.extra_installation and not self.definition(dep_tool).supports_extra_installation:
                raise ToolConflictError(
                    f"{requested.edition}@{version} requires {dep_tool} in {plan.dependency.version_range} "
                    f"but version {plan.configured_version} is configured and {dep_tool} "
                    f"cannot be installed in a second version"
                )
            child = request.child(extra_installation=plan.extra_installation)
            self.install(dep_tool, plan.version, request=child)

    # ── Uninstall ───────────────────────────────────────────────

    def uninstall(self, tool: str, force: bool = False) -> bool:
        """Remove ``tool`` from the project.

        Args:
            tool: Tool name.
            force: Also delete the shared installation the project links to.

        Returns:
            True if something was uninstalled.
        """
        definition = self.definition(tool)
        if not definition.can_be_uninstalled:
            parent = definition.parent_tool or "its parent tool"
            logger.warning(
                "%s cannot be uninstalled separately. To uninstall it, uninstall its parent tool via: "
                "idetool uninstall %s",
                tool, parent,
            )
            return False
        return self.handler(tool).perform_uninstall(self.new_request(), force=force)

    # ── Queries ─────────────────────────────────────────────────

    def list_versions(self, tool: str, edition: str | None = None) -> list[VersionIdentifier]:
        definition = self.definition(tool)
        return self.repository.get_sorted_versions(tool, edition or definition.configured_edition)

    def list_editions(self, tool: str) -> list[str]:
        self.definition(tool)
        return self.repository.get_sorted_editions(tool)

    def installed(self, tool: str) -> ToolEditionAndVersion | None:
        """Installed edition/version of ``tool`` in this project."""
        return self.handler(tool).resolve_installed_version(self.new_request())

    def cves(
        self, tool: str, version: GenericVersionRange | str | None = None,
    ) -> tuple[ToolEdition, VersionIdentifier, ToolVulnerabilities]:
        """CVEs of a version (default: installed, else configured)."""
        definition = self.definition(tool)
        handler = create_handler(definition, self.layout)
        edition = ToolEdition(tool, definition.configured_edition)
        if isinstance(version, str):
            version = parse_version_request(version)
        if version is None:
            current = self.installed(tool)
            if current is not None and current.resolved_version is not None:
                edition, resolved = current.edition, current.resolved_version
                return edition, resolved, list_cves(
                    self.repository, edition, resolved, self.config.cve.min_severity,
                )
            version = self.configured_version(tool)
        resolved = handler.resolve_version(edition.edition, version)
        return edition, resolved, list_cves(self.repository, edition, resolved, self.config.cve.min_severity)

    # ── Run ─────────────────────────────────────────────────────

    def run_tool(self, tool: str, args: Sequence[str] = (), *, capture: bool = False) -> ProcessResult:
        """Ensure ``tool`` is installed, then run it with ``args``."""
        request = self.new_request(silent=True)
        self.install(tool, request=request)
        executable = self.definition(tool).executable
        return request.process_context.run(executable, *args, capture=capture)
