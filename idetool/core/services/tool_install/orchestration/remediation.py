"""
L5 Orchestration — Security check before installing.

If the version about to be installed has CVEs at or above the
configured minimum severity, the user picks between staying on it
and safer alternatives. Without a terminal (batch mode) the current
version is kept unless ``cve.choice`` in ide.yml says otherwise.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import click

from idetool.adapters.base import ToolRepository
from idetool.core.services.tool_install.domain.edition import ToolEdition
from idetool.core.services.tool_install.domain.remediation import (
    OPTION_CURRENT,
    OPTIONS,
    ToolVersionChoice,
    build_version_choices,
)
from idetool.core.services.tool_install.domain.version import VersionIdentifier
from idetool.core.services.tool_install.domain.version_range import GenericVersionRange
from idetool.core.services.tool_install.domain.vulnerabilities import ToolVulnerabilities

logger = logging.getLogger(__name__)


class ChoiceProvider(ABC):
    """Asks which remediation option to take."""

    @abstractmethod
    def choose(self, edition: ToolEdition, choices: list[ToolVersionChoice]) -> ToolVersionChoice:
        """Pick one of ``choices`` (the first is always ``current``)."""


class BatchChoiceProvider(ChoiceProvider):
    """Non-interactive: a preconfigured option, else stay on the current version."""

    def __init__(self, option: str | None = None):
        if option is not None and option not in OPTIONS:
            raise ValueError(f"Unknown CVE option '{option}'. Valid: {', '.join(OPTIONS)}")
        self.option = option or OPTION_CURRENT

    def choose(self, edition: ToolEdition, choices: list[ToolVersionChoice]) -> ToolVersionChoice:
        for choice in choices:
            if choice.option == self.option:
                logger.info("Security option '%s' selected for %s: %s", self.option, edition, choice)
                return choice
        current = choices[0]
        logger.warning(
            "Option '%s' not available for %s, staying on current version %s despite %d CVE(s)",
            self.option, edition, current.version, len(current.vulnerabilities.issues),
        )
        return current


class InteractiveChoiceProvider(ChoiceProvider):
    """Prompt on the terminal."""

    def choose(self, edition: ToolEdition, choices: list[ToolVersionChoice]) -> ToolVersionChoice:
        current = choices[0]
        click.secho(f"⚠️  {current.vulnerabilities.describe(f'{edition}@{current.version}')}", fg="yellow")
        click.echo("   Options:")
        for choice in choices:
            click.echo(f"     • {choice}")
        selected = click.prompt(
            "   Which version do you want to install?",
            type=click.Choice([c.option for c in choices]),
            default=OPTION_CURRENT,
        )
        return next(c for c in choices if c.option == selected)


def check_security(
    repository: ToolRepository,
    edition: ToolEdition,
    version: VersionIdentifier,
    provider: ChoiceProvider,
    *,
    min_severity: float = 0.0,
    allowed: GenericVersionRange | None = None,
) -> VersionIdentifier:
    """Version to install after the security check.

    Args:
        repository: Source of versions and security metadata.
        edition: Tool edition being installed.
        version: The resolved version about to be installed.
        provider: Who decides when there are CVEs.
        min_severity: CVEs below this severity are ignored.
        allowed: Restricts alternatives (the requested pattern or range).

    Returns:
        ``version`` itself when it is safe or the user stays on it,
        otherwise the chosen alternative.
    """
    security = repository.find_security(edition.tool, edition.edition).with_min_severity(min_severity)
    if not security.is_vulnerable(version):
        return version

    candidates = repository.get_sorted_versions(edition.tool, edition.edition)
    if allowed is not None:
        candidates = [v for v in candidates if allowed.contains(v)]
    choices = build_version_choices(version, candidates, security)
    if len(choices) == 1:
        logger.warning(
            "%s\nNo alternative version available, installing anyway.",
            choices[0].vulnerabilities.describe(f"{edition}@{version}"),
        )
        return version
    return provider.choose(edition, choices).version


def list_cves(
    repository: ToolRepository,
    edition: ToolEdition,
    version: VersionIdentifier,
    min_severity: float = 0.0,
) -> ToolVulnerabilities:
    """CVEs affecting one version (for reporting)."""
    security = repository.find_security(edition.tool, edition.edition).with_min_severity(min_severity)
    return ToolVulnerabilities.of(security.find_cves(version))
