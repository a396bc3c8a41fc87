"""
L2 Resolver — Dependency planning.

Decides, for every dependency of a tool version, which version of the
dependency to install and whether it can be the project's configured
version or has to be an extra installation beside it.

Policy (no solver):
    - the configured version wins if the dependency range contains it
    - otherwise the highest version within the range is installed as an
      extra installation (shared repository only, never linked)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from idetool.adapters.base import ToolDependency
from idetool.core.services.tool_install.domain.version import LATEST, VersionIdentifier
from idetool.core.services.tool_install.domain.version_range import GenericVersionRange

logger = logging.getLogger(__name__)

VersionResolver = Callable[[GenericVersionRange], VersionIdentifier]


@dataclass(frozen=True)
class DependencyPlan:
    """How one dependency gets installed."""

    dependency: ToolDependency
    version: GenericVersionRange
    configured_version: VersionIdentifier
    extra_installation: bool = False


def plan_dependency(
    dependency: ToolDependency,
    configured: GenericVersionRange | None,
    resolve: VersionResolver,
) -> DependencyPlan:
    """Plan the install of a single dependency.

    Args:
        dependency: Dependency tool and its accepted version range.
        configured: The project's configured version of the dependency
            (``None`` means latest).
        resolve: Resolves a version request of the dependency to one
            concrete version.

    Returns:
        Plan with the version to request: the resolved configured
        version when the range accepts it, the range itself otherwise.
    """
    configured_version = resolve(configured if configured is not None else LATEST)
    if dependency.version_range.contains(configured_version):
        return DependencyPlan(dependency, configured_version, configured_version)

    logger.info(
        "Configured version %s of %s is outside required range %s, using an extra installation",
        configured_version, dependency.tool, dependency.version_range,
    )
    return DependencyPlan(dependency, dependency.version_range, configured_version, extra_installation=True)


def plan_dependencies(
    dependencies: list[ToolDependency],
    configured_lookup: Callable[[str], GenericVersionRange | None],
    resolver_for: Callable[[str], VersionResolver],
) -> list[DependencyPlan]:
    """Plan all dependencies, keeping declaration order."""
    return [
        plan_dependency(dep, configured_lookup(dep.tool), resolver_for(dep.tool))
        for dep in dependencies
    ]
