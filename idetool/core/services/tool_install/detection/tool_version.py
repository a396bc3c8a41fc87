"""
L3 Detection — Installed tool version and edition.

Read-only: reads version markers through project links, locates the
link directory inside unpacked artifacts and parses package-manager
output. Never installs or deletes anything.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from idetool.core.persistence.version_marker import read_version_marker
from idetool.core.services.tool_install.domain.edition import ToolEdition, ToolEditionAndVersion
from idetool.core.services.tool_install.domain.version import VersionIdentifier

logger = logging.getLogger(__name__)


def infer_edition(
    real_path: Path,
    tool: str,
    known_editions: list[str],
    configured_edition: str,
) -> str:
    """Edition of an installation from its shared-repository path.

    Installations live in ``<repo>/<repo-id>/<tool>/<edition>/<version>``,
    so the edition is the name of the version directory's parent. The
    path may point below the version directory (see :func:`find_link_dir`).
    If no known edition is found the configured edition is used.
    """
    for path in (real_path, *real_path.parents):
        # link dirs inside app bundles sit below the version directory
        if path.parent.name in known_editions and path.parent.parent.name == tool:
            return path.parent.name
    candidate = real_path.parent.name
    if candidate in known_editions:
        return candidate
    logger.warning(
        "Cannot determine edition of %s from %s (known: %s), assuming configured edition %s",
        tool, real_path, ", ".join(known_editions) or "none", configured_edition,
    )
    return configured_edition


def get_installed_version(link: Path) -> VersionIdentifier | None:
    """Version marker read through the project link (None if not installed)."""
    if not link.exists():
        return None
    return read_version_marker(link)


def get_installed(
    link: Path,
    tool: str,
    known_editions: list[str],
    configured_edition: str,
) -> ToolEditionAndVersion | None:
    """Installed edition and version behind a project link."""
    version = get_installed_version(link)
    if version is None:
        return None
    edition = infer_edition(link.resolve(), tool, known_editions, configured_edition)
    return ToolEditionAndVersion(ToolEdition(tool, edition), version)


def parse_version_output(output: str, pattern: str) -> VersionIdentifier | None:
    """Extract a version from command output with a one-group regex."""
    match = re.search(pattern, output, re.MULTILINE)
    if not match:
        return None
    try:
        return VersionIdentifier.of(match.group(1))
    except ValueError:
        logger.debug("Unparseable version %r in output", match.group(1))
        return None


# ── Installation layout ──────────────────────────────────────────────

_NON_LINK_FOLDERS = {"Contents", "Resources", "bin"}


def _find_in_contents(contents: Path, tool: str) -> Path | None:
    app_dir = contents / "Resources" / "app"
    if (app_dir / "bin").is_dir():
        return app_dir
    for child in sorted(contents.iterdir()):
        if not child.is_dir() or child.name in _NON_LINK_FOLDERS or child.name.startswith("_"):
            continue
        if (child / "bin").is_dir() or (child / tool).exists():
            return child
    return None


def find_link_dir(root: Path, tool: str) -> Path:
    """Directory the project link should point to.

    Usually the installation root. Artifacts packaged as app bundles
    (``Tool.app/Contents/...``) keep the actual tool deeper down; for
    those the folder inside ``Contents`` holding ``bin`` or the tool's
    executable is returned.
    """
    if not root.is_dir() or (root / "bin").is_dir():
        return root
    contents = root / "Contents"
    if not contents.is_dir():
        bundle = next((p for p in sorted(root.glob("*.app")) if (p / "Contents").is_dir()), None)
        if bundle is None:
            return root
        contents = bundle / "Contents"
    link_dir = _find_in_contents(contents, tool)
    if link_dir is None:
        logger.debug("No link directory for %s found in %s, using %s", tool, contents, root)
        return root
    return link_dir


def find_bin_dir(link_dir: Path) -> Path:
    """``bin`` folder below the link directory, or the link directory itself."""
    bin_dir = link_dir / "bin"
    return bin_dir if bin_dir.is_dir() else link_dir
