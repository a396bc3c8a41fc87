"""
Version marker persistence — the file that proves an installation is complete.

Every installed tool directory holds a marker file whose content is
exactly the installed version. It is written LAST, after download and
extraction succeeded, so a directory without marker is an interrupted
(corrupted) installation. Writes are atomic (temp file, then rename).
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from idetool.core.services.tool_install.domain.version import VersionIdentifier

logger = logging.getLogger(__name__)

MARKER_FILE = ".ide.software.version"
LEGACY_MARKER_FILE = ".devon.software.version"


def marker_path(directory: Path) -> Path:
    """Path of the marker file inside an installation directory."""
    return directory / MARKER_FILE


def find_marker(directory: Path) -> Path | None:
    """The existing marker file (current name first, then legacy), or None."""
    for name in (MARKER_FILE, LEGACY_MARKER_FILE):
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def read_version_marker(directory: Path) -> VersionIdentifier | None:
    """Read the installed version of ``directory``.

    Returns:
        The version, or None if there is no (readable) marker.
    """
    path = find_marker(directory)
    if path is None:
        return None
    try:
        text = path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.warning("Cannot read version marker %s: %s", path, e)
        return None
    if not text:
        logger.warning("Empty version marker %s", path)
        return None
    try:
        return VersionIdentifier.of(text)
    except ValueError as e:
        logger.warning("Invalid version in marker %s: %s", path, e)
        return None


def write_version_marker(directory: Path, version: VersionIdentifier) -> Path:
    """Write the marker file atomically.

    Args:
        directory: Installation directory (must exist).
        version: The concrete installed version.

    Returns:
        Path of the written marker.
    """
    path = marker_path(directory)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".marker_", suffix=".tmp")
    os.close(fd)
    tmp = Path(tmp_path)
    try:
        tmp.write_text(str(version), encoding="utf-8")
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("Version marker %s written (%s)", path, version)
    return path
