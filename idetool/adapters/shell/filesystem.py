"""
Filesystem adapter — directory, link and marker operations.

All filesystem side effects of the install engine go through
``FileAccess`` so they are logged in one place and can be replaced in
tests.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from idetool.core.persistence.version_marker import (
    find_marker,
    read_version_marker,
    write_version_marker,
)
from idetool.core.services.tool_install.domain.version import VersionIdentifier
from idetool.core.services.tool_install.execution.backup import backup_path

logger = logging.getLogger(__name__)


class FileAccess:
    """File and directory operations used by the install engine.

    Args:
        backup_root: Where :meth:`backup` moves replaced files
            (``<project>/updates/backups``).
    """

    def __init__(self, backup_root: Path):
        self.backup_root = backup_root

    def mkdirs(self, path: Path) -> Path:
        path.mkdir(parents=True, exist_ok=True)
        return path

    def exists(self, path: Path) -> bool:
        """True for existing files, directories and (even dangling) links."""
        return path.exists() or path.is_symlink()

    def is_link(self, path: Path) -> bool:
        return path.is_symlink()

    def real_path(self, path: Path) -> Path:
        return path.resolve()

    def backup(self, path: Path) -> Path | None:
        """Move ``path`` aside (links are simply removed)."""
        return backup_path(path, self.backup_root)

    def symlink(self, source: Path, link: Path, relative: bool = True) -> Path:
        """Create ``link`` pointing to ``source``.

        Whatever exists at ``link`` is backed up first.
        """
        if self.exists(link):
            self.backup(link)
        self.mkdirs(link.parent)
        target = Path(os.path.relpath(source, link.parent)) if relative else source
        link.symlink_to(target, target_is_directory=source.is_dir())
        logger.debug("Linked %s → %s", link, target)
        return link

    def delete(self, path: Path) -> None:
        """Delete a file, directory tree or link. Links are never followed."""
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)
        else:
            return
        logger.debug("Deleted %s", path)

    def move_contents(self, source: Path, target: Path) -> None:
        """Move every child of ``source`` into ``target``."""
        target.mkdir(parents=True, exist_ok=True)
        for child in source.iterdir():
            shutil.move(str(child), str(target / child.name))

    def copy_file(self, source: Path, target: Path) -> Path:
        self.mkdirs(target.parent)
        shutil.copy2(source, target)
        return target

    def has_marker(self, directory: Path) -> bool:
        return find_marker(directory) is not None

    def read_marker(self, directory: Path) -> VersionIdentifier | None:
        return read_version_marker(directory)

    def write_marker(self, directory: Path, version: VersionIdentifier) -> Path:
        return write_version_marker(directory, version)
