"""
L4 Execution — Archive extraction.

Unpacks downloaded artifacts into an installation directory. A single
top-level folder inside the archive (``apache-maven-3.9.6/``) is
flattened away so every installation has the same shape. Artifacts
that are the tool itself (``extract: false``) are copied as they are.
"""

from __future__ import annotations

import logging
import shutil
import stat
import tarfile
import zipfile
from pathlib import Path

from idetool.core.services.tool_install.errors import ArchiveError

logger = logging.getLogger(__name__)

_TAR_SUFFIXES = (".tar.gz", ".tgz", ".tar.bz2", ".tbz2", ".tar.xz", ".txz", ".tar")
_ZIP_SUFFIXES = (".zip", ".jar.zip")


class ArchiveExtractor:
    """Extract zip and tar artifacts (stdlib only)."""

    def extract(self, archive: Path, target_dir: Path, extract: bool = True) -> Path:
        """Install ``archive`` into ``target_dir``.

        Args:
            archive: The downloaded artifact.
            target_dir: Installation directory (created if missing).
            extract: False copies the artifact unchanged and makes it executable.

        Returns:
            ``target_dir``.

        Raises:
            ArchiveError: If the artifact is missing, empty, corrupted
                or of an unknown format.
        """
        if not archive.is_file():
            raise ArchiveError(f"Artifact not found: {archive}")
        if archive.stat().st_size == 0:
            raise ArchiveError(f"Artifact is empty: {archive}")

        target_dir.mkdir(parents=True, exist_ok=True)
        if not extract:
            dest = target_dir / archive.name
            shutil.copy2(archive, dest)
            dest.chmod(dest.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            logger.debug("Copied %s to %s", archive, dest)
            return target_dir

        staging = target_dir.parent / f".{target_dir.name}.extracting"
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True)
        try:
            kind = self._detect(archive)
            logger.info("Extracting %s to %s", archive.name, target_dir)
            if kind == "zip":
                self._extract_zip(archive, staging)
            else:
                self._extract_tar(archive, staging)

            children = list(staging.iterdir())
            if not children:
                raise ArchiveError(f"Archive contains no files: {archive}")
            source = children[0] if len(children) == 1 and children[0].is_dir() else staging
            for child in source.iterdir():
                shutil.move(str(child), str(target_dir / child.name))
        finally:
            shutil.rmtree(staging, ignore_errors=True)
        return target_dir

    @staticmethod
    def _detect(archive: Path) -> str:
        name = archive.name.lower()
        if name.endswith(_ZIP_SUFFIXES):
            return "zip"
        if name.endswith(_TAR_SUFFIXES):
            return "tar"
        # Unknown suffix: sniff the content.
        if zipfile.is_zipfile(archive):
            return "zip"
        if tarfile.is_tarfile(archive):
            return "tar"
        raise ArchiveError(f"Unknown archive format: {archive.name}")

    @staticmethod
    def _extract_tar(archive: Path, target: Path) -> None:
        try:
            with tarfile.open(archive, "r:*") as tar:
                tar.extractall(target, filter="data")
        except (tarfile.TarError, EOFError, OSError) as e:
            raise ArchiveError(f"Corrupted archive {archive.name}: {e}") from e

    @staticmethod
    def _extract_zip(archive: Path, target: Path) -> None:
        try:
            with zipfile.ZipFile(archive) as zf:
                for info in zf.infolist():
                    extracted = Path(zf.extract(info, target))
                    mode = (info.external_attr >> 16) & 0o777
                    if mode and not info.is_dir():
                        extracted.chmod(mode)
        except (zipfile.BadZipFile, EOFError, OSError) as e:
            raise ArchiveError(f"Corrupted archive {archive.name}: {e}") from e
