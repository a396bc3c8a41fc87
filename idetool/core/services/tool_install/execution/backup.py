"""
L4 Execution — Backups before replacing project files.

Anything a tool link would overwrite is moved aside into
``<project>/updates/backups/<YYYYMMDD_HHMMSS>/<name>`` instead of being
deleted.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path

logger = logging.getLogger(__name__)

BACKUP_DIR = Path("updates") / "backups"


def backup_path(path: Path, backup_root: Path) -> Path | None:
    """Move ``path`` into a timestamped folder below ``backup_root``.

    Symbolic links are not backed up, only removed.

    Returns:
        The backup location, or None if nothing was backed up.
    """
    if path.is_symlink():
        path.unlink()
        logger.debug("Removed link %s", path)
        return None
    if not path.exists():
        return None

    ts = time.strftime("%Y%m%d_%H%M%S")
    target = backup_root / ts / path.name
    suffix = 1
    while target.exists():
        target = backup_root / ts / f"{path.name}.{suffix}"
        suffix += 1
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(path), str(target))
    logger.info("Backed up %s → %s", path, target)
    return target
