"""
L4 Execution — Download and checksum verification.

Streams artifacts over HTTP(S) or ``file://`` into the download cache
and checks their integrity.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable

from idetool.core.services.tool_install.errors import DownloadError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
_PROGRESS_INTERVAL = 0.5   # seconds between progress callbacks
_USER_AGENT = "idetool/1.0"


def file_checksum(path: Path, algo: str = "sha256") -> str:
    """Hex digest of a file."""
    h = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_checksum(path: Path, expected: str) -> bool:
    """Verify file checksum.  Format: ``algo:hex`` (bare hex means sha256).

    Args:
        path: Path to the downloaded file.
        expected: Checksum string like ``sha256:abc123...``.

    Returns:
        True if the file's computed digest matches ``expected``.
    """
    if ":" in expected:
        algo, expected_hash = expected.split(":", 1)
    else:
        algo, expected_hash = "sha256", expected
    return file_checksum(path, algo) == expected_hash.strip().lower()


def download_file(
    url: str,
    dest: Path,
    *,
    checksum: str | None = None,
    progress: Callable[[int, int], None] | None = None,
    timeout: int = 60,
) -> Path:
    """Download ``url`` to ``dest``.

    Writes to a ``.part`` file first and renames on success, so an
    interrupted download never leaves a half file under ``dest``.
    ``progress(done, total)`` is polled at most every half second and
    once at the end.

    Raises:
        DownloadError: On network errors or checksum mismatch.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_name(dest.name + ".part")
    logger.info("Downloading %s", url)

    request = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    try:
        with urllib.request.urlopen(request, timeout=timeout) as resp, open(partial, "wb") as out:
            total = int(resp.headers.get("Content-Length") or 0)
            done = 0
            last_report = 0.0
            while True:
                chunk = resp.read(_CHUNK_SIZE)
                if not chunk:
                    break
                out.write(chunk)
                done += len(chunk)
                now = time.monotonic()
                if progress is not None and now - last_report >= _PROGRESS_INTERVAL:
                    progress(done, total)
                    last_report = now
            if progress is not None:
                progress(done, total or done)
    except (urllib.error.URLError, OSError) as e:
        partial.unlink(missing_ok=True)
        raise DownloadError(f"Failed to download {url}: {e}") from e

    if checksum and not verify_checksum(partial, checksum):
        actual = file_checksum(partial)
        partial.unlink(missing_ok=True)
        raise DownloadError(
            f"Checksum mismatch for {url}: expected {checksum}, got sha256:{actual}"
        )

    shutil.move(str(partial), str(dest))
    logger.debug("Downloaded %s → %s (%d bytes)", url, dest, dest.stat().st_size)
    return dest
