"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called by the tool
manager. Environment handling, logging and timeout handling are
centralised here.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

_OUTPUT_TAIL = 4000


def _run_subprocess(
    cmd: list[str],
    *,
    timeout: int | None = None,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
    capture: bool = True,
) -> dict[str, Any]:
    """Run a command and report the outcome as a dict.

    Args:
        cmd: Command list for ``subprocess.run()``.
        timeout: Seconds before ``TimeoutExpired`` (None = no limit).
        env_overrides: Extra env vars (e.g. PATH with tool bin dirs).
        cwd: Working directory for the command.
        capture: Capture stdout/stderr. False inherits the terminal,
            used when running a tool for the user.

    Returns:
        ``{"ok": True, "exit_code": 0, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "exit_code": N, "error": "...", "stderr": "...", ...}`` on failure.
    """
    env = os.environ.copy()
    if env_overrides:
        for key, value in env_overrides.items():
            env[key] = os.path.expandvars(value)

    logger.debug("Running: %s (cwd=%s)", " ".join(cmd), cwd or ".")
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=capture,
            text=True,
            timeout=timeout,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {
            "ok": False,
            "exit_code": -1,
            "error": f"Command timed out after {timeout}s",
            "stdout": "",
            "stderr": "",
        }
    except FileNotFoundError as e:
        return {
            "ok": False,
            "exit_code": 127,
            "error": f"Command not found: {e.filename or cmd[0]}",
            "stdout": "",
            "stderr": str(e),
        }
    elapsed_ms = int((time.monotonic() - start) * 1000)

    stdout = (result.stdout or "")[-_OUTPUT_TAIL:]
    stderr = (result.stderr or "")[-_OUTPUT_TAIL:]
    if result.returncode == 0:
        return {
            "ok": True,
            "exit_code": 0,
            "stdout": stdout,
            "stderr": stderr,
            "elapsed_ms": elapsed_ms,
        }

    return {
        "ok": False,
        "exit_code": result.returncode,
        "error": f"Command failed (exit {result.returncode})",
        "stdout": stdout,
        "stderr": stderr,
        "elapsed_ms": elapsed_ms,
    }
