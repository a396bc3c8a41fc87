"""
Shell command adapter — run external commands with a prepared environment.

A ``ProcessContext`` collects everything a command needs (extra PATH
entries for installed tools, ``<TOOL>_HOME`` variables, working
directory) and is shared along an install request tree, so tools
installed as dependencies are visible to the commands of their parent.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from idetool.core.services.tool_install.errors import ProcessError
from idetool.core.services.tool_install.execution.subprocess_runner import _run_subprocess

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Outcome of one command."""

    command: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def fail_on_error(self) -> ProcessResult:
        """Raise :class:`ProcessError` unless the command succeeded."""
        if not self.ok:
            raise ProcessError(self.command, self.exit_code, self.stderr)
        return self


@dataclass
class ProcessContext:
    """Environment for running commands.

    ``path_entries`` are prepended to ``PATH`` (most recent first).
    """

    env: dict[str, str] = field(default_factory=dict)
    path_entries: list[str] = field(default_factory=list)
    cwd: str | None = None
    timeout: int | None = None

    def with_path_entry(self, directory: str) -> ProcessContext:
        if directory not in self.path_entries:
            self.path_entries.insert(0, directory)
        return self

    def with_env_var(self, key: str, value: str) -> ProcessContext:
        self.env[key] = value
        return self

    def environment(self) -> dict[str, str]:
        """Environment overrides for the subprocess."""
        overrides = dict(self.env)
        if self.path_entries:
            base = overrides.get("PATH", os.environ.get("PATH", ""))
            overrides["PATH"] = os.pathsep.join(self.path_entries + ([base] if base else []))
        return overrides

    def run(self, executable: str, *args: str, capture: bool = True) -> ProcessResult:
        """Run ``executable args...`` and return the result (never raises on exit code)."""
        cmd = [executable, *args]
        result = _run_subprocess(
            cmd,
            timeout=self.timeout,
            env_overrides=self.environment(),
            cwd=self.cwd,
            capture=capture,
        )
        if not result["ok"]:
            logger.debug("%s: %s", " ".join(cmd), result.get("error"))
        return ProcessResult(
            command=cmd,
            exit_code=result["exit_code"],
            stdout=result.get("stdout", ""),
            stderr=result.get("stderr", ""),
        )
