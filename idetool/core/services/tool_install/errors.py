"""
Tool installation errors.

Every failure of the install engine derives from :class:`InstallError`
so callers (CLI, use cases) can catch one type. Loop detection and a
missing version marker are not errors: the first is logged, the
second repaired.
"""

from __future__ import annotations


class InstallError(Exception):
    """Base class for tool installation failures."""


class UnknownToolError(InstallError):
    """The tool is neither configured nor listed in the tool catalog."""


class VersionResolutionError(InstallError):
    """No available version matches the requested version or range."""

    def __init__(self, tool: str, edition: str, request: object, available: list | None = None):
        self.tool = tool
        self.edition = edition
        self.request = request
        self.available = list(available or [])
        super().__init__(
            f"Could not find any version matching '{request}' for tool {tool}/{edition}"
            + (f" (available: {', '.join(str(v) for v in self.available[:10])})" if self.available else "")
        )


class ToolConflictError(InstallError):
    """A dependency needs a version the tool cannot install side by side."""


class DownloadError(InstallError):
    """Artifact download failed or its checksum did not match."""


class ArchiveError(InstallError):
    """Artifact is empty, corrupted or of an unsupported format."""


class ProcessError(InstallError):
    """An external command exited with a non-zero code."""

    def __init__(self, command: list[str], exit_code: int, stderr: str = ""):
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"Command '{' '.join(self.command)}' failed (exit {exit_code}){detail}")
