"""
Metadata repository — tool versions and artifacts described on disk.

Layout of the metadata tree (``urls`` in ide.yml)::

    <urls>/<tool>/<edition>/<version>/urls              one URL per line
    <urls>/<tool>/<edition>/<version>/linux_x64.urls    OS/arch specific, preferred
    <urls>/<tool>/<edition>/<version>/urls.sha256       optional checksum(s)
    <urls>/<tool>/<edition>/dependencies.json           {"<range>": [{"tool", "versionRange"}]}
    <urls>/<tool>/<edition>/security.json               {"issues": [{"id", "severity", "versions"}]}
    <urls>/<tool>/security.json                         same, for all editions

Artifacts are downloaded once into the download cache and re-used
while their checksum still matches.
"""

from __future__ import annotations

import json
import logging
import platform
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from urllib.parse import urlparse

from idetool.adapters.base import ProgressCallback, ToolDependency, ToolRepository
from idetool.core.services.tool_install.domain.version import VersionIdentifier, sort_versions
from idetool.core.services.tool_install.domain.version_range import VersionRange
from idetool.core.services.tool_install.domain.vulnerabilities import Cve, ToolSecurity
from idetool.core.services.tool_install.errors import DownloadError, InstallError
from idetool.core.services.tool_install.execution.download import download_file, verify_checksum

logger = logging.getLogger(__name__)

URLS_FILE = "urls"
CHECKSUM_SUFFIX = ".sha256"
DEPENDENCIES_FILE = "dependencies.json"
SECURITY_FILE = "security.json"

_ARCH_MAP = {"x86_64": "x64", "amd64": "x64", "aarch64": "arm64", "arm64": "arm64"}


def platform_key() -> str:
    """``<os>_<arch>`` of the running machine, e.g. ``linux_x64``."""
    machine = platform.machine().lower()
    return f"{platform.system().lower()}_{_ARCH_MAP.get(machine, machine)}"


class MetadataToolRepository(ToolRepository):
    """Repository backed by a metadata tree and a download cache."""

    def __init__(self, urls_root: Path, download_dir: Path, repository_id: str = "default"):
        self._root = urls_root
        self._download_dir = download_dir
        self._id = repository_id

    @property
    def id(self) -> str:
        return self._id

    # ── Queries ─────────────────────────────────────────────────

    def get_sorted_editions(self, tool: str) -> list[str]:
        tool_dir = self._root / tool
        if not tool_dir.is_dir():
            return []
        return sorted(p.name for p in tool_dir.iterdir() if p.is_dir() and not p.name.startswith("."))

    def get_sorted_versions(self, tool: str, edition: str) -> list[VersionIdentifier]:
        edition_dir = self._root / tool / edition
        if not edition_dir.is_dir():
            logger.debug("No metadata for %s/%s under %s", tool, edition, self._root)
            return []
        versions = []
        for child in edition_dir.iterdir():
            if not child.is_dir() or child.name.startswith("."):
                continue
            try:
                versions.append(VersionIdentifier.of(child.name))
            except ValueError:
                logger.warning("Ignoring unparseable version folder %s", child)
        return sort_versions(v for v in versions if v is not None)

    def find_dependencies(
        self, tool: str, edition: str, version: VersionIdentifier,
    ) -> list[ToolDependency]:
        path = self._root / tool / edition / DEPENDENCIES_FILE
        data = _read_json(path)
        if not data:
            return []
        with _malformed(path):
            for range_text, entries in data.items():
                if VersionRange.of(range_text).contains(version):
                    return [
                        ToolDependency(entry["tool"], VersionRange.of(entry["versionRange"]))
                        for entry in entries
                    ]
        logger.debug("No dependency entry of %s matches %s@%s", path, tool, version)
        return []

    def find_security(self, tool: str, edition: str) -> ToolSecurity:
        issues: list[Cve] = []
        for path in (self._root / tool / edition / SECURITY_FILE, self._root / tool / SECURITY_FILE):
            data = _read_json(path)
            if not data:
                continue
            with _malformed(path):
                for raw in data.get("issues", []):
                    issues.append(Cve(
                        id=raw["id"],
                        severity=float(raw.get("severity", 0.0)),
                        versions=tuple(VersionRange.of(r) for r in raw.get("versions", [])),
                    ))
            break
        return ToolSecurity(tuple(issues))

    # ── Download ────────────────────────────────────────────────

    def download(
        self,
        tool: str,
        edition: str,
        version: VersionIdentifier,
        progress: ProgressCallback | None = None,
    ) -> Path:
        urls_file = self._find_urls_file(tool, edition, version)
        urls = [
            line.strip() for line in urls_file.read_text(encoding="utf-8").splitlines()
            if line.strip() and not line.startswith("#")
        ]
        if not urls:
            raise DownloadError(f"No download URL in {urls_file}")
        checksum = _read_checksum(urls_file)

        errors: list[str] = []
        for url in urls:
            filename = Path(urlparse(url).path).name or f"{tool}-{version}"
            dest = self._download_dir / tool / edition / str(version) / filename
            if dest.is_file() and (checksum is None or verify_checksum(dest, checksum)):
                logger.info("Using cached download %s", dest)
                return dest
            try:
                return download_file(url, dest, checksum=checksum, progress=progress)
            except DownloadError as e:
                logger.warning("%s", e)
                errors.append(str(e))
        raise DownloadError(f"All downloads failed for {tool}/{edition}@{version}: {'; '.join(errors)}")

    def _find_urls_file(self, tool: str, edition: str, version: VersionIdentifier) -> Path:
        version_dir = self._root / tool / edition / str(version)
        for name in (f"{platform_key()}.{URLS_FILE}", URLS_FILE):
            candidate = version_dir / name
            if candidate.is_file():
                return candidate
        raise DownloadError(f"No urls file for {tool}/{edition}@{version} in {version_dir}")


@contextmanager
def _malformed(path: Path) -> Iterator[None]:
    """Report a well-formed JSON file with unexpected content as InstallError."""
    try:
        yield
    except KeyError as e:
        raise InstallError(f"Invalid {path.name} at {path}: missing key {e}") from e
    except (AttributeError, TypeError, ValueError) as e:
        raise InstallError(f"Invalid {path.name} at {path}: {e}") from e


def _read_json(path: Path) -> dict | None:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InstallError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise InstallError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


def _read_checksum(urls_file: Path) -> str | None:
    path = urls_file.with_name(urls_file.name + CHECKSUM_SUFFIX)
    if not path.is_file():
        return None
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return None
    # `sha256sum` output format: "<hex>  <filename>"
    value = text.split()[0]
    return value if ":" in value else f"sha256:{value.lower()}"
