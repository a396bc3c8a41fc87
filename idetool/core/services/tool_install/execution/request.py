"""
L4 Execution — Install request session state.

An ``InstallRequest`` lives for exactly one top-level install call and
the dependency installs it triggers. It carries what the recursion
needs: the parent (for loop detection and chain logging), the shared
process context, the per-tree cache and the write-once requested and
installed versions.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Generic, Iterator, TypeVar

from idetool.adapters.shell.command import ProcessContext
from idetool.core.services.tool_install.domain.edition import ToolEditionAndVersion

T = TypeVar("T")

RequestKey = tuple[str, str, str]
"""``(tool, edition, resolved_version)``."""


class CachedValue(Generic[T]):
    """Lazily computed value that can be invalidated."""

    def __init__(self, supplier: Callable[[], T]):
        self._supplier = supplier
        self._value: T | None = None
        self._cached = False

    @property
    def is_cached(self) -> bool:
        return self._cached

    def get(self) -> T:
        if not self._cached:
            self._value = self._supplier()
            self._cached = True
        return self._value  # type: ignore[return-value]

    def invalidate(self) -> None:
        self._cached = False
        self._value = None


class SessionCache:
    """Cached values shared by one install request tree (never process-global)."""

    def __init__(self) -> None:
        self._values: dict[str, CachedValue] = {}

    def value(self, key: str, supplier: Callable[[], T]) -> CachedValue[T]:
        if key not in self._values:
            self._values[key] = CachedValue(supplier)
        return self._values[key]

    def invalidate(self, key: str) -> None:
        cached = self._values.get(key)
        if cached is not None:
            cached.invalidate()


class InstallRequest:
    """State of one install call within a request tree."""

    def __init__(
        self,
        *,
        parent: InstallRequest | None = None,
        silent: bool = False,
        direct: bool = False,
        process_context: ProcessContext | None = None,
        session_cache: SessionCache | None = None,
        extra_installation: bool = False,
    ):
        self.parent = parent
        self.silent = silent
        self.direct = direct
        self.extra_installation = extra_installation
        self.cve_check_done = False
        self.target_link: Path | None = None
        if parent is not None:
            self.process_context = parent.process_context
            self.session_cache = parent.session_cache
            self.visited: frozenset[RequestKey] = parent.visited | (
                {parent.key} if parent.key is not None else set()
            )
        else:
            self.process_context = process_context or ProcessContext()
            self.session_cache = session_cache or SessionCache()
            self.visited = frozenset()
        self._requested: ToolEditionAndVersion | None = None
        self._installed: ToolEditionAndVersion | None = None

    # ── Write-once fields ───────────────────────────────────────

    @property
    def requested(self) -> ToolEditionAndVersion | None:
        return self._requested

    @requested.setter
    def requested(self, value: ToolEditionAndVersion) -> None:
        if self._requested is not None:
            raise ValueError(f"Requested version already set to {self._requested}, cannot change to {value}")
        self._requested = value

    @property
    def installed(self) -> ToolEditionAndVersion | None:
        return self._installed

    @installed.setter
    def installed(self, value: ToolEditionAndVersion) -> None:
        if self._installed is not None:
            raise ValueError(f"Installed version already set to {self._installed}, cannot change to {value}")
        self._installed = value

    # ── Tree ────────────────────────────────────────────────────

    @property
    def key(self) -> RequestKey | None:
        req = self._requested
        if req is None or req.resolved_version is None:
            return None
        return (req.edition.tool, req.edition.edition, str(req.resolved_version))

    def child(self, *, extra_installation: bool = False) -> InstallRequest:
        """Request for a dependency of this request's tool."""
        return InstallRequest(parent=self, silent=True, extra_installation=extra_installation)

    def retry(self) -> InstallRequest:
        """Fresh request in the same place of the tree, after the security check."""
        if self.parent is not None:
            fresh = InstallRequest(parent=self.parent, silent=self.silent, direct=self.direct,
                                   extra_installation=self.extra_installation)
        else:
            fresh = InstallRequest(silent=self.silent, direct=self.direct,
                                   process_context=self.process_context,
                                   session_cache=self.session_cache,
                                   extra_installation=self.extra_installation)
        fresh.cve_check_done = True
        return fresh

    def chain(self) -> Iterator[InstallRequest]:
        """Ancestry from the root request down to this one."""
        lineage: list[InstallRequest] = []
        node: InstallRequest | None = self
        while node is not None:
            lineage.append(node)
            node = node.parent
        return reversed(lineage)

    def chain_text(self) -> str:
        return " -> ".join(str(r.requested) for r in self.chain() if r.requested is not None)

    def is_loop(self) -> bool:
        """Whether this request's tool/edition/version is already on the chain."""
        return self.key is not None and self.key in self.visited

    # ── Short-circuit ───────────────────────────────────────────

    def is_already_installed(self, skip_updates: bool) -> bool:
        """Whether the installed version satisfies the request.

        Editions must match. With ``skip_updates`` any installed version
        the request contains is fine, otherwise the installed version
        must equal the resolved one.
        """
        requested, installed = self._requested, self._installed
        if requested is None or installed is None or installed.resolved_version is None:
            return False
        if requested.edition != installed.edition:
            return False
        if skip_updates:
            return requested.version.contains(installed.resolved_version)
        return requested.resolved_version == installed.resolved_version

    def __repr__(self) -> str:
        return f"<InstallRequest {self._requested} silent={self.silent} direct={self.direct}>"
