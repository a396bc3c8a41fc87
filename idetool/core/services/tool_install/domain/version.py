"""
L1 Domain — Version identifiers (pure).

Parses, orders and matches tool versions such as ``17.0.10_7``,
``3.9.*``, ``2024.1-rc2`` or ``*-SNAPSHOT``.
No I/O, no subprocess.

A version is split into segments. Each segment is an optional
separator, optional letters, optional digits and an optional
wildcard pattern::

    "1.0-rc2"   →  "1" | ".0" | "-rc2"
    "17*"       →  "17*"
    "3.9.*"     →  "3" | ".9" | ".*"
"""

from __future__ import annotations

import enum
import functools
import re
from typing import Any, Iterable

PATTERN_MATCH_ANY_STABLE_VERSION = "*"
"""Wildcard matching any stable version sharing the prefix."""

PATTERN_MATCH_ANY_VERSION = "*!"
"""Wildcard matching any version (stable or not) sharing the prefix."""

_VALID_SEPARATORS = frozenset({"", ".", "-", "_", "+"})

_SEGMENT_RE = re.compile(r"([^A-Za-z0-9*]*)([A-Za-z]*)([0-9]*)(\*!?)?")


class VersionPhase(enum.Enum):
    """Development phase derived from the letters of a segment.

    The value is ``(rank, stable, label)``. Ranks order phases from least to
    most mature; ``UNDEFINED`` letters sort like ``NONE`` and fall back
    to a lexicographic comparison.
    """

    SNAPSHOT = (0, False, "snapshot")
    DEV = (0, False, "dev")
    ALPHA = (1, False, "alpha")
    BETA = (2, False, "beta")
    MILESTONE = (3, False, "milestone")
    PRE = (4, False, "pre")
    RC = (5, False, "rc")
    NONE = (6, True, "")
    UNDEFINED = (6, True, "?")
    REVISION = (7, True, "revision")

    @property
    def rank(self) -> int:
        return self.value[0]

    @property
    def stable(self) -> bool:
        return self.value[1]

    @property
    def is_development_phase(self) -> bool:
        return self not in (VersionPhase.NONE, VersionPhase.UNDEFINED, VersionPhase.REVISION)


_PHASE_BY_LETTERS: dict[str, VersionPhase] = {
    "": VersionPhase.NONE,
    "snapshot": VersionPhase.SNAPSHOT,
    "dev": VersionPhase.DEV,
    "nightly": VersionPhase.DEV,
    "a": VersionPhase.ALPHA,
    "alpha": VersionPhase.ALPHA,
    "b": VersionPhase.BETA,
    "beta": VersionPhase.BETA,
    "m": VersionPhase.MILESTONE,
    "milestone": VersionPhase.MILESTONE,
    "pre": VersionPhase.PRE,
    "preview": VersionPhase.PRE,
    "ea": VersionPhase.PRE,
    "rc": VersionPhase.RC,
    "cr": VersionPhase.RC,
    "ga": VersionPhase.NONE,
    "final": VersionPhase.NONE,
    "release": VersionPhase.NONE,
    "r": VersionPhase.REVISION,
    "rev": VersionPhase.REVISION,
    "u": VersionPhase.REVISION,
    "update": VersionPhase.REVISION,
    "build": VersionPhase.REVISION,
    "p": VersionPhase.REVISION,
    "patch": VersionPhase.REVISION,
}


def phase_of(letters: str) -> VersionPhase:
    """Classify a letter group (case-insensitive)."""
    return _PHASE_BY_LETTERS.get(letters.lower(), VersionPhase.UNDEFINED)


class VersionComparisonResult(enum.Enum):
    """Outcome of comparing two versions.

    ``*_UNSAFE`` results mean the order was decided heuristically
    (e.g. unknown letters, pattern wildcards or differing separators).
    """

    LESS = (-1, False)
    LESS_UNSAFE = (-1, True)
    EQUAL = (0, False)
    EQUAL_UNSAFE = (0, True)
    GREATER = (1, False)
    GREATER_UNSAFE = (1, True)

    @property
    def sign(self) -> int:
        return self.value[0]

    @property
    def is_unsafe(self) -> bool:
        return self.value[1]

    @property
    def is_less(self) -> bool:
        return self.sign < 0

    @property
    def is_equal(self) -> bool:
        return self.sign == 0

    @property
    def is_greater(self) -> bool:
        return self.sign > 0

    def with_unsafe(self) -> VersionComparisonResult:
        return _UNSAFE[self.sign]

    @classmethod
    def of(cls, sign: int, unsafe: bool = False) -> VersionComparisonResult:
        if unsafe:
            return _UNSAFE[sign]
        return _SAFE[sign]


_SAFE = {
    -1: VersionComparisonResult.LESS,
    0: VersionComparisonResult.EQUAL,
    1: VersionComparisonResult.GREATER,
}
_UNSAFE = {
    -1: VersionComparisonResult.LESS_UNSAFE,
    0: VersionComparisonResult.EQUAL_UNSAFE,
    1: VersionComparisonResult.GREATER_UNSAFE,
}


class _Match(enum.Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    CONTINUE = "continue"


class VersionSegment:
    """A single segment of a :class:`VersionIdentifier`."""

    __slots__ = ("separator", "letters", "digits", "pattern", "number", "phase")

    def __init__(self, separator: str = "", letters: str = "", digits: str = "", pattern: str = ""):
        if pattern not in ("", PATTERN_MATCH_ANY_STABLE_VERSION, PATTERN_MATCH_ANY_VERSION):
            raise ValueError(f"Invalid pattern: {pattern}")
        self.separator = separator
        self.letters = letters
        self.digits = digits
        self.pattern = pattern
        self.number = int(digits) if digits else -1
        self.phase = phase_of(letters)

    @property
    def is_pattern(self) -> bool:
        return bool(self.pattern)

    @property
    def is_empty(self) -> bool:
        return not (self.separator or self.letters or self.digits or self.pattern)

    def is_valid(self) -> bool:
        if self.pattern:
            return False
        if self.separator not in _VALID_SEPARATORS:
            return False
        return self.phase is not VersionPhase.UNDEFINED

    def compare_version(self, other: VersionSegment) -> VersionComparisonResult:
        # Letters decide first: "1.0-rc1" < "1.0" because rc ranks below NONE.
        if self.letters.lower() != other.letters.lower():
            if self.phase.rank != other.phase.rank:
                return VersionComparisonResult.of(-1 if self.phase.rank < other.phase.rank else 1)
            return VersionComparisonResult.of(
                -1 if self.letters.lower() < other.letters.lower() else 1, unsafe=True
            )
        # "_" marks an update suffix (17.0.2_8) and ranks above "." or "-".
        if self.separator != "_" and other.separator == "_":
            return VersionComparisonResult.of(-1 if self.separator == "" else 1)
        if self.separator == "_" and other.separator != "_":
            return VersionComparisonResult.of(1 if other.separator == "" else -1)
        if self.number != other.number:
            if self.number < 0 and self.is_pattern:
                return VersionComparisonResult.LESS_UNSAFE
            if other.number < 0 and other.is_pattern:
                return VersionComparisonResult.GREATER_UNSAFE
            return VersionComparisonResult.of(-1 if self.number < other.number else 1)
        if self.separator == other.separator:
            return VersionComparisonResult.EQUAL
        return VersionComparisonResult.EQUAL_UNSAFE

    def _matches(self, other: VersionSegment, other_tail_stable: bool) -> _Match:
        if self.is_empty and other.is_empty:
            return _Match.MATCH
        if self.is_pattern:
            if self.digits and self.number != other.number:
                return _Match.MISMATCH
            if self.separator and self.separator != other.separator:
                return _Match.MISMATCH
            if self.letters and self.letters.lower() != other.letters.lower():
                return _Match.MISMATCH
            if self.pattern == PATTERN_MATCH_ANY_STABLE_VERSION and not other_tail_stable:
                return _Match.MISMATCH
            return _Match.MATCH
        if self.number != other.number or self.separator != other.separator:
            return _Match.MISMATCH
        if self.letters.lower() != other.letters.lower():
            return _Match.MISMATCH
        return _Match.CONTINUE

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionSegment):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))

    def __str__(self) -> str:
        return f"{self.separator}{self.letters}{self.digits}{self.pattern}"

    def __repr__(self) -> str:
        return f"VersionSegment({str(self)!r})"


_EMPTY_SEGMENT = VersionSegment()


def _parse_segments(text: str) -> tuple[VersionSegment, ...]:
    segments: list[VersionSegment] = []
    pos = 0
    while pos < len(text):
        m = _SEGMENT_RE.match(text, pos)
        if m is None or m.end() == pos:
            raise ValueError(f"Cannot parse version {text!r} at position {pos}")
        separator, letters, digits, pattern = m.group(1), m.group(2), m.group(3), m.group(4) or ""
        segments.append(VersionSegment(separator, letters, digits, pattern))
        pos = m.end()
    return tuple(segments)


@functools.total_ordering
class VersionIdentifier:
    """Immutable, ordered version or version pattern.

    ``str(VersionIdentifier.of(text)) == text`` for every parseable text
    except the aliases ``latest`` and ``latest-unstable``.
    """

    __slots__ = ("_segments", "_text")

    def __init__(self, segments: Iterable[VersionSegment]):
        segs = tuple(segments)
        if not segs:
            raise ValueError("A version needs at least one segment")
        self._segments = segs
        self._text = "".join(str(s) for s in segs)

    # ── Parsing ─────────────────────────────────────────────────

    @classmethod
    def of(cls, text: str | VersionIdentifier | None) -> VersionIdentifier | None:
        """Parse a version string. Returns ``None`` for ``None`` or blank input."""
        if text is None:
            return None
        if isinstance(text, VersionIdentifier):
            return text
        text = text.strip()
        if not text:
            return None
        if text in ("latest", PATTERN_MATCH_ANY_STABLE_VERSION):
            return LATEST
        if text in ("latest-unstable", PATTERN_MATCH_ANY_VERSION):
            return LATEST_UNSTABLE
        if any(ch.isspace() for ch in text):
            raise ValueError(f"Version must not contain whitespace: {text!r}")
        return cls(_parse_segments(text))

    # ── Properties ──────────────────────────────────────────────

    @property
    def segments(self) -> tuple[VersionSegment, ...]:
        return self._segments

    def is_pattern(self) -> bool:
        return any(s.is_pattern for s in self._segments)

    def development_phase(self) -> VersionPhase:
        """The single development phase, ``NONE`` or ``UNDEFINED`` if several."""
        found = VersionPhase.NONE
        for segment in self._segments:
            if segment.phase.is_development_phase:
                if found is VersionPhase.NONE:
                    found = segment.phase
                else:
                    return VersionPhase.UNDEFINED
        return found

    def is_stable(self) -> bool:
        if any(s.pattern == PATTERN_MATCH_ANY_VERSION for s in self._segments):
            return False
        return self.development_phase().stable

    def is_valid(self) -> bool:
        """Whether this is a well-formed concrete version.

        The first segment has neither separator nor letters, every
        segment is valid, at most one segment carries a development
        phase and at least one number is positive.
        """
        first = self._segments[0]
        if first.separator or first.letters:
            return False
        if not all(s.is_valid() for s in self._segments):
            return False
        phases = [s for s in self._segments if s.phase.is_development_phase]
        if len(phases) > 1:
            return False
        return any(s.number > 0 for s in self._segments)

    # ── Comparison ──────────────────────────────────────────────

    def compare_version(self, other: VersionIdentifier | None) -> VersionComparisonResult:
        if other is None:
            return VersionComparisonResult.GREATER_UNSAFE
        unsafe = False
        length = max(len(self._segments), len(other._segments))
        for i in range(length + 1):
            mine = self._segments[i] if i < len(self._segments) else _EMPTY_SEGMENT
            theirs = other._segments[i] if i < len(other._segments) else _EMPTY_SEGMENT
            if mine.is_empty and theirs.is_empty:
                break
            result = mine.compare_version(theirs)
            if not result.is_equal:
                return result.with_unsafe() if unsafe else result
            if result.is_unsafe:
                unsafe = True
        return VersionComparisonResult.of(0, unsafe)

    def matches(self, other: VersionIdentifier | None) -> bool:
        """Whether ``other`` equals this version or matches this pattern.

        ``17*`` matches ``17.0.2``; ``3.9.*`` matches ``3.9.4`` but not
        ``3.9``; ``*!-SNAPSHOT`` matches any version ending in
        ``-SNAPSHOT``. ``*`` never matches unstable versions, ``*!``
        does, so ``*-SNAPSHOT`` matches nothing.
        """
        if other is None:
            return False
        for i, mine in enumerate(self._segments):
            if mine.is_pattern and i + 1 < len(self._segments):
                return self._matches_suffix(i, other)
            theirs = other._segments[i] if i < len(other._segments) else _EMPTY_SEGMENT
            tail_stable = VersionIdentifier._tail_stable(other._segments[i:])
            result = mine._matches(theirs, tail_stable)
            if result is _Match.MATCH:
                return True
            if result is _Match.MISMATCH:
                return False
        return len(other._segments) == len(self._segments)

    def _matches_suffix(self, index: int, other: VersionIdentifier) -> bool:
        prefix = VersionIdentifier(self._segments[:index] + (
            VersionSegment(
                self._segments[index].separator,
                self._segments[index].letters,
                self._segments[index].digits,
                self._segments[index].pattern,
            ),
        ))
        suffix = "".join(str(s) for s in self._segments[index + 1:])
        return str(other).endswith(suffix) and len(str(other)) > len(suffix) and prefix.matches(other)

    @staticmethod
    def _tail_stable(segments: tuple[VersionSegment, ...]) -> bool:
        return not any(s.phase.is_development_phase for s in segments)

    def contains(self, version: VersionIdentifier) -> bool:
        return self.matches(version)

    # ── Increment ───────────────────────────────────────────────

    def increment_segment(self, digit_index: int, keep_letters: bool = False) -> VersionIdentifier:
        """Increment the ``digit_index``-th numeric segment.

        Numeric segments before it are kept, the ones after it reset to
        zero. Without ``keep_letters`` letters of modified segments are
        dropped, as are trailing letter-only segments.
        """
        if self.is_pattern():
            raise ValueError(f"Cannot increment version pattern: {self}")
        result: list[VersionSegment] = []
        seen_digits = 0
        for segment in self._segments:
            if segment.number >= 0:
                position = seen_digits
                seen_digits += 1
            else:
                position = None
            if position is not None and position < digit_index:
                result.append(segment)
                continue
            if position is None:
                if seen_digits <= digit_index or keep_letters:
                    result.append(segment)
                continue
            number = segment.number + 1 if position == digit_index else 0
            digits = str(number).rjust(len(segment.digits), "0")
            letters = segment.letters if keep_letters else ""
            result.append(VersionSegment(segment.separator, letters, digits))
        return VersionIdentifier(result)

    def increment_major(self, keep_letters: bool = False) -> VersionIdentifier:
        return self.increment_segment(0, keep_letters)

    def increment_minor(self, keep_letters: bool = False) -> VersionIdentifier:
        return self.increment_segment(1, keep_letters)

    def increment_patch(self, keep_letters: bool = False) -> VersionIdentifier:
        return self.increment_segment(2, keep_letters)

    def increment_last_digit(self, keep_letters: bool = False) -> VersionIdentifier:
        count = sum(1 for s in self._segments if s.number >= 0)
        return self.increment_segment(count - 1, keep_letters)

    # ── Dunder ──────────────────────────────────────────────────

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionIdentifier):
            return NotImplemented
        result = self.compare_version(other)
        if result.is_equal:
            # "1.0" and "1.00" compare equal but are distinct versions; keep the order total.
            return self._text < other._text
        return result.is_less

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionIdentifier):
            return NotImplemented
        return self._text == other._text

    def __hash__(self) -> int:
        return hash(self._text)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"VersionIdentifier({self._text!r})"


LATEST = VersionIdentifier((VersionSegment(pattern=PATTERN_MATCH_ANY_STABLE_VERSION),))
"""``*`` — resolves to the latest stable version."""

LATEST_UNSTABLE = VersionIdentifier((VersionSegment(pattern=PATTERN_MATCH_ANY_VERSION),))
"""``*!`` — resolves to the latest version including unstable ones."""


def sort_versions(versions: Iterable[VersionIdentifier]) -> list[VersionIdentifier]:
    """Sort versions descending (latest first), the order used everywhere."""
    return sorted(versions, reverse=True)


def resolve_version_pattern(
    request: Any,
    sorted_versions: Iterable[VersionIdentifier],
    *,
    tool: str = "",
    edition: str = "",
) -> VersionIdentifier:
    """Pick the single concrete version satisfying ``request``.

    Args:
        request: A :class:`VersionIdentifier`, a pattern or a
            ``VersionRange``. ``None`` means :data:`LATEST`.
        sorted_versions: Candidates sorted descending (latest first).
        tool: Tool name, only used for the error message.
        edition: Edition name, only used for the error message.

    Returns:
        The equal entry for a concrete request, otherwise the first
        (highest) entry contained in the request.

    Raises:
        VersionResolutionError: If nothing matches.
    """
    from idetool.core.services.tool_install.errors import VersionResolutionError

    if request is None:
        request = LATEST
    candidates = list(sorted_versions)
    if not request.is_pattern():
        for version in candidates:
            if version == request:
                return version
    else:
        for version in candidates:
            if request.contains(version):
                return version
    raise VersionResolutionError(tool, edition or tool, request, candidates)
