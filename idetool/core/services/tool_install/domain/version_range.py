"""
L1 Domain — Version ranges (pure).

Bounded ranges of versions used by tool dependency declarations and
CVE metadata. Supports interval notation and the legacy ``min>max``
form::

    [1,2)       1 <= v < 2
    (1.0,2.0]   1.0 < v <= 2.0
    [11,)       v >= 11
    (,3]        v <= 3
    1.0>2.0     1.0 <= v <= 2.0   (legacy, both bounds inclusive)
"""

from __future__ import annotations

from typing import Union

from idetool.core.services.tool_install.domain.version import VersionIdentifier

_OPEN_EXCLUSIVE = "("
_OPEN_INCLUSIVE = "["
_CLOSE_EXCLUSIVE = ")"
_CLOSE_INCLUSIVE = "]"
_LEGACY_SEPARATOR = ">"


class VersionRange:
    """A range of versions with optional, individually inclusive bounds."""

    __slots__ = ("min", "max", "left_exclusive", "right_exclusive")

    def __init__(
        self,
        min: VersionIdentifier | None = None,
        max: VersionIdentifier | None = None,
        *,
        left_exclusive: bool = False,
        right_exclusive: bool = False,
    ):
        if min is not None and max is not None and max < min:
            raise ValueError(f"Version range max {max} is less than min {min}")
        self.min = min
        self.max = max
        # An unbounded side is always open.
        self.left_exclusive = left_exclusive if min is not None else True
        self.right_exclusive = right_exclusive if max is not None else True

    @classmethod
    def of(cls, text: str) -> VersionRange:
        """Parse a range in interval or legacy notation."""
        text = text.strip()
        if not text:
            raise ValueError("Empty version range")
        if text[0] in (_OPEN_EXCLUSIVE, _OPEN_INCLUSIVE):
            if text[-1] not in (_CLOSE_EXCLUSIVE, _CLOSE_INCLUSIVE) or "," not in text:
                raise ValueError(f"Invalid version range: {text}")
            lower, _, upper = text[1:-1].partition(",")
            return cls(
                VersionIdentifier.of(lower),
                VersionIdentifier.of(upper),
                left_exclusive=text[0] == _OPEN_EXCLUSIVE,
                right_exclusive=text[-1] == _CLOSE_EXCLUSIVE,
            )
        if _LEGACY_SEPARATOR in text:
            lower, _, upper = text.partition(_LEGACY_SEPARATOR)
            return cls(VersionIdentifier.of(lower), VersionIdentifier.of(upper))
        raise ValueError(f"Not a version range: {text}")

    @staticmethod
    def looks_like_range(text: str) -> bool:
        text = text.strip()
        return bool(text) and (text[0] in (_OPEN_EXCLUSIVE, _OPEN_INCLUSIVE) or _LEGACY_SEPARATOR in text)

    def contains(self, version: VersionIdentifier | None) -> bool:
        """Whether the concrete ``version`` lies within this range."""
        if version is None or version.is_pattern():
            return False
        if self.min is not None:
            result = version.compare_version(self.min)
            if result.is_less or (result.is_equal and self.left_exclusive):
                return False
        if self.max is not None:
            result = version.compare_version(self.max)
            if result.is_greater or (result.is_equal and self.right_exclusive):
                return False
        return True

    def is_pattern(self) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRange):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))

    def __str__(self) -> str:
        left = _OPEN_EXCLUSIVE if self.left_exclusive else _OPEN_INCLUSIVE
        right = _CLOSE_EXCLUSIVE if self.right_exclusive else _CLOSE_INCLUSIVE
        lower = str(self.min) if self.min is not None else ""
        upper = str(self.max) if self.max is not None else ""
        return f"{left}{lower},{upper}{right}"

    def __repr__(self) -> str:
        return f"VersionRange({str(self)!r})"


GenericVersionRange = Union[VersionIdentifier, VersionRange]
"""What a user may request: a concrete version, a pattern or a range."""


def parse_version_request(text: str | None) -> GenericVersionRange | None:
    """Parse user input into a :class:`VersionRange` or :class:`VersionIdentifier`."""
    if text is None or not str(text).strip():
        return None
    text = str(text)
    if VersionRange.looks_like_range(text):
        return VersionRange.of(text)
    return VersionIdentifier.of(text)
