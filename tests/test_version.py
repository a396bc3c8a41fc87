"""
Tests for version identifiers, version ranges and version resolution.
"""

import pytest

from idetool.core.services.tool_install.domain.version import (
    LATEST,
    LATEST_UNSTABLE,
    VersionComparisonResult,
    VersionIdentifier,
    VersionPhase,
    phase_of,
    resolve_version_pattern,
    sort_versions,
)
from idetool.core.services.tool_install.domain.version_range import (
    VersionRange,
    parse_version_request,
)
from idetool.core.services.tool_install.errors import VersionResolutionError


def v(text: str) -> VersionIdentifier:
    return VersionIdentifier.of(text)


# ── Parsing ──────────────────────────────────────────────────────────


class TestParsing:
    """Parsing version identifiers."""

    @pytest.mark.parametrize("text", [
        "17.0.10_7", "1.0-rc2", "2024.1", "3.9.*", "17*", "17.0*!", "2025.01.002", "1.0-SNAPSHOT",
    ])
    def test_text_is_preserved(self, text):
        assert str(v(text)) == text

    def test_none_and_blank(self):
        assert VersionIdentifier.of(None) is None
        assert VersionIdentifier.of("") is None
        assert VersionIdentifier.of("   ") is None

    def test_aliases(self):
        assert v("latest") is LATEST
        assert v("*") is LATEST
        assert v("latest-unstable") is LATEST_UNSTABLE
        assert v("*!") is LATEST_UNSTABLE

    def test_whitespace_rejected(self):
        with pytest.raises(ValueError):
            VersionIdentifier.of("1 0")

    def test_segments(self):
        assert [str(s) for s in v("1.0-rc2").segments] == ["1", ".0", "-rc2"]
        assert [str(s) for s in v("3.9.*").segments] == ["3", ".9", ".*"]

    def test_equality_and_hash(self):
        assert v("1.0") == v("1.0")
        assert len({v("1.0"), v("1.0"), v("2.0")}) == 2


# ── Ordering ─────────────────────────────────────────────────────────


class TestOrdering:
    """Comparison and sorting."""

    def test_numeric_segments(self):
        assert v("1.9") < v("1.10")
        assert v("17.0.2_8") < v("17.0.10_7")

    def test_release_candidate_before_release(self):
        assert v("1.0-rc1") < v("1.0")
        assert v("1.0-rc1") < v("1.0-rc2")
        assert v("2.0-beta") < v("2.0-rc")

    def test_update_suffix(self):
        assert v("17.0.2") < v("17.0.2_8")
        assert v("17.0.2_8") < v("17.0.3")

    def test_java_versions(self):
        assert v("21_35") < v("21.0.2_13")
        assert v("21.0.2_13") < v("21.0.3_9")
        assert v("21.0.3_9") > v("21_35")

    def test_unknown_letters_are_unsafe(self):
        result = v("1.0-foo").compare_version(v("1.0-bar"))
        assert result is VersionComparisonResult.GREATER_UNSAFE
        assert result.is_unsafe

    def test_compare_with_none(self):
        assert v("1.0").compare_version(None) is VersionComparisonResult.GREATER_UNSAFE

    def test_equal_comparing_texts_are_ordered_one_way(self):
        for a, b in (("1.0", "1.00"), ("1.0", "1-0"), ("2.0.1", "2-0-1")):
            assert a != b
            assert (v(a) < v(b)) != (v(b) < v(a))
            assert not (v(a) > v(b) and v(b) > v(a))
            assert v(a).compare_version(v(b)).is_equal

    def test_sort_is_independent_of_input_order(self):
        versions = [v("1.0"), v("1.00"), v("1-0"), v("0.9"), v("1.1")]
        expected = [str(x) for x in sort_versions(versions)]
        assert [str(x) for x in sort_versions(list(reversed(versions)))] == expected
        assert expected[0] == "1.1"
        assert expected[-1] == "0.9"

    def test_sort_versions_descending(self):
        ordered = sort_versions([v("11.0.22_7"), v("21.0.2_13"), v("17.0.10_7"), v("17.0.2_8")])
        assert [str(x) for x in ordered] == ["21.0.2_13", "17.0.10_7", "17.0.2_8", "11.0.22_7"]


# ── Phases / validity ────────────────────────────────────────────────


class TestPhases:
    """Development phases and stability."""

    def test_phase_of_is_case_insensitive(self):
        assert phase_of("RC") is VersionPhase.RC
        assert phase_of("SNAPSHOT") is VersionPhase.SNAPSHOT
        assert phase_of("whatever") is VersionPhase.UNDEFINED

    def test_development_phase(self):
        assert v("1.0-beta2").development_phase() is VersionPhase.BETA
        assert v("1.0").development_phase() is VersionPhase.NONE
        assert v("1.0-SNAPSHOT").development_phase() is VersionPhase.SNAPSHOT

    def test_stability(self):
        assert v("2025.01.002").is_stable()
        assert v("17.0.10_7").is_stable()
        assert not v("1.0-rc1").is_stable()
        assert LATEST.is_stable()
        assert not LATEST_UNSTABLE.is_stable()

    @pytest.mark.parametrize("text,valid", [
        ("1.0", True),
        ("1.0-rc1", True),
        ("17.0.10_7", True),
        ("0", False),
        ("v1.0", False),
        ("1.0-foo", False),
        ("17*", False),
    ])
    def test_is_valid(self, text, valid):
        assert v(text).is_valid() is valid


# ── Matching ─────────────────────────────────────────────────────────


class TestMatching:
    """Wildcard patterns."""

    def test_exact(self):
        assert v("1.0").matches(v("1.0"))
        assert not v("1.0").matches(v("1.0.1"))
        assert not v("1.0").matches(None)

    def test_prefix_pattern(self):
        pattern = v("17*")
        assert pattern.is_pattern()
        assert pattern.matches(v("17.0.2_8"))
        assert pattern.matches(v("17"))
        assert not pattern.matches(v("170"))
        assert not pattern.matches(v("1.7"))
        assert not pattern.matches(v("17.0-rc1"))

    def test_segment_pattern(self):
        pattern = v("17.0*")
        assert pattern.matches(v("17.0"))
        assert pattern.matches(v("17.0.8_7"))
        assert not pattern.matches(v("17"))
        assert not pattern.matches(v("17_0.8_7"))
        assert not pattern.matches(v("17.1"))
        assert not pattern.matches(v("170.0"))

    def test_dot_star(self):
        pattern = v("3.9.*")
        assert pattern.matches(v("3.9.4"))
        assert not pattern.matches(v("3.9"))
        assert not pattern.matches(v("3.10.1"))

    def test_match_any_includes_unstable(self):
        pattern = v("17*!")
        assert pattern.matches(v("17.rc1"))
        assert pattern.matches(v("17-SNAPSHOT"))
        assert pattern.matches(v("17_0.8_7"))
        assert not pattern.matches(v("171.1"))

    def test_latest(self):
        assert LATEST.matches(v("21.0.2_13"))
        assert not LATEST.matches(v("22-ea"))
        assert LATEST_UNSTABLE.matches(v("22-ea"))

    def test_suffix_pattern(self):
        snapshots = v("*!-SNAPSHOT")
        assert snapshots.is_pattern()
        assert not snapshots.is_valid()
        assert snapshots.matches(v("2025.03.001-SNAPSHOT"))
        assert snapshots.matches(v("2025.02.001-beta-SNAPSHOT"))
        assert not snapshots.matches(v("2025.03.001"))

    def test_stable_suffix_pattern_matches_no_snapshot(self):
        pattern = v("*-SNAPSHOT")
        assert not pattern.matches(v("2025.03.001-SNAPSHOT"))
        assert not pattern.matches(v("2025.03.001-beta-SNAPSHOT"))


# ── Increment ────────────────────────────────────────────────────────


class TestIncrement:
    """Incrementing a version."""

    @pytest.mark.parametrize("digit,keep,expected", [
        (0, False, "2.0.0-0.0"),
        (0, True, "2.0beta.0-0foo.0bar-SNAPSHOT"),
        (1, False, "1.3.0-0.0"),
        (2, False, "1.2beta.4-0.0"),
        (2, True, "1.2beta.4-0foo.0bar-SNAPSHOT"),
        (4, False, "1.2beta.3-4foo.6"),
        (5, False, "1.2beta.3-4foo.5bar-SNAPSHOT"),
    ])
    def test_increment_segment(self, digit, keep, expected):
        assert str(v("1.2beta.3-4foo.5bar-SNAPSHOT").increment_segment(digit, keep)) == expected

    def test_leading_zeros_are_kept(self):
        version = v("2025.01.002")
        assert str(version.increment_major()) == "2026.00.000"
        assert str(version.increment_minor()) == "2025.02.000"
        assert str(version.increment_patch()) == "2025.01.003"

    @pytest.mark.parametrize("text,keep,expected", [
        ("1-beta", False, "2"),
        ("1-beta", True, "2-beta"),
        ("1.0-beta", False, "1.1"),
        ("3.2.1_rc-SNAPSHOT", False, "3.2.2"),
        ("3.2.1_rc-SNAPSHOT", True, "3.2.2_rc-SNAPSHOT"),
    ])
    def test_increment_last_digit(self, text, keep, expected):
        assert str(v(text).increment_last_digit(keep)) == expected

    def test_pattern_cannot_be_incremented(self):
        with pytest.raises(ValueError):
            v("17*").increment_major()


# ── Ranges ───────────────────────────────────────────────────────────


class TestVersionRange:
    """Range bounds and containment."""

    def test_half_open(self):
        rng = VersionRange.of("[1,2)")
        assert rng.contains(v("1"))
        assert rng.contains(v("1.5"))
        assert not rng.contains(v("2"))
        assert not rng.contains(v("0.9"))

    def test_left_exclusive(self):
        rng = VersionRange.of("(1.0,2.0]")
        assert not rng.contains(v("1.0"))
        assert rng.contains(v("2.0"))

    def test_unbounded(self):
        assert VersionRange.of("[11,)").contains(v("21.0.2_13"))
        assert VersionRange.of("(,3]").contains(v("1"))
        assert VersionRange().contains(v("0.0.1"))
        assert str(VersionRange()) == "(,)"

    def test_legacy_notation_is_inclusive(self):
        rng = VersionRange.of("1.0>2.0")
        assert rng.contains(v("1.0"))
        assert rng.contains(v("2.0"))
        assert str(rng) == "[1.0,2.0]"

    def test_patterns_are_not_contained(self):
        assert not VersionRange.of("[1,)").contains(v("17*"))
        assert not VersionRange.of("[1,)").contains(None)

    def test_invalid(self):
        with pytest.raises(ValueError):
            VersionRange.of("[2,1)")
        with pytest.raises(ValueError):
            VersionRange.of("[1,2")
        with pytest.raises(ValueError):
            VersionRange.of("1.0")

    def test_range_is_a_pattern(self):
        assert VersionRange.of("[1,2)").is_pattern()

    def test_str_round_trip(self):
        assert str(VersionRange.of("[3.8,4)")) == "[3.8,4)"


class TestParseVersionRequest:
    """Version request strings."""

    def test_none_and_blank(self):
        assert parse_version_request(None) is None
        assert parse_version_request(" ") is None

    def test_range(self):
        assert isinstance(parse_version_request("[3.8,4)"), VersionRange)

    def test_version_or_pattern(self):
        assert parse_version_request("17*") == v("17*")
        assert parse_version_request("latest") is LATEST


# ── Resolution ───────────────────────────────────────────────────────


class TestResolveVersionPattern:
    """Picking a version from the available ones."""

    VERSIONS = sort_versions([v("2.0"), v("1.1"), v("1.0"), v("2.1-rc1")])

    def test_none_means_latest_stable(self):
        assert resolve_version_pattern(None, self.VERSIONS) == v("2.0")

    def test_latest_unstable(self):
        assert resolve_version_pattern(LATEST_UNSTABLE, self.VERSIONS) == v("2.1-rc1")

    def test_concrete(self):
        assert resolve_version_pattern(v("1.0"), self.VERSIONS) == v("1.0")

    def test_pattern_picks_highest(self):
        assert resolve_version_pattern(v("1*"), self.VERSIONS) == v("1.1")

    def test_range_picks_highest(self):
        assert resolve_version_pattern(VersionRange.of("[1.0,2.0)"), self.VERSIONS) == v("1.1")

    def test_wildcard_segment_picks_first_match(self):
        versions = [v("3.9.6"), v("3.9.4"), v("3.9.1"), v("3.9.0")]
        assert resolve_version_pattern(v("3.9.*"), versions) == v("3.9.6")

    def test_wildcard_segment_after_caller_filter(self):
        versions = [v("3.9.6"), v("3.9.4"), v("3.9.1"), v("3.9.0")]
        filtered = [x for x in versions if x != v("3.9.6")]
        assert resolve_version_pattern(v("3.9.*"), filtered) == v("3.9.4")

    def test_no_match(self):
        with pytest.raises(VersionResolutionError) as exc:
            resolve_version_pattern(v("3.0"), self.VERSIONS, tool="java", edition="corretto")
        assert "Could not find any version matching '3.0' for tool java/corretto" in str(exc.value)
        assert exc.value.tool == "java"

    def test_empty_candidates(self):
        with pytest.raises(VersionResolutionError):
            resolve_version_pattern(None, [])
