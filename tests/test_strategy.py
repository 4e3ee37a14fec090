"""Tests for lazy_versions.strategy."""

from __future__ import annotations

import pytest
import semver

from lazy_versions.errors import InvalidBumpError, InvalidVersionError
from lazy_versions.strategy import (
    ACCEPTED_DECISIONS,
    Decision,
    apply_strategy,
    format_strategy,
    is_lower,
    is_valid_version,
    parse_strategy,
    parse_version,
    suggest_strategy,
)


class TestParseVersion:
    def test_full_semver(self) -> None:
        v = parse_version("1.2.3")
        assert (v.major, v.minor, v.patch) == (1, 2, 3)

    def test_two_part_version(self) -> None:
        assert str(parse_version("1.2")) == "1.2.0"

    def test_single_part_version(self) -> None:
        assert str(parse_version("5")) == "5.0.0"

    def test_keeps_prerelease(self) -> None:
        assert parse_version("1.2.3-rc.1").prerelease == "rc.1"

    @pytest.mark.parametrize("value", ["", "banana", "1.2.x", "1.2.3.4", "01.2.3"])
    def test_rejects_invalid(self, value: str) -> None:
        with pytest.raises(InvalidVersionError):
            parse_version(value)

    def test_is_valid_version(self) -> None:
        assert is_valid_version("1.2")
        assert not is_valid_version("latest")


class TestParseStrategy:
    @pytest.mark.parametrize("decision", sorted(ACCEPTED_DECISIONS))
    def test_accepts_keywords(self, decision: Decision) -> None:
        assert parse_strategy(decision.value) is decision

    def test_strips_whitespace(self) -> None:
        assert parse_strategy(" minor ") is Decision.MINOR

    def test_explicit_version(self) -> None:
        strategy = parse_strategy("1.2.3-beta.2")
        assert isinstance(strategy, semver.Version)
        assert str(strategy) == "1.2.3-beta.2"

    def test_rejects_undecided(self) -> None:
        with pytest.raises(InvalidVersionError):
            parse_strategy("undecided")

    @pytest.mark.parametrize("value", ["sideways", "1.2", "v1.2.3", ""])
    def test_rejects_other_values(self, value: str) -> None:
        with pytest.raises(InvalidVersionError) as exc_info:
            parse_strategy(value)
        assert exc_info.value.value == value

    def test_format_strategy(self) -> None:
        assert format_strategy(Decision.PRERELEASE) == "prerelease"
        assert format_strategy(semver.Version.parse("3.0.0")) == "3.0.0"


class TestApplyStrategy:
    @pytest.mark.parametrize(
        ("current", "decision", "expected"),
        [
            ("1.2.3", Decision.MAJOR, "2.0.0"),
            ("1.2.3", Decision.MINOR, "1.3.0"),
            ("1.2.3", Decision.PATCH, "1.2.4"),
            ("1.2.3-rc.1", Decision.MAJOR, "2.0.0"),
            ("1.2.3-rc.1", Decision.MINOR, "1.3.0"),
            ("1.2.3-rc.1", Decision.PATCH, "1.2.4"),
            ("0.9.9", Decision.MINOR, "0.10.0"),
            ("1.0.99", Decision.PATCH, "1.0.100"),
            ("1.2", Decision.PATCH, "1.2.1"),
        ],
    )
    def test_release_bumps(
        self, current: str, decision: Decision, expected: str
    ) -> None:
        assert apply_strategy(current, decision) == expected

    @pytest.mark.parametrize(
        ("decision", "expected"),
        [
            (Decision.PREMAJOR, "2.0.0-0"),
            (Decision.PREMINOR, "1.3.0-0"),
            (Decision.PREPATCH, "1.2.4-0"),
        ],
    )
    def test_pre_bumps_append_zero(self, decision: Decision, expected: str) -> None:
        assert apply_strategy("1.2.3", decision) == expected

    def test_prerelease_from_stable_bumps_patch(self) -> None:
        assert apply_strategy("1.2.3", Decision.PRERELEASE) == "1.2.4-0"

    def test_prerelease_twice(self) -> None:
        once = apply_strategy("1.2.4-0", Decision.PRERELEASE)
        twice = apply_strategy(once, Decision.PRERELEASE)
        assert once == "1.2.4-1"
        assert twice == "1.2.4-2"

    def test_prerelease_keeps_identifier(self) -> None:
        once = apply_strategy("2.0.0-rc.1", Decision.PRERELEASE)
        assert once == "2.0.0-rc.2"
        assert apply_strategy(once, Decision.PRERELEASE) == "2.0.0-rc.3"

    def test_prerelease_without_number(self) -> None:
        assert apply_strategy("1.0.0-alpha", Decision.PRERELEASE) == "1.0.0-alpha.0"

    def test_decline_keeps_version(self) -> None:
        assert apply_strategy("1.2.3", Decision.DECLINE) == "1.2.3"
        assert apply_strategy("1.2", Decision.DECLINE) == "1.2"

    def test_explicit_version_ignores_current(self) -> None:
        target = semver.Version.parse("0.5.0")
        assert apply_strategy("3.0.0", target) == "0.5.0"

    def test_explicit_version_without_current(self) -> None:
        assert apply_strategy(None, semver.Version.parse("1.2.3")) == "1.2.3"

    @pytest.mark.parametrize(
        "decision", [Decision.MAJOR, Decision.PRERELEASE, Decision.DECLINE]
    )
    def test_keyword_without_current(self, decision: Decision) -> None:
        with pytest.raises(InvalidBumpError):
            apply_strategy(None, decision)

    def test_invalid_current(self) -> None:
        with pytest.raises(InvalidVersionError):
            apply_strategy("next", Decision.MINOR)

    def test_undecided_is_not_applicable(self) -> None:
        with pytest.raises(InvalidVersionError):
            apply_strategy("1.0.0", Decision.UNDECIDED)


class TestSuggestStrategy:
    @pytest.mark.parametrize(
        ("current", "target", "expected"),
        [
            ("1.0.0", "2.0.0", Decision.MAJOR),
            ("1.0.0", "1.1.0", Decision.MINOR),
            ("1.0.0", "1.0.1", Decision.PATCH),
            ("1.0.0", "2.0.0-0", Decision.PREMAJOR),
            ("1.0.0", "1.1.0-0", Decision.PREMINOR),
            ("1.0.0-rc.1", "1.0.0-rc.2", Decision.PRERELEASE),
            ("1.2", "1.3.0", Decision.MINOR),
        ],
    )
    def test_single_match(self, current: str, target: str, expected: Decision) -> None:
        assert suggest_strategy(current, target) is expected

    def test_no_match(self) -> None:
        assert suggest_strategy("1.0.0", "1.0.5") is None

    def test_ambiguous_match(self) -> None:
        # prepatch and prerelease both give 1.0.1-0
        assert suggest_strategy("1.0.0", "1.0.1-0") is None

    def test_same_version(self) -> None:
        assert suggest_strategy("1.0.0", "1.0.0") is None


class TestIsLower:
    def test_ordering(self) -> None:
        assert is_lower("1.9.0", "2.0.0")
        assert not is_lower("2.0.0", "2.0.0")
        assert not is_lower("2.0.1", "2.0.0")

    def test_prerelease_sorts_before_release(self) -> None:
        assert is_lower("2.0.0-rc.1", "2.0.0")
        assert is_lower("2.0.0-rc.1", "2.0.0-rc.2")
