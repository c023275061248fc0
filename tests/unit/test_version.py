"""Tests for semantic version handling."""

from __future__ import annotations

import pytest

from semrel.core.version import BumpType, PreRelease, Version, parse_version
from semrel.exceptions import InvalidVersionError


class TestParse:
    """Tests for Version.parse()."""

    def test_parse_release(self):
        version = Version.parse("1.2.3")

        assert (version.major, version.minor, version.patch) == (1, 2, 3)
        assert version.prerelease is None
        assert version.build is None
        assert not version.is_prerelease

    def test_parse_prerelease_and_build(self):
        version = Version.parse("2.1.0-beta.3+build.7")

        assert version.prerelease == PreRelease(("beta", 3))
        assert version.build == "build.7"
        assert str(version) == "2.1.0-beta.3+build.7"

    def test_parse_with_prefix(self):
        assert parse_version("v1.0.0", prefix="v") == Version(1, 0, 0)

    def test_wrong_prefix_raises(self):
        with pytest.raises(InvalidVersionError, match="prefix"):
            Version.parse("release-1.0.0", prefix="v")

    @pytest.mark.parametrize(
        "text",
        ["1.2", "1.2.3.4", "01.2.3", "1.2.3-", "1.2.3-beta..1", "1.2.3-01", "v1.2.3", "latest"],
    )
    def test_invalid_versions(self, text: str):
        with pytest.raises(InvalidVersionError):
            Version.parse(text)

    def test_negative_component_rejected(self):
        with pytest.raises(InvalidVersionError):
            Version(1, -1, 0)


class TestOrdering:
    """SemVer precedence rules."""

    def test_core_precedence(self):
        assert Version(1, 0, 0) < Version(2, 0, 0)
        assert Version(2, 1, 0) > Version(2, 0, 9)
        assert Version(2, 1, 1) > Version(2, 1, 0)

    def test_prerelease_before_release(self):
        assert Version.parse("1.0.0-rc.1") < Version.parse("1.0.0")
        assert Version.parse("1.0.0") > Version.parse("1.0.0-rc.1")

    def test_semver_spec_sequence(self):
        """The precedence example from the SemVer 2.0.0 document."""
        ordered = [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-alpha.beta",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
            "1.0.0-rc.1",
            "1.0.0",
        ]
        versions = [Version.parse(v) for v in ordered]

        assert sorted(reversed(versions)) == versions

    def test_numeric_identifiers_compare_numerically(self):
        assert Version.parse("2.1.0-beta.10") > Version.parse("2.1.0-beta.9")

    def test_build_metadata_does_not_affect_precedence(self):
        plain = Version.parse("1.0.0")
        built = Version.parse("1.0.0+abc")

        assert plain != built
        assert not Version.parse("1.0.0+zzz") < Version.parse("1.0.0-rc.1")
        assert Version.parse("1.0.1+aaa") > Version.parse("1.0.0+zzz")

    def test_max(self):
        versions = [Version.parse(v) for v in ["1.9.0", "1.10.0", "1.10.0-beta.1"]]
        assert max(versions) == Version(1, 10, 0)

    def test_hashable(self):
        assert len({Version(1, 0, 0), Version.parse("1.0.0"), Version(1, 0, 1)}) == 2


class TestBump:
    """Tests for Version.bump()."""

    @pytest.mark.parametrize(
        ("start", "bump", "expected"),
        [
            ("1.2.3", BumpType.MAJOR, "2.0.0"),
            ("1.2.3", BumpType.MINOR, "1.3.0"),
            ("1.2.3", BumpType.PATCH, "1.2.4"),
            ("1.2.3", BumpType.NONE, "1.2.3"),
            ("0.3.1", BumpType.MAJOR, "1.0.0"),
        ],
    )
    def test_release_bumps(self, start: str, bump: BumpType, expected: str):
        assert str(Version.parse(start).bump(bump)) == expected

    @pytest.mark.parametrize(
        ("start", "bump", "expected"),
        [
            ("2.1.0-beta.2", BumpType.MINOR, "2.1.0"),
            ("2.1.0-beta.2", BumpType.PATCH, "2.1.0"),
            ("2.1.0-beta.2", BumpType.MAJOR, "3.0.0"),
            ("3.0.0-rc.1", BumpType.MAJOR, "3.0.0"),
            ("2.1.3-rc.1", BumpType.MINOR, "2.2.0"),
        ],
    )
    def test_prerelease_bumps(self, start: str, bump: BumpType, expected: str):
        assert str(Version.parse(start).bump(bump)) == expected

    def test_bump_drops_build(self):
        assert Version.parse("1.0.0+abc").bump(BumpType.PATCH) == Version(1, 0, 1)

    def test_with_prerelease(self):
        version = Version(2, 1, 0).with_prerelease("beta.3")

        assert str(version) == "2.1.0-beta.3"
        assert version.core == Version(2, 1, 0)


class TestPreRelease:
    def test_label_and_number(self):
        prerelease = PreRelease.parse("beta.3")

        assert prerelease.label == "beta"
        assert prerelease.number == 3

    def test_no_counter(self):
        prerelease = PreRelease.parse("alpha")

        assert prerelease.label == "alpha"
        assert prerelease.number is None

    def test_from_label(self):
        assert str(PreRelease.from_label("rc", 1)) == "rc.1"


class TestBumpType:
    def test_ordering(self):
        assert BumpType.NONE < BumpType.PATCH < BumpType.MINOR < BumpType.MAJOR
        assert max(BumpType.PATCH, BumpType.MINOR) == BumpType.MINOR

    def test_str(self):
        assert str(BumpType.MINOR) == "minor"
