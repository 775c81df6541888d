"""Tests for pkgtree.core.version module."""

from __future__ import annotations

import pytest

from pkgtree.core.version import (
    InvalidVersionError,
    Version,
    VersionStatus,
    classify_versions,
)


class TestVersionParse:
    """Tests for Version.parse."""

    def test_three_segments(self) -> None:
        v = Version.parse("1.2.3")
        assert v.release == (1, 2, 3)
        assert v.prerelease == ""
        assert not v.is_prerelease

    def test_four_segments(self) -> None:
        assert Version.parse("1.2.3.4").release == (1, 2, 3, 4)

    def test_prerelease_and_metadata(self) -> None:
        v = Version.parse("2.0.0-beta.1+abc")
        assert v.release == (2, 0, 0)
        assert v.prerelease == "beta.1"
        assert v.metadata == "abc"
        assert v.is_prerelease

    def test_str_round_trips_text(self) -> None:
        assert str(Version.parse("1.0.0-rc.2")) == "1.0.0-rc.2"

    @pytest.mark.parametrize("text", ["", "abc", "1..2", "1.2.x", "-1.0"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(InvalidVersionError):
            Version.parse(text)

    def test_invalid_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Version.parse("nope")


class TestVersionOrdering:
    """Tests for Version comparison."""

    def test_numeric_not_lexicographic(self) -> None:
        assert Version.parse("1.10.0") > Version.parse("1.9.0")

    def test_prerelease_before_release(self) -> None:
        assert Version.parse("1.0.0-alpha") < Version.parse("1.0.0")

    def test_prerelease_labels(self) -> None:
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

    def test_prerelease_case_insensitive(self) -> None:
        assert Version.parse("1.0.0-Beta") == Version.parse("1.0.0-beta")

    def test_trailing_zeros_equal(self) -> None:
        assert Version.parse("1.0") == Version.parse("1.0.0")
        assert Version.parse("1.0.0.0") == Version.parse("1")
        assert hash(Version.parse("1.0")) == hash(Version.parse("1.0.0"))

    def test_metadata_ignored(self) -> None:
        assert Version.parse("1.0.0+a") == Version.parse("1.0.0+b")


class TestClassifyVersions:
    """Tests for classify_versions."""

    def test_absent(self) -> None:
        assert classify_versions(None, Version.parse("1.0")) is VersionStatus.ABSENT

    def test_older(self) -> None:
        assert classify_versions(Version.parse("1.0"), Version.parse("2.0")) is VersionStatus.OLDER

    def test_newer(self) -> None:
        assert classify_versions(Version.parse("2.0"), Version.parse("1.0")) is VersionStatus.NEWER

    def test_same(self) -> None:
        assert classify_versions(Version.parse("1.0.0"), Version.parse("1.0")) is VersionStatus.SAME


class TestNuGetForms:
    """Tests for NuGet's two- and four-segment versions."""

    def test_revision_sorts_after_patch(self) -> None:
        assert Version.parse("1.2.3.4") > Version.parse("1.2.3")
        assert Version.parse("1.2.3.4") < Version.parse("1.2.4")

    def test_revision_beats_prerelease(self) -> None:
        assert Version.parse("1.2.3.1-beta") > Version.parse("1.2.3")

    def test_semver_holds_first_three_segments(self) -> None:
        v = Version.parse("1.2-rc.1")
        assert str(v.semver) == "1.2.0-rc.1"

    @pytest.mark.parametrize("text", ["1.2.3.4.5", "1.0.0-", "1.0.0+", "1.0.0-be$ta"])
    def test_rejected_forms(self, text: str) -> None:
        with pytest.raises(InvalidVersionError):
            Version.parse(text)
