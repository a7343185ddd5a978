"""Tests for NuGet version, range and framework parsing."""

import pytest

from versioning import (
    order_versions,
    parse_framework,
    parse_range,
    parse_version,
    try_parse_version,
)


def _versions(*texts):
    return [parse_version(t) for t in texts]


class TestParseVersion:
    """Tests for NuGet version parsing and comparison."""

    def test_parses_all_parts(self):
        """Prerelease labels and build metadata are split out."""
        v = parse_version("1.2.3-beta.1+sha.abc")
        assert (v.major, v.minor, v.patch, v.revision) == (1, 2, 3, 0)
        assert v.release_labels == ("beta", "1")
        assert v.metadata == "sha.abc"
        assert v.is_prerelease
        assert str(v) == "1.2.3-beta.1"
        assert v.original == "1.2.3-beta.1+sha.abc"

    def test_short_forms_are_padded(self):
        """Missing parts default to zero and compare equal."""
        assert parse_version("1.0") == parse_version("1.0.0")
        assert parse_version("1.0.0.0") == parse_version("1")
        assert str(parse_version("1.0")) == "1.0.0"

    def test_fourth_part_is_kept(self):
        """A revision part shows in the normalized text."""
        v = parse_version("4.0.0.12")
        assert v.revision == 12
        assert str(v) == "4.0.0.12"
        assert v > parse_version("4.0.0")

    def test_prerelease_sorts_before_release(self):
        """Release versions are greater than their prereleases."""
        assert parse_version("1.0.0-alpha") < parse_version("1.0.0")
        assert parse_version("1.0.0-beta.2") < parse_version("1.0.0-beta.10")

    def test_labels_compare_case_insensitively(self):
        """Label casing does not affect equality or hashing."""
        a = parse_version("2.0.0-RC1")
        b = parse_version("2.0.0-rc1")
        assert a == b
        assert len({a, b}) == 1

    def test_metadata_is_ignored_for_equality(self):
        """Build metadata does not take part in comparisons."""
        assert parse_version("1.0.0+one") == parse_version("1.0.0+two")

    def test_invalid_version_raises(self):
        """Garbage text is rejected."""
        with pytest.raises(ValueError):
            parse_version("not-a-version")

    def test_try_parse_returns_none(self):
        """try_parse_version swallows invalid input."""
        assert try_parse_version("x.y") is None
        assert try_parse_version(None) is None
        assert try_parse_version("3.1") == parse_version("3.1.0")


class TestOrderVersions:
    """Tests for display ordering of version lists."""

    def test_latest_stable_is_promoted(self):
        """The latest stable version leads, the rest stay descending."""
        ordered = order_versions(_versions("1.0.0", "2.0.0", "2.1.0-beta", "1.5.0"))
        assert [str(v) for v in ordered] == ["2.0.0", "2.1.0-beta", "1.5.0", "1.0.0"]

    def test_prerelease_excluded(self):
        """Prereleases are dropped when not requested."""
        ordered = order_versions(_versions("1.0.0", "2.0.0", "2.1.0-beta", "1.5.0"), include_prerelease=False)
        assert [str(v) for v in ordered] == ["2.0.0", "1.5.0", "1.0.0"]

    def test_only_prereleases_stay_descending(self):
        """Without a stable version the list is plain descending."""
        ordered = order_versions(_versions("1.0.0-a", "1.0.0-c", "1.0.0-b"))
        assert [str(v) for v in ordered] == ["1.0.0-c", "1.0.0-b", "1.0.0-a"]

    def test_duplicates_removed(self):
        """Equivalent spellings collapse to one entry."""
        ordered = order_versions(_versions("1.0", "1.0.0", "1.0.0.0"))
        assert len(ordered) == 1

    def test_empty(self):
        """No versions yields an empty list."""
        assert order_versions([]) == []


class TestParseRange:
    """Tests for NuGet range notation."""

    def test_bare_version_is_minimum(self):
        """A bare version means 'this version or higher'."""
        r = parse_range("1.0")
        assert r.satisfies(parse_version("1.0.0"))
        assert r.satisfies(parse_version("42.0.0"))
        assert not r.satisfies(parse_version("0.9.0"))
        assert str(r) == "[1.0.0, )"

    def test_exact(self):
        """[x] admits only x."""
        r = parse_range("[1.2.3]")
        assert r.is_exact
        assert r.satisfies(parse_version("1.2.3"))
        assert not r.satisfies(parse_version("1.2.4"))
        assert str(r) == "[1.2.3]"

    def test_half_open_interval(self):
        """[a,b) includes a and excludes b."""
        r = parse_range("[1.0,2.0)")
        assert r.satisfies(parse_version("1.0.0"))
        assert r.satisfies(parse_version("1.9.9"))
        assert not r.satisfies(parse_version("2.0.0"))

    def test_open_lower_bound(self):
        """(,b] has no minimum."""
        r = parse_range("(,2.0]")
        assert r.min_version is None
        assert r.satisfies(parse_version("0.0.1"))
        assert r.satisfies(parse_version("2.0.0"))
        assert not r.satisfies(parse_version("2.0.1"))

    def test_exclusive_minimum(self):
        """(a,) excludes a."""
        r = parse_range("(1.0,)")
        assert not r.satisfies(parse_version("1.0.0"))
        assert r.satisfies(parse_version("1.0.1"))

    def test_floating_range(self):
        """1.* floats over every 1.x version."""
        r = parse_range("1.*")
        assert r.satisfies(parse_version("1.0.0"))
        assert r.satisfies(parse_version("1.99.0"))
        assert not r.satisfies(parse_version("2.0.0"))
        assert str(r) == "1.*"

    def test_star_matches_everything(self):
        """* admits any version."""
        r = parse_range("*")
        assert r.satisfies(parse_version("0.0.0"))
        assert r.satisfies(parse_version("100.0.0"))

    @pytest.mark.parametrize("text", ["", "[2.0,1.0]", "(1.0)", "[1.0,2.0,3.0]", "(,)", "[abc]"])
    def test_invalid_ranges(self, text):
        """Malformed or empty ranges are rejected."""
        with pytest.raises(ValueError):
            parse_range(text)


class TestParseFramework:
    """Tests for target framework monikers."""

    def test_modern_net(self):
        """net8.0 is a managed runtime framework."""
        tf = parse_framework("net8.0")
        assert tf.is_netcoreapp
        assert tf.dotnet_framework_name == ".NETCoreApp,Version=v8.0"
        assert tf.short_folder_name == "net8.0"

    def test_platform_suffix(self):
        """A platform suffix is preserved in the short name."""
        tf = parse_framework("net6.0-windows")
        assert tf.platform == "windows"
        assert tf.short_folder_name == "net6.0-windows"

    def test_netcoreapp(self):
        """netcoreapp monikers keep their prefix."""
        tf = parse_framework("netcoreapp3.1")
        assert tf.is_netcoreapp
        assert tf.short_folder_name == "netcoreapp3.1"
        assert tf.dotnet_framework_name == ".NETCoreApp,Version=v3.1"

    def test_netstandard(self):
        """netstandard is not a runtime framework."""
        tf = parse_framework("netstandard2.0")
        assert not tf.is_netcoreapp
        assert tf.dotnet_framework_name == ".NETStandard,Version=v2.0"

    def test_net_framework(self):
        """Compact net4xy monikers round-trip."""
        tf = parse_framework("net472")
        assert tf.dotnet_framework_name == ".NETFramework,Version=v4.7.2"
        assert tf.short_folder_name == "net472"
        assert parse_framework("net48").short_folder_name == "net48"

    def test_full_name(self):
        """Full framework names are accepted."""
        tf = parse_framework(".NETCoreApp,Version=v8.0")
        assert tf == parse_framework("net8.0")

    @pytest.mark.parametrize("text", ["", "java17", "net4.x"])
    def test_unknown(self, text):
        """Unrecognized monikers raise ValueError."""
        with pytest.raises(ValueError):
            parse_framework(text)
