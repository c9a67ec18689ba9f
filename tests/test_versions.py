"""Tests for version comparison and version range matching."""

import pytest

from pkg_audit.core.versions import (
    Comparison,
    VersionBound,
    get_comparator,
    in_range,
    matches,
    pep440_version_cmp,
    pkg_version_cmp,
)


class TestComparison:
    """Test comparator translation of three-way results."""

    @pytest.mark.parametrize("comparison, accepted", [
        (Comparison.LT, {-1}),
        (Comparison.LTE, {-1, 0}),
        (Comparison.EQ, {0}),
        (Comparison.GT, {1}),
        (Comparison.GTE, {0, 1}),
    ])
    def test_accepts(self, comparison, accepted):
        """Test each comparator accepts exactly its orderings."""
        for order in (-1, 0, 1):
            assert comparison.accepts(order) == (order in accepted)

    def test_symbols(self):
        """Test textual operators."""
        assert Comparison.LTE.symbol == "<="
        assert str(VersionBound("1.0", Comparison.GTE)) == ">=1.0"


class TestPkgVersionCmp:
    """Test ports/pkg version ordering."""

    @pytest.mark.parametrize("left, right, expected", [
        ("1.0.1", "1.0.2", -1),
        ("1.0.2", "1.0.2", 0),
        ("1.0", "1.0.0", 0),
        ("1.10", "1.9", 1),
        ("1.0_1", "1.0", 1),
        ("1.0_1", "1.0_2", -1),
        ("1.0,1", "2.0", 1),
        ("2.0", "1.0,1", -1),
        ("1.0a", "1.0", 1),
        ("1.0.a1", "1.0", -1),
        ("1.0.rc1", "1.0", -1),
        ("1.0.beta1", "1.0.rc1", -1),
        ("1.0.alpha2", "1.0.alpha10", -1),
        ("1.0pl1", "1.0", 1),
        ("0.9.8_1", "0.9.8", 1),
    ])
    def test_ordering(self, left, right, expected):
        """Test ordering of representative version pairs."""
        assert pkg_version_cmp(left, right) == expected

    def test_antisymmetric(self):
        """Test swapping operands flips the result."""
        versions = ["1.0", "1.0.1", "1.0a", "1.0_1", "1.0,1", "2.0.rc1", "0.9"]
        for left in versions:
            for right in versions:
                assert pkg_version_cmp(left, right) == -pkg_version_cmp(right, left)


class TestPep440VersionCmp:
    """Test PEP 440 ordering."""

    def test_prerelease_ordering(self):
        """Test release candidates sort before the release."""
        assert pep440_version_cmp("1.0.0rc1", "1.0.0") == -1
        assert pep440_version_cmp("2.0", "2.0.0") == 0
        assert pep440_version_cmp("1.0.post1", "1.0") == 1

    def test_invalid_version_falls_back_to_pkg(self):
        """Test non-PEP 440 versions are ordered with pkg rules."""
        assert pep440_version_cmp("2.0,1", "3.0") == 1


class TestGetComparator:
    """Test comparator lookup by scheme."""

    def test_known_schemes(self):
        """Test scheme names resolve case-insensitively."""
        assert get_comparator("pkg") is pkg_version_cmp
        assert get_comparator("PEP440") is pep440_version_cmp

    def test_unknown_scheme(self):
        """Test unknown schemes are rejected."""
        with pytest.raises(ValueError, match="Unknown version scheme"):
            get_comparator("semver")


class TestMatches:
    """Test bound and range evaluation."""

    @pytest.mark.parametrize("version", ["0", "1.0", "99.9.9_9,9", "anything"])
    def test_absent_bound_always_matches(self, version):
        """Test a missing bound never constrains the version."""
        assert matches(version, None)

    def test_single_bound(self):
        """Test one bound against versions on both sides."""
        bound = VersionBound("1.0.2", Comparison.LT)
        assert matches("1.0.1", bound)
        assert not matches("1.0.2", bound)
        assert not matches("1.0.3", bound)

    def test_range_between_bounds(self):
        """Test versions inside and outside a two-sided range."""
        lower = VersionBound("1.0.0", Comparison.GTE)
        upper = VersionBound("1.0.2", Comparison.LT)

        assert in_range("1.0.0", lower, upper)
        assert in_range("1.0.1", lower, upper)
        assert not in_range("1.0.2", lower, upper)
        assert not in_range("0.9.9", lower, upper)

    def test_range_with_missing_side(self):
        """Test a floor-only advisory."""
        lower = VersionBound("2.0", Comparison.GT)
        assert in_range("2.1", lower, None)
        assert not in_range("2.0", lower, None)

    def test_custom_comparator(self):
        """Test the comparator is pluggable."""
        bound = VersionBound("1.0.0", Comparison.LT)
        assert matches("1.0.0rc1", bound, pep440_version_cmp)
