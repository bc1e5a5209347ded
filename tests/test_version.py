"""Tests for version normalization, stability parsing and ordering."""

import pytest

from versioning.version import (
    BRANCH_PLACEHOLDER,
    Stability,
    is_dev_branch,
    normalize_version,
    parse_stability,
    parse_version,
)


class TestNormalizeVersion:
    """Composer-style normalization of concrete versions."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1.2", "1.2.0.0"),
            ("1.2.3", "1.2.3.0"),
            ("v1.2.3", "1.2.3.0"),
            ("1.2.3.4", "1.2.3.4"),
            ("v2.0-rc1", "2.0.0.0-RC1"),
            ("1.0.0-beta2", "1.0.0.0-beta2"),
            ("1.0.0-alpha", "1.0.0.0-alpha"),
            ("1.0.0-p1", "1.0.0.0-patch1"),
            ("1.0.0-stable", "1.0.0.0"),
            ("1.0.0-dev", "1.0.0.0-dev"),
            ("dev-main", "dev-main"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_version(raw) == expected

    def test_numbered_branch(self):
        placeholder = str(BRANCH_PLACEHOLDER)
        assert normalize_version("2.x-dev") == f"2.{placeholder}.{placeholder}.{placeholder}-dev"
        assert normalize_version("2.1.x-dev") == f"2.1.{placeholder}.{placeholder}-dev"

    @pytest.mark.parametrize("raw", ["", "   ", "foo", "latest"])
    def test_rejects_garbage(self, raw):
        with pytest.raises(ValueError):
            normalize_version(raw)


class TestStability:
    """Stability levels and their parsing."""

    def test_ordering(self):
        assert Stability.DEV < Stability.ALPHA < Stability.BETA < Stability.RC < Stability.STABLE

    def test_labels(self):
        assert Stability.RC.label == "RC"
        assert Stability.BETA.label == "beta"
        assert str(Stability.STABLE) == "stable"

    def test_from_token_is_case_insensitive(self):
        assert Stability.from_token("rc") is Stability.RC
        assert Stability.from_token("Stable") is Stability.STABLE
        assert Stability.from_token("DEV") is Stability.DEV

    def test_from_token_unknown(self):
        with pytest.raises(ValueError):
            Stability.from_token("nightly")

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1.0.0", Stability.STABLE),
            ("v1.0.0", Stability.STABLE),
            ("2.0.0-RC", Stability.RC),
            ("2.0.0-rc2", Stability.RC),
            ("2.0.0-beta", Stability.BETA),
            ("2.0.0-b1", Stability.BETA),
            ("2.0.0-alpha3", Stability.ALPHA),
            ("1.0.0-patch1", Stability.STABLE),
            ("dev-main", Stability.DEV),
            ("2.x-dev", Stability.DEV),
            ("1.0.0-RC1-dev", Stability.DEV),
        ],
    )
    def test_parse_stability(self, raw, expected):
        assert parse_stability(raw) is expected

    def test_is_dev_branch(self):
        assert is_dev_branch("dev-main")
        assert is_dev_branch("DEV-feature")
        assert not is_dev_branch("2.x-dev")
        assert not is_dev_branch("1.0.0")


class TestParsedVersionOrdering:
    """Ordering keys of parsed versions."""

    def test_numeric_not_lexical(self):
        assert parse_version("1.10.0").key() > parse_version("1.9.0").key()

    def test_fourth_component(self):
        assert parse_version("1.0.0.2").key() > parse_version("1.0.0.1").key()

    def test_prerelease_numbers(self):
        assert parse_version("2.0.0-RC2").key() > parse_version("2.0.0-RC1").key()

    def test_stable_above_prerelease(self):
        assert parse_version("2.0.0").key() > parse_version("2.0.0-RC1").key()
        assert parse_version("2.0.0-RC1").key() > parse_version("2.0.0-beta5").key()

    def test_patch_release_above_plain(self):
        assert parse_version("1.0.0-p1").key() > parse_version("1.0.0").key()

    def test_branch_has_no_key(self):
        parsed = parse_version("dev-main")
        assert parsed.is_branch
        assert parsed.stability is Stability.DEV
        with pytest.raises(ValueError):
            parsed.key()
