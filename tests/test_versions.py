"""Tests for version normalization policies."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from lockscan.versions import (
    canonical_version,
    normalize_go_version,
    path_major_prefix,
    semver_like_version,
    split_path_version,
)


class TestCanonicalVersion:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("v1.2.3", "v1.2.3"),
            ("v1", "v1.0.0"),
            ("v1.2", "v1.2.0"),
            ("v1.2.3-pre.1", "v1.2.3-pre.1"),
            ("v1.2.3+meta", "v1.2.3"),
            ("v2.0.0+incompatible", "v2.0.0+incompatible"),
            ("v0.0.0-20231215172524-abc123def456", "v0.0.0-20231215172524-abc123def456"),
        ],
    )
    def test_valid(self, raw, expected):
        assert canonical_version(raw) == expected

    @pytest.mark.parametrize("raw", ["1.2.3", "master", "", "v01.2.3", "v1.2.3-01", "v1.2-pre"])
    def test_invalid(self, raw):
        assert canonical_version(raw) == ""


class TestSplitPathVersion:
    def test_major_suffix(self):
        assert split_path_version("github.com/a/b/v2") == ("github.com/a/b", "/v2", True)

    def test_no_suffix(self):
        assert split_path_version("github.com/a/b") == ("github.com/a/b", "", True)

    def test_v1_suffix_is_rejected(self):
        assert split_path_version("github.com/a/b/v1") == ("github.com/a/b/v1", "", False)

    def test_gopkg_in(self):
        assert split_path_version("gopkg.in/yaml.v3") == ("gopkg.in/yaml", ".v3", True)

    def test_path_major_prefix(self):
        assert path_major_prefix("/v2") == "v2"
        assert path_major_prefix(".v3-unstable") == "v3"
        assert path_major_prefix("") == ""


class TestNormalizeGoVersion:
    def test_canonical_passthrough(self):
        with capture_logs() as logs:
            assert normalize_go_version("github.com/a/b", "v1.2") == "v1.2.0"
        assert logs == []

    def test_major_recovered_from_path(self):
        with capture_logs() as logs:
            assert normalize_go_version("github.com/a/b/v3", "master") == "v3.0.0"
        assert logs == []

    def test_defaults_to_zero_with_one_warning(self):
        with capture_logs() as logs:
            assert normalize_go_version("github.com/elastic/go-es", "master") == "v0.0.0"
        assert len(logs) == 1
        assert logs[0]["event"] == "lockfile.version_defaulted"
        assert logs[0]["log_level"] == "warning"
        assert logs[0]["module"] == "github.com/elastic/go-es"


class TestSemverLike:
    @pytest.mark.parametrize(
        "raw, expected",
        [("1.21", "1.21.0"), ("1.21.5", "1.21.5"), ("1.22rc1", "1.22.0"), ("1", "1.0.0")],
    )
    def test_padding(self, raw, expected):
        assert semver_like_version(raw) == expected
