"""Tests for the span helpers shared by extractors."""

from __future__ import annotations

from lockscan.extractors.locations import (
    extract_name_position,
    extract_version_position,
    split_lines,
)
from lockscan.models import FilePosition

_LINE = "require github.com/a/b v1.2.3"


class TestNamePosition:
    def test_found(self):
        pos = extract_name_position([_LINE], "github.com/a/b", 1, 1, "go.mod")
        assert pos == FilePosition(1, 1, 9, 23, filename="go.mod")

    def test_missing_token(self):
        assert extract_name_position([_LINE], "nope", 1, 1) is None

    def test_line_out_of_range(self):
        assert extract_name_position([_LINE], "github.com/a/b", 2, 2) is None


class TestVersionPosition:
    def test_found_uses_last_occurrence(self):
        pos = extract_version_position([_LINE], "1.2.3", 1, 1)
        assert pos == FilePosition(1, 1, 25, 29)

    def test_synthesized_version_has_no_position(self):
        assert extract_version_position(["require x master"], "0.0.0", 1, 1) is None

    def test_empty_version(self):
        assert extract_version_position([_LINE], "", 1, 1) is None


def test_split_lines_keeps_trailing_empty_line():
    assert split_lines("a\nb\n") == ["a", "b", ""]
