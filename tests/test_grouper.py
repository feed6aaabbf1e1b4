"""Tests for group_by_purl consolidation."""

from __future__ import annotations

import json

from structlog.testing import capture_logs

from lockscan.grouper import group_by_purl, package_locations
from lockscan.models import (
    UNKNOWN_POSITION,
    Ecosystem,
    FilePosition,
    ManifestSource,
    PackageDetails,
)


def _pkg(name, version, block=(1, 1, 1, 10), ecosystem=Ecosystem.GO, **kwargs):
    position = FilePosition(*block) if block else UNKNOWN_POSITION
    return PackageDetails(
        name=name,
        version=version,
        ecosystem=ecosystem,
        compare_as=ecosystem,
        block_location=position,
        **kwargs,
    )


def _source(path, *packages):
    return ManifestSource(path=path, packages=tuple(packages))


GIN = "pkg:golang/github.com/gin-gonic/gin@1.9.1"


class TestPackageLocations:
    def test_filename_comes_from_source_path(self):
        pkg = _pkg(
            "github.com/gin-gonic/gin",
            "1.9.1",
            name_location=FilePosition(6, 6, 2, 26),
            version_location=None,
        )
        locs = package_locations("a/go.mod", pkg)
        assert locs.block.filename == "a/go.mod"
        assert locs.name.filename == "a/go.mod"
        assert (locs.name.column_start, locs.name.column_end) == (2, 26)
        assert locs.version is None

    def test_invalid_sub_spans_are_dropped(self):
        pkg = _pkg("x", "1", name_location=UNKNOWN_POSITION)
        assert package_locations("go.mod", pkg).name is None


class TestGroupByPurl:
    def test_empty(self):
        assert group_by_purl([]) == {}

    def test_same_package_in_two_manifests(self):
        result = group_by_purl(
            [
                _source("a/go.mod", _pkg("github.com/gin-gonic/gin", "1.9.1", (6, 6, 2, 33))),
                _source("b/go.mod", _pkg("github.com/gin-gonic/gin", "1.9.1", (4, 4, 2, 33))),
            ]
        )
        assert list(result) == [GIN]
        assert [loc.block.filename for loc in result[GIN].locations] == ["a/go.mod", "b/go.mod"]

    def test_same_source_listed_twice_adds_no_duplicate_span(self):
        src = _source("go.mod", _pkg("github.com/gin-gonic/gin", "1.9.1", (6, 6, 2, 33)))
        result = group_by_purl([src, src])
        assert len(result[GIN].locations) == 1

    def test_distinct_spans_in_one_file_are_kept(self):
        result = group_by_purl(
            [
                _source(
                    "go.mod",
                    _pkg("github.com/gin-gonic/gin", "1.9.1", (6, 6, 2, 33)),
                    _pkg("github.com/gin-gonic/gin", "1.9.1", (9, 9, 2, 33)),
                )
            ]
        )
        assert [loc.block.line_start for loc in result[GIN].locations] == [6, 9]

    def test_invalid_block_creates_package_without_location(self):
        result = group_by_purl(
            [_source("go.mod", _pkg("stdlib", "1.21.0", block=None))]
        )
        assert result["pkg:golang/stdlib@1.21.0"].locations == []

    def test_first_record_supplies_scalars(self):
        result = group_by_purl(
            [
                _source("a.txt", _pkg("My_Package", "1.0", ecosystem=Ecosystem.PYPI)),
                _source("b.txt", _pkg("my-package", "1.0", ecosystem=Ecosystem.PYPI)),
            ]
        )
        assert list(result) == ["pkg:pypi/my-package@1.0"]
        assert result["pkg:pypi/my-package@1.0"].name == "My_Package"

    def test_versions_are_separate_entries(self):
        result = group_by_purl(
            [
                _source(
                    "go.mod",
                    _pkg("github.com/a/b", "1.0.0", (3, 3, 2, 20)),
                    _pkg("github.com/a/b", "1.1.0", (4, 4, 2, 20)),
                )
            ]
        )
        assert set(result) == {
            "pkg:golang/github.com/a/b@1.0.0",
            "pkg:golang/github.com/a/b@1.1.0",
        }

    def test_unresolved_identity_is_logged_and_dropped(self):
        with capture_logs() as logs:
            result = group_by_purl([_source("go.mod", _pkg("github.com/a/b", ""))])
        assert result == {}
        assert logs[0]["event"] == "grouper.identity_unresolved"
        assert logs[0]["log_level"] == "debug"
        assert logs[0]["source"] == "go.mod"

    def test_custom_identity_function(self):
        result = group_by_purl(
            [_source("go.mod", _pkg("a", "1"), _pkg("b", "2", (2, 2, 1, 5)))],
            identify=lambda ecosystem, name, version: "everything",
        )
        assert list(result) == ["everything"]
        assert result["everything"].name == "a"
        assert len(result["everything"].locations) == 2

    def test_membership_does_not_depend_on_source_order(self):
        a = _source("a/go.mod", _pkg("github.com/a/b", "1.0.0"), _pkg("github.com/c/d", "2.0.0"))
        b = _source("b/go.mod", _pkg("github.com/a/b", "1.0.0"))
        forward = group_by_purl([a, b])
        backward = group_by_purl([b, a])
        assert set(forward) == set(backward)
        for key in forward:
            assert {loc.block for loc in forward[key].locations} == {
                loc.block for loc in backward[key].locations
            }

    def test_grouping_is_idempotent(self):
        sources = [
            _source("a/go.mod", _pkg("github.com/a/b", "1.0.0")),
            _source("b/go.mod", _pkg("github.com/a/b", "1.0.0")),
        ]
        assert group_by_purl(sources) == group_by_purl(sources)

    def test_to_dict_is_json_serializable(self):
        result = group_by_purl(
            [_source("go.mod", _pkg("github.com/gin-gonic/gin", "1.9.1", (6, 6, 2, 33)))]
        )
        data = json.loads(json.dumps({k: v.to_dict() for k, v in result.items()}))
        entry = data[GIN]
        assert entry["ecosystem"] == "Go"
        assert entry["locations"][0]["block"]["line_start"] == 6
        assert entry["locations"][0]["name"] is None
