"""Data models shared by extractors, the grouper and the pipeline."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Ecosystem(str, Enum):
    """Package manager namespace a record belongs to."""

    GO = "Go"
    PYPI = "PyPI"
    CRATES_IO = "crates.io"
    NPM = "npm"


@dataclass(frozen=True)
class FilePosition:
    """A 1-based line/column span inside a manifest.

    Non-positive fields mean the span could not be determined.
    """

    line_start: int
    line_end: int
    column_start: int
    column_end: int
    filename: str = ""


def is_position_valid(position: FilePosition | None) -> bool:
    """Return True when every numeric field of *position* is strictly positive."""
    if position is None:
        return False
    return (
        position.line_start > 0
        and position.line_end > 0
        and position.column_start > 0
        and position.column_end > 0
    )


UNKNOWN_POSITION = FilePosition(line_start=0, line_end=0, column_start=0, column_end=0)


@dataclass
class PackageDetails:
    """A single dependency declaration found in one manifest."""

    name: str
    version: str
    ecosystem: Ecosystem
    compare_as: Ecosystem
    block_location: FilePosition = UNKNOWN_POSITION
    name_location: FilePosition | None = None
    version_location: FilePosition | None = None
    dep_groups: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ManifestSource:
    """The packages extracted from one manifest file."""

    path: str
    packages: tuple[PackageDetails, ...] = ()


@dataclass(frozen=True)
class PackageLocation:
    """A flattened span, as reported for a consolidated package."""

    filename: str
    line_start: int
    line_end: int
    column_start: int
    column_end: int

    @classmethod
    def from_position(cls, filename: str, position: FilePosition) -> PackageLocation:
        return cls(
            filename=filename,
            line_start=position.line_start,
            line_end=position.line_end,
            column_start=position.column_start,
            column_end=position.column_end,
        )

    def hash(self) -> str:
        """Content hash of the span, stable across processes."""
        raw = "\x00".join(
            [
                self.filename,
                str(self.line_start),
                str(self.line_end),
                str(self.column_start),
                str(self.column_end),
            ]
        )
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "line_start": self.line_start,
            "line_end": self.line_end,
            "column_start": self.column_start,
            "column_end": self.column_end,
        }


@dataclass(frozen=True)
class PackageLocations:
    """Block span of a declaration plus its optional name and version spans."""

    block: PackageLocation
    name: PackageLocation | None = None
    version: PackageLocation | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "block": self.block.to_dict(),
            "name": self.name.to_dict() if self.name else None,
            "version": self.version.to_dict() if self.version else None,
        }


@dataclass
class ConsolidatedPackage:
    """One inventory entry, keyed by canonical identity in the grouper output."""

    name: str
    version: str
    ecosystem: Ecosystem
    locations: list[PackageLocations] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "ecosystem": self.ecosystem.value,
            "locations": [loc.to_dict() for loc in self.locations],
        }
