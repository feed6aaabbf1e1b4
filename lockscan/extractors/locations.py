"""Helpers that turn raw manifest text into 1-based line/column spans."""

from __future__ import annotations

from lockscan.models import FilePosition


def split_lines(text: str) -> list[str]:
    return text.split("\n")


def extract_name_position(
    lines: list[str],
    name: str,
    line_start: int,
    line_end: int,
    filename: str = "",
) -> FilePosition | None:
    """Locate the first occurrence of *name* on the declaration's first line.

    The returned column end is exclusive. Returns None when the token is
    not literally present.
    """
    if not name or line_start < 1 or line_start > len(lines):
        return None

    column = lines[line_start - 1].find(name) + 1
    if column == 0:
        return None

    return FilePosition(
        line_start=line_start,
        line_end=line_end,
        column_start=column,
        column_end=column + len(name),
        filename=filename,
    )


def extract_version_position(
    lines: list[str],
    version: str,
    line_start: int,
    line_end: int,
    filename: str = "",
) -> FilePosition | None:
    """Locate the last occurrence of *version* on the declaration's first line.

    The returned column end points at the version's last character. Returns
    None for versions that were synthesized rather than written in the file
    (e.g. a defaulted ``0.0.0``).
    """
    if not version or line_start < 1 or line_start > len(lines):
        return None

    column = lines[line_start - 1].rfind(version) + 1
    if column == 0:
        return None

    return FilePosition(
        line_start=line_start,
        line_end=line_end,
        column_start=column,
        column_end=column + len(version) - 1,
        filename=filename,
    )
