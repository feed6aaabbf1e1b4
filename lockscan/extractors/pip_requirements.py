"""Extractor for pip requirements.txt files.

Only exact pins (``name==1.2.3``) carry a version; every other requirement
is dropped, since records without a version are never emitted.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterator

from lockscan.extractors.base import DepFile, deduplicate_packages, read_text
from lockscan.extractors.locations import (
    extract_name_position,
    extract_version_position,
    split_lines,
)
from lockscan.models import Ecosystem, FilePosition, PackageDetails

# Matches: package_name, optional extras, then everything else
_REQ_RE = re.compile(
    r"^([A-Za-z0-9]([A-Za-z0-9._-]*[A-Za-z0-9])?)"  # package name
    r"\s*(\[[^\]]*\])?"  # optional extras [extra1,extra2]
    r"\s*"
    r"(.*)?$",  # version specifiers
)

_EXACT_VERSION_RE = re.compile(r"^===?\s*([^\s,;*]+)$")

_COMMENT_RE = re.compile(r"(^|\s)#.*$")


def normalize_name(name: str) -> str:
    """PEP 503 normalization: ``My_Package.x`` -> ``my-package-x``."""
    return re.sub(r"[-_.]+", "-", name).lower()


def _logical_lines(lines: list[str]) -> Iterator[tuple[int, int, str]]:
    """Yield ``(first_line, last_line, text)`` with ``\\`` continuations joined."""
    start = 0
    parts: list[str] = []
    for idx, raw in enumerate(lines):
        line = raw.rstrip("\r")
        if not parts:
            start = idx
        if line.endswith("\\"):
            parts.append(line[:-1])
            continue
        parts.append(line)
        yield start + 1, idx + 1, " ".join(parts)
        parts = []
    if parts:
        yield start + 1, len(lines), " ".join(parts)


class PipRequirementsExtractor:
    detection_method = "pip-requirements"

    def should_extract(self, path: str) -> bool:
        return os.path.basename(path) == "requirements.txt"

    def extract(self, f: DepFile) -> list[PackageDetails]:
        lines = split_lines(read_text(f))
        packages: list[PackageDetails] = []

        for line_start, line_end, logical in _logical_lines(lines):
            line = _COMMENT_RE.sub("", logical).strip()
            if not line or line.startswith("-"):
                continue
            # URL and VCS requirements carry no version
            if "://" in line or line.startswith(("git+", "file:")):
                continue

            # Strip environment markers and per-requirement options
            line = line.split(";", 1)[0]
            line = line.split(" --", 1)[0].strip()

            m = _REQ_RE.match(line)
            if not m:
                continue
            written_name = m.group(1)
            exact = _EXACT_VERSION_RE.match((m.group(4) or "").strip())
            if not exact:
                continue
            version = exact.group(1)

            packages.append(
                PackageDetails(
                    name=normalize_name(written_name),
                    version=version,
                    ecosystem=Ecosystem.PYPI,
                    compare_as=Ecosystem.PYPI,
                    block_location=self._block(lines, line_start, line_end, f.path),
                    name_location=extract_name_position(
                        lines, written_name, line_start, line_start, f.path
                    ),
                    version_location=extract_version_position(
                        lines, version, line_start, line_start, f.path
                    ),
                )
            )

        return deduplicate_packages(packages)

    @staticmethod
    def _block(lines: list[str], line_start: int, line_end: int, filename: str) -> FilePosition:
        first = lines[line_start - 1]
        last = _COMMENT_RE.sub("", lines[line_end - 1].rstrip("\r")).rstrip()
        return FilePosition(
            line_start=line_start,
            line_end=line_end,
            column_start=len(first) - len(first.lstrip()) + 1,
            column_end=len(last) + 1,
            filename=filename,
        )
