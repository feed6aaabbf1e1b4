"""Extractor for Pipenv Pipfile.lock files."""

from __future__ import annotations

import json
import os

from tree_sitter import Node

from lockscan.exceptions import ParseError
from lockscan.extractors.base import DepFile, decode_text, deduplicate_packages
from lockscan.extractors.syntax import (
    SourceLines,
    json_members,
    json_root,
    json_string,
    pair_key,
    pair_value,
    parse_json,
)
from lockscan.models import Ecosystem, PackageDetails

# (section, dependency groups)
_SECTIONS = (("default", []), ("develop", ["dev"]))


class PipenvLockExtractor:
    detection_method = "pipenv-lock"

    def should_extract(self, path: str) -> bool:
        return os.path.basename(path) == "Pipfile.lock"

    def extract(self, f: DepFile) -> list[PackageDetails]:
        data = f.read()
        try:
            json.loads(decode_text(data, f.path))
        except json.JSONDecodeError as exc:
            raise ParseError(f"could not decode json from {f.path}: {exc}", f.path) from exc

        sections = json_members(json_root(parse_json(data)))
        lines = SourceLines(data, f.path)
        details: dict[str, PackageDetails] = {}

        for section, groups in _SECTIONS:
            pair = sections.get(section)
            if pair is not None:
                self._add_section(details, json_members(pair_value(pair)), groups, lines)

        return deduplicate_packages(details.values())

    @staticmethod
    def _add_section(
        details: dict[str, PackageDetails],
        entries: dict[str, Node],
        groups: list[str],
        lines: SourceLines,
    ) -> None:
        for name, pair in entries.items():
            version_pair = json_members(pair_value(pair)).get("version")
            if version_pair is None:
                continue
            version_node = pair_value(version_pair)
            raw = json_string(version_node)
            if raw is None:
                continue
            # "==2.1.1" -> "2.1.1"
            version = raw[2:]
            if not version:
                continue

            key = f"{name}@{version}"
            # A package locked in both sections keeps its production entry
            if key in details:
                continue

            details[key] = PackageDetails(
                name=name,
                version=version,
                ecosystem=Ecosystem.PYPI,
                compare_as=Ecosystem.PYPI,
                block_location=lines.span(pair),
                name_location=lines.inner_span(pair_key(pair)),
                version_location=lines.inner_span(version_node),
                dep_groups=list(groups),
            )
