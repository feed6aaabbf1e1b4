"""Extractor for npm package-lock.json files (lockfile versions 1 to 3)."""

from __future__ import annotations

import dataclasses
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
    raw_string_content,
)
from lockscan.models import Ecosystem, FilePosition, PackageDetails

_NODE_MODULES = "node_modules/"


def _flag(entry: dict[str, Node], key: str) -> bool:
    pair = entry.get(key)
    return pair is not None and pair_value(pair).type == "true"


def _dep_groups(entry: dict[str, Node]) -> list[str]:
    groups: list[str] = []
    if _flag(entry, "dev") or _flag(entry, "devOptional"):
        groups.append("dev")
    if _flag(entry, "optional") or _flag(entry, "devOptional"):
        groups.append("optional")
    return groups


def _usable_version(entry: dict[str, Node]) -> tuple[str, Node | None]:
    pair = entry.get("version")
    if pair is None:
        return "", None
    node = pair_value(pair)
    version = json_string(node)
    # git, file and alias specs are not registry versions
    if not version or ":" in version:
        return "", None
    return version, node


def _key_tail_span(key: Node, name: str, lines: SourceLines) -> FilePosition | None:
    """Span of *name* at the end of a quoted key, if it is written there verbatim."""
    if not raw_string_content(key).endswith(name):
        return None
    inner = lines.inner_span(key)
    return dataclasses.replace(inner, column_start=inner.column_end - len(name))


class NpmLockExtractor:
    detection_method = "npm-lock"

    def should_extract(self, path: str) -> bool:
        return os.path.basename(path) == "package-lock.json"

    def extract(self, f: DepFile) -> list[PackageDetails]:
        data = f.read()
        try:
            json.loads(decode_text(data, f.path))
        except json.JSONDecodeError as exc:
            raise ParseError(f"could not decode json from {f.path}: {exc}", f.path) from exc

        root = json_members(json_root(parse_json(data)))
        lines = SourceLines(data, f.path)
        packages: list[PackageDetails] = []

        packages_pair = root.get("packages")
        if packages_pair is not None and pair_value(packages_pair).type == "object":
            self._from_packages(packages, json_members(pair_value(packages_pair)), lines)
        elif "dependencies" in root:
            self._from_dependencies(
                packages, json_members(pair_value(root["dependencies"])), lines
            )

        return deduplicate_packages(packages)

    def _from_packages(
        self,
        out: list[PackageDetails],
        entries: dict[str, Node],
        lines: SourceLines,
    ) -> None:
        for key, pair in entries.items():
            entry = json_members(pair_value(pair))
            if not key or not entry or _flag(entry, "link"):
                continue

            if _NODE_MODULES in key:
                name = key.rsplit(_NODE_MODULES, 1)[1]
                name_location = _key_tail_span(pair_key(pair), name, lines)
            else:
                name_node = pair_value(entry["name"]) if "name" in entry else None
                name = json_string(name_node) or ""
                name_location = lines.inner_span(name_node) if name else None

            version, version_node = _usable_version(entry)
            if not name or version_node is None:
                continue

            out.append(
                self._package(pair, entry, name, version, name_location, version_node, lines)
            )

    def _from_dependencies(
        self,
        out: list[PackageDetails],
        entries: dict[str, Node],
        lines: SourceLines,
    ) -> None:
        for name, pair in entries.items():
            entry = json_members(pair_value(pair))
            if not entry:
                continue

            version, version_node = _usable_version(entry)
            if version_node is not None:
                name_location = _key_tail_span(pair_key(pair), name, lines)
                out.append(
                    self._package(
                        pair, entry, name, version, name_location, version_node, lines
                    )
                )

            if "dependencies" in entry:
                self._from_dependencies(
                    out, json_members(pair_value(entry["dependencies"])), lines
                )

    @staticmethod
    def _package(
        pair: Node,
        entry: dict[str, Node],
        name: str,
        version: str,
        name_location: FilePosition | None,
        version_node: Node,
        lines: SourceLines,
    ) -> PackageDetails:
        return PackageDetails(
            name=name,
            version=version,
            ecosystem=Ecosystem.NPM,
            compare_as=Ecosystem.NPM,
            block_location=lines.span(pair),
            name_location=name_location,
            version_location=lines.inner_span(version_node),
            dep_groups=_dep_groups(entry),
        )
