"""Extractor for Rust Cargo.lock files."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from tree_sitter import Node

from lockscan.exceptions import ParseError
from lockscan.extractors.base import DepFile, decode_text, deduplicate_packages
from lockscan.extractors.syntax import (
    SourceLines,
    named_children,
    parse_toml,
    toml_key,
    toml_pairs,
    toml_string,
)
from lockscan.models import UNKNOWN_POSITION, Ecosystem, PackageDetails


@dataclass
class _PackageNode:
    """Where one package entry is written: its first and last node and its values."""

    start: Node
    end: Node
    values: dict[str, Node]


def _header_end(element: Node) -> Node:
    for child in element.children:
        if child.type == "]]":
            return child
    return element


def _package_nodes(document: Node) -> list[_PackageNode]:
    """Package entries in document order, from ``[[package]]`` tables or an inline array."""
    found: list[_PackageNode] = []
    for child in named_children(document):
        if child.type == "table_array_element":
            parts = list(named_children(child))
            if not parts or toml_key(parts[0]) != "package":
                continue
            pairs = [p for p in parts if p.type == "pair"]
            end = list(named_children(pairs[-1]))[-1] if pairs else _header_end(child)
            found.append(_PackageNode(child, end, toml_pairs(child)))
        elif child.type == "pair":
            parts = list(named_children(child))
            if len(parts) < 2 or toml_key(parts[0]) != "package" or parts[-1].type != "array":
                continue
            for item in named_children(parts[-1]):
                if item.type == "inline_table":
                    found.append(_PackageNode(item, item, toml_pairs(item)))
    return found


class CargoLockExtractor:
    detection_method = "cargo-lock"

    def should_extract(self, path: str) -> bool:
        return os.path.basename(path) == "Cargo.lock"

    def extract(self, f: DepFile) -> list[PackageDetails]:
        data = f.read()
        try:
            document = tomllib.loads(decode_text(data, f.path))
        except tomllib.TOMLDecodeError as exc:
            raise ParseError(f"could not decode toml from {f.path}: {exc}", f.path) from exc

        entries = document.get("package", [])
        if not isinstance(entries, list):
            raise ParseError(
                f"could not extract from {f.path}: 'package' is not an array of tables",
                f.path,
            )

        nodes = _package_nodes(parse_toml(data))
        if len(nodes) != len(entries):
            nodes = []
        lines = SourceLines(data, f.path)

        packages: list[PackageDetails] = []
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                continue
            name = entry.get("name")
            version = entry.get("version")
            if not isinstance(name, str) or not isinstance(version, str):
                continue
            if not name or not version:
                continue

            pkg = PackageDetails(
                name=name,
                version=version,
                ecosystem=Ecosystem.CRATES_IO,
                compare_as=Ecosystem.CRATES_IO,
                block_location=UNKNOWN_POSITION,
            )
            node = nodes[i] if nodes else None
            name_node = node.values.get("name") if node else None
            version_node = node.values.get("version") if node else None
            # Only trust spans whose written text is the decoded value
            if node and toml_string(name_node) == name and toml_string(version_node) == version:
                pkg.block_location = lines.between(node.start, node.end)
                pkg.name_location = lines.inner_span(name_node)
                pkg.version_location = lines.inner_span(version_node)
            packages.append(pkg)

        return deduplicate_packages(packages)
