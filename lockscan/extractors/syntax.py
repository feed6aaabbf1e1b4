"""Syntax trees for JSON and TOML manifests — tree-sitter nodes with source spans.

Values are validated and decoded by ``json``/``tomllib``; the trees here only
answer *where* something is written. tree-sitter reports points as
(0-based row, byte column); :class:`SourceLines` turns them into the 1-based
character positions used everywhere else.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Iterator

import tree_sitter_json as tsjson
import tree_sitter_toml as tstoml
from tree_sitter import Language, Node, Parser

from lockscan.models import FilePosition

JSON_LANGUAGE = Language(tsjson.language())
TOML_LANGUAGE = Language(tstoml.language())


def parse_json(data: bytes) -> Node:
    return Parser(JSON_LANGUAGE).parse(data).root_node


def parse_toml(data: bytes) -> Node:
    return Parser(TOML_LANGUAGE).parse(data).root_node


def named_children(node: Node) -> Iterator[Node]:
    """Named children of *node*, comments excluded."""
    for child in node.named_children:
        if child.type != "comment":
            yield child


class SourceLines:
    """Maps tree-sitter points of one manifest onto :class:`FilePosition`."""

    def __init__(self, data: bytes, filename: str = "") -> None:
        self._lines = data.split(b"\n")
        self.filename = filename

    def column(self, point: tuple[int, int]) -> int:
        row, byte_column = point
        return len(self._lines[row][:byte_column].decode("utf-8", errors="replace")) + 1

    def between(self, start: Node, end: Node) -> FilePosition:
        """Span from the first character of *start* to just past *end*."""
        return FilePosition(
            line_start=start.start_point[0] + 1,
            line_end=end.end_point[0] + 1,
            column_start=self.column(start.start_point),
            column_end=self.column(end.end_point),
            filename=self.filename,
        )

    def span(self, node: Node) -> FilePosition:
        return self.between(node, node)

    def inner_span(self, node: Node) -> FilePosition:
        """Span of a single-line quoted string without its quotes."""
        outer = self.span(node)
        return dataclasses.replace(
            outer,
            column_start=outer.column_start + 1,
            column_end=outer.column_end - 1,
        )


# ── JSON ─────────────────────────────────────────────────────────────────


def json_root(document: Node) -> Node | None:
    """The top-level value of a parsed JSON document."""
    return next(named_children(document), None)


def json_string(node: Node | None) -> str | None:
    """Decoded value of a string node, or None for any other node."""
    if node is None or node.type != "string" or node.text is None:
        return None
    return json.loads(node.text)


def json_members(node: Node | None) -> dict[str, Node]:
    """Pairs of an object node keyed by decoded key; a repeated key keeps the last pair."""
    members: dict[str, Node] = {}
    if node is None or node.type != "object":
        return members
    for child in named_children(node):
        if child.type != "pair":
            continue
        key = json_string(child.child_by_field_name("key"))
        if key is not None:
            members[key] = child
    return members


def pair_key(pair: Node) -> Node:
    return pair.child_by_field_name("key")


def pair_value(pair: Node) -> Node:
    return pair.child_by_field_name("value")


def raw_string_content(node: Node) -> str:
    """Text between a string node's quotes, escapes left as written."""
    return (node.text or b"").decode("utf-8", errors="replace")[1:-1]


# ── TOML ─────────────────────────────────────────────────────────────────


def toml_key(node: Node) -> str:
    text = (node.text or b"").decode("utf-8", errors="replace")
    if node.type == "quoted_key":
        return text[1:-1]
    if node.type == "dotted_key":
        return ".".join(toml_key(part) for part in named_children(node))
    return text


def toml_pairs(table: Node) -> dict[str, Node]:
    """Value nodes of the ``key = value`` lines directly inside *table*."""
    values: dict[str, Node] = {}
    for child in named_children(table):
        if child.type != "pair":
            continue
        parts = list(named_children(child))
        if len(parts) >= 2:
            values[toml_key(parts[0])] = parts[-1]
    return values


def toml_string(node: Node | None) -> str | None:
    """Contents of a single-line TOML string node, escapes left as written."""
    if node is None or node.type != "string" or node.text is None:
        return None
    if node.text.startswith((b'"""', b"'''")):
        return None
    return raw_string_content(node)
