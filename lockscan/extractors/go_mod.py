"""Extractor for Go go.mod files."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass

from lockscan.exceptions import ParseError
from lockscan.extractors.base import DepFile, deduplicate_packages, read_text
from lockscan.extractors.locations import (
    extract_name_position,
    extract_version_position,
    split_lines,
)
from lockscan.models import Ecosystem, FilePosition, PackageDetails
from lockscan.versions import normalize_go_version, semver_like_version

# Quoted strings, the replace arrow, or a bare word (which may contain "=")
_TOKEN_RE = re.compile(r'"(?:[^"\\]|\\.)*"|`[^`]*`|=>|[()]|(?:[^\s"`=()]|=(?!>))+')

# Directives that carry no dependency information
_IGNORED_VERBS = frozenset(
    {"module", "exclude", "retract", "toolchain", "godebug", "tool", "ignore"}
)
_BLOCK_VERBS = frozenset(
    {"require", "replace", "exclude", "retract", "godebug", "tool", "ignore"}
)


@dataclass
class _Directive:
    verb: str
    args: list[str]
    line: int
    column_start: int
    column_end: int

    def position(self, filename: str) -> FilePosition:
        return FilePosition(
            line_start=self.line,
            line_end=self.line,
            column_start=self.column_start,
            column_end=self.column_end,
            filename=filename,
        )


@dataclass
class _Replace:
    old_path: str
    old_version: str
    new_path: str
    new_version: str
    directive: _Directive


def _strip_comment(line: str) -> str:
    """Drop a trailing ``//`` comment that is not inside a quoted string."""
    quote = ""
    i = 0
    while i < len(line):
        ch = line[i]
        if quote:
            if ch == "\\" and quote == '"':
                i += 2
                continue
            if ch == quote:
                quote = ""
        elif ch in "\"`":
            quote = ch
        elif line.startswith("//", i):
            return line[:i]
        i += 1
    return line


def _unquote(token: str) -> str:
    if token.startswith("`") and token.endswith("`") and len(token) >= 2:
        return token[1:-1]
    if token.startswith('"'):
        return json.loads(token)
    return token


class GoModExtractor:
    detection_method = "go-mod"

    def should_extract(self, path: str) -> bool:
        return os.path.basename(path) == "go.mod"

    def extract(self, f: DepFile) -> list[PackageDetails]:
        text = read_text(f)
        lines = split_lines(text)

        try:
            directives = self._parse_directives(lines)
            requires, replaces, go_version = self._interpret(directives)
        except ValueError as exc:
            raise ParseError(f"could not extract from {f.path}: {exc}", f.path) from exc

        packages: dict[str, PackageDetails] = {}

        for directive, path, version in requires:
            packages[f"{path}@{version}"] = self._package(
                lines, f.path, directive, path, version
            )

        for replace in replaces:
            self._apply_replace(packages, lines, f.path, replace)

        if go_version:
            packages["stdlib"] = PackageDetails(
                name="stdlib",
                version=semver_like_version(go_version),
                ecosystem=Ecosystem.GO,
                compare_as=Ecosystem.GO,
            )

        return deduplicate_packages(packages.values())

    # ── parsing ──────────────────────────────────────────────────────────

    @staticmethod
    def _parse_directives(lines: list[str]) -> list[_Directive]:
        directives: list[_Directive] = []
        block_verb: str | None = None

        for line_no, raw_line in enumerate(lines, start=1):
            code = _strip_comment(raw_line)
            matches = list(_TOKEN_RE.finditer(code))
            if not matches:
                continue
            tokens = [m.group(0) for m in matches]

            if block_verb is not None:
                if tokens == [")"]:
                    block_verb = None
                    continue
                verb, args = block_verb, tokens
            elif len(tokens) >= 2 and tokens[1] == "(":
                verb = tokens[0]
                if verb not in _BLOCK_VERBS:
                    raise ValueError(f"go.mod:{line_no}: unknown block type: {verb}")
                if tokens[2:] == [")"]:
                    continue
                if len(tokens) > 2:
                    raise ValueError(f"go.mod:{line_no}: syntax error: unexpected {tokens[2]}")
                block_verb = verb
                continue
            else:
                verb, args = tokens[0], tokens[1:]

            directives.append(
                _Directive(
                    verb=verb,
                    args=args,
                    line=line_no,
                    column_start=matches[0].start() + 1,
                    column_end=matches[-1].end() + 1,
                )
            )

        if block_verb is not None:
            raise ValueError(f"go.mod: unterminated {block_verb} block")
        return directives

    @staticmethod
    def _interpret(
        directives: list[_Directive],
    ) -> tuple[list[tuple[_Directive, str, str]], list[_Replace], str]:
        requires: list[tuple[_Directive, str, str]] = []
        replaces: list[_Replace] = []
        go_version = ""

        for d in directives:
            if d.verb == "require":
                if len(d.args) != 2:
                    raise ValueError(f"go.mod:{d.line}: usage: require module/path v1.2.3")
                path = _unquote(d.args[0])
                requires.append((d, path, normalize_go_version(path, _unquote(d.args[1]))))
            elif d.verb == "replace":
                replaces.append(GoModExtractor._parse_replace(d))
            elif d.verb == "go":
                if len(d.args) != 1:
                    raise ValueError(f"go.mod:{d.line}: usage: go 1.23")
                go_version = _unquote(d.args[0])
            elif d.verb not in _IGNORED_VERBS:
                raise ValueError(f"go.mod:{d.line}: unknown directive: {d.verb}")

        return requires, replaces, go_version

    @staticmethod
    def _parse_replace(d: _Directive) -> _Replace:
        args = d.args
        arrow = 1 if len(args) >= 2 and args[1] == "=>" else 2
        if len(args) not in (arrow + 2, arrow + 3) or args[arrow] != "=>":
            raise ValueError(
                f"go.mod:{d.line}: usage: replace module/path [v1.2.3] => "
                "other/module v1.4 or replace module/path [v1.2.3] => ../local/directory"
            )

        old_path = _unquote(args[0])
        old_version = ""
        if arrow == 2:
            old_version = normalize_go_version(old_path, _unquote(args[1]))

        new_path = _unquote(args[arrow + 1])
        new_version = ""
        if len(args) == arrow + 3:
            new_version = normalize_go_version(new_path, _unquote(args[arrow + 2]))

        return _Replace(old_path, old_version, new_path, new_version, d)

    # ── package building ─────────────────────────────────────────────────

    @staticmethod
    def _package(
        lines: list[str],
        filename: str,
        directive: _Directive,
        path: str,
        version: str,
    ) -> PackageDetails:
        bare_version = version.removeprefix("v")
        block = directive.position(filename)
        return PackageDetails(
            name=path,
            version=bare_version,
            ecosystem=Ecosystem.GO,
            compare_as=Ecosystem.GO,
            block_location=block,
            name_location=extract_name_position(
                lines, path, block.line_start, block.line_end, filename
            ),
            version_location=extract_version_position(
                lines, bare_version, block.line_start, block.line_end, filename
            ),
        )

    def _apply_replace(
        self,
        packages: dict[str, PackageDetails],
        lines: list[str],
        filename: str,
        replace: _Replace,
    ) -> None:
        if replace.old_version:
            # Only that exact version is replaced, and only if it was required
            key = f"{replace.old_path}@{replace.old_version}"
            targets = [key] if key in packages else []
        else:
            targets = [k for k, pkg in packages.items() if pkg.name == replace.old_path]

        removals: list[str] = []
        updates: dict[str, PackageDetails] = {}
        for key in targets:
            if not replace.new_version:
                # The replacement is scanned on its own, nothing to keep here
                removals.append(key)
                continue
            updates[key] = self._package(
                lines, filename, replace.directive, replace.new_path, replace.new_version
            )

        for key in removals:
            del packages[key]
        packages.update(updates)
