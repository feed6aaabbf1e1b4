"""Version normalization policies for ecosystems with non-literal versions.

The Go helpers follow the rules of the Go module system: versions are
semantic versions with a leading ``v``, ``v1`` and ``v1.2`` are shorthands,
and a module path may carry its major version as a ``/vN`` (or, for
``gopkg.in``, ``.vN``) suffix.
"""

from __future__ import annotations

import re

import structlog

log = structlog.get_logger("lockscan.extractors")

GO_ZERO_VERSION = "v0.0.0"

_NUM = r"(0|[1-9][0-9]*)"
_SEMVER_RE = re.compile(
    rf"^v{_NUM}"
    rf"(?:\.{_NUM}"
    rf"(?:\.{_NUM}"
    r"(?P<pre>-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r"(?P<build>\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r")?)?$"
)

_SEMVER_LIKE_RE = re.compile(r"^v?([0-9]+(?:\.[0-9]+)*)")


def _prerelease_ok(pre: str) -> bool:
    # numeric identifiers must not have leading zeros
    for ident in pre[1:].split("."):
        if ident.isdigit() and len(ident) > 1 and ident[0] == "0":
            return False
    return True


def canonical_version(version: str) -> str:
    """Return the canonical form of a Go module version, or "" if invalid.

    Build metadata is dropped, except ``+incompatible`` which is kept.
    """
    m = _SEMVER_RE.match(version)
    if m is None:
        return ""
    major, minor, patch = m.group(1), m.group(2), m.group(3)
    pre = m.group("pre") or ""
    build = m.group("build") or ""
    if pre and not _prerelease_ok(pre):
        return ""

    canonical = f"v{major}.{minor or '0'}.{patch or '0'}{pre}"
    if build == "+incompatible":
        canonical += build
    return canonical


def _split_gopkg_in(path: str) -> tuple[str, str, bool]:
    i = len(path)
    if path.endswith("-unstable"):
        i -= len("-unstable")
    while i > 0 and path[i - 1].isdigit():
        i -= 1
    if i <= 1 or path[i - 1] != "v" or path[i - 2] != ".":
        return path, "", False
    prefix, path_major = path[: i - 2], path[i - 2 :]
    if len(path_major) <= 2 or (path_major[2] == "0" and path_major != ".v0"):
        return path, "", False
    return prefix, path_major, True


def split_path_version(path: str) -> tuple[str, str, bool]:
    """Split a module path into ``(prefix, path_major, ok)``.

    ``path_major`` is ``"/vN"`` (or ``".vN"`` for gopkg.in) when the path
    carries a major version suffix, and ``""`` otherwise.
    """
    if path.startswith("gopkg.in/"):
        return _split_gopkg_in(path)

    i = len(path)
    dot = False
    while i > 0 and (path[i - 1].isdigit() or path[i - 1] == "."):
        if path[i - 1] == ".":
            dot = True
        i -= 1
    if i <= 1 or i == len(path) or path[i - 1] != "v" or path[i - 2] != "/":
        return path, "", True

    prefix, path_major = path[: i - 2], path[i - 2 :]
    if dot or len(path_major) <= 2 or path_major[2] == "0" or path_major == "/v1":
        return path, "", False
    return prefix, path_major, True


def path_major_prefix(path_major: str) -> str:
    """Turn a ``/vN`` or ``.vN`` suffix into the bare ``vN`` major."""
    if not path_major:
        return ""
    if path_major.startswith(".v") and path_major.endswith("-unstable"):
        path_major = path_major[: -len("-unstable")]
    return path_major[1:]


def normalize_go_version(path: str, version: str) -> str:
    """Resolve the version a go.mod declares for *path*.

    Falls back to the major version carried by the module path, then to
    ``v0.0.0`` with a warning, so extraction never fails on a symbolic
    version such as a branch name.
    """
    resolved = canonical_version(version)

    if not resolved:
        _, path_major, ok = split_path_version(path)
        if ok:
            resolved = canonical_version(path_major_prefix(path_major))

    if not resolved:
        log.warning(
            "lockfile.version_defaulted",
            module=path,
            version=version,
            default=GO_ZERO_VERSION,
        )
        return GO_ZERO_VERSION

    return resolved


def semver_like_components(version: str, count: int = 3) -> list[int]:
    """Leading numeric components of a loose version, zero-padded to *count*."""
    m = _SEMVER_LIKE_RE.match(version)
    components = [int(part) for part in m.group(1).split(".")] if m else []
    while len(components) < count:
        components.append(0)
    return components


def semver_like_version(version: str, count: int = 3) -> str:
    """``"1.21"`` -> ``"1.21.0"``."""
    return ".".join(str(c) for c in semver_like_components(version, count)[:count])
