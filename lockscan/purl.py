"""Canonical package identity, expressed as a package URL (purl)."""

from __future__ import annotations

from typing import Callable

from packageurl import PackageURL

from lockscan.extractors.pip_requirements import normalize_name
from lockscan.models import Ecosystem

IdentityFunc = Callable[[str, str, str], str | None]

_PURL_TYPES: dict[str, str] = {
    Ecosystem.GO: "golang",
    Ecosystem.PYPI: "pypi",
    Ecosystem.CRATES_IO: "cargo",
    Ecosystem.NPM: "npm",
}


def _split_namespace(name: str) -> tuple[str | None, str]:
    namespace, _, short = name.rpartition("/")
    return namespace or None, short


def from_package(ecosystem: str, name: str, version: str) -> PackageURL | None:
    """Build a :class:`PackageURL`, or None if the package cannot be identified."""
    purl_type = _PURL_TYPES.get(ecosystem)
    if purl_type is None or not name or not version:
        return None

    namespace: str | None = None
    if purl_type in ("golang", "npm"):
        namespace, name = _split_namespace(name)
    elif purl_type == "pypi":
        name = normalize_name(name)

    if not name:
        return None

    try:
        return PackageURL(type=purl_type, namespace=namespace, name=name, version=version)
    except ValueError:
        return None


def identify(ecosystem: str, name: str, version: str) -> str | None:
    """Return the canonical identity string for a package, or None.

    Stable for equal inputs and never raises.
    """
    purl = from_package(ecosystem, name, version)
    return purl.to_string() if purl is not None else None
