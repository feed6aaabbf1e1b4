"""Manifest extractors, one per lockfile format."""

from lockscan.extractors.base import (
    DepFile,
    Extractor,
    LocalDepFile,
    deduplicate_packages,
    extract_from_file,
)
from lockscan.extractors.cargo_lock import CargoLockExtractor
from lockscan.extractors.go_mod import GoModExtractor
from lockscan.extractors.npm_lock import NpmLockExtractor
from lockscan.extractors.pip_requirements import PipRequirementsExtractor
from lockscan.extractors.pipenv_lock import PipenvLockExtractor

__all__ = [
    "CargoLockExtractor",
    "DepFile",
    "Extractor",
    "GoModExtractor",
    "LocalDepFile",
    "NpmLockExtractor",
    "PipRequirementsExtractor",
    "PipenvLockExtractor",
    "deduplicate_packages",
    "extract_from_file",
]
