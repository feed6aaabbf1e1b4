"""Scan pipeline: discover manifests, extract them concurrently, consolidate."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from lockscan.exceptions import ExtractionTimeoutError, LockscanError
from lockscan.extractors.base import DepFile, LocalDepFile
from lockscan.grouper import group_by_purl
from lockscan.models import ConsolidatedPackage, ManifestSource
from lockscan.registry import ExtractorRegistry, create_default_registry

log = structlog.get_logger("lockscan.pipeline")

DEFAULT_CONCURRENCY = 8
DEFAULT_TIMEOUT = 30.0

# Directories that hold third-party or generated trees, not project manifests
_SKIP_DIRS = frozenset({".git", ".hg", ".svn", "node_modules", "vendor", ".venv", "__pycache__"})


def _env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


@dataclass
class ManifestFailure:
    """A manifest that was skipped because it could not be read or parsed."""

    path: str
    error: Exception

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "error": type(self.error).__name__,
            "message": str(self.error),
        }


@dataclass
class ScanReport:
    """Result of a full discover -> extract -> group run."""

    packages: dict[str, ConsolidatedPackage]
    sources: list[ManifestSource] = field(default_factory=list)
    failures: list[ManifestFailure] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "packages": {purl: pkg.to_dict() for purl, pkg in self.packages.items()},
            "failures": [f.to_dict() for f in self.failures],
        }


def discover_manifests(root: Path, registry: ExtractorRegistry) -> list[Path]:
    """Walk *root* and return the manifests *registry* can extract, sorted by path."""
    matches: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIP_DIRS)
        for filename in filenames:
            path = Path(dirpath) / filename
            if registry.should_extract(str(path)):
                matches.append(path)
    return sorted(matches)


def extract_dep_file(f: DepFile, registry: ExtractorRegistry) -> ManifestSource:
    """Extract one already-open manifest with the extractor *registry* selects."""
    extractor = registry.extractor_for(f.path)
    packages = extractor.extract(f)
    return ManifestSource(path=f.path, packages=tuple(packages))


def extract_manifest(path: str | Path, registry: ExtractorRegistry) -> ManifestSource:
    """Open and extract the manifest at *path*.

    Raises ``OSError`` when the file cannot be read and
    :class:`~lockscan.exceptions.LockscanError` when it cannot be parsed.
    """
    with LocalDepFile.open(path) as f:
        return extract_dep_file(f, registry)


async def extract_manifests(
    paths: Sequence[str | Path],
    registry: ExtractorRegistry,
    *,
    concurrency: int | None = None,
    timeout: float | None = None,
) -> tuple[list[ManifestSource], list[ManifestFailure]]:
    """Extract many manifests in worker threads.

    Each manifest gets its own thread and its own time budget. Failures are
    collected rather than raised, so one bad manifest never aborts the run.
    Sources come back in the order of *paths*, whatever order the workers
    finish in.
    """
    if concurrency is None:
        concurrency = _env_int("LOCKSCAN_CONCURRENCY", DEFAULT_CONCURRENCY)
    if timeout is None:
        timeout = _env_float("LOCKSCAN_EXTRACT_TIMEOUT", DEFAULT_TIMEOUT)
    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def _one(path: str | Path) -> ManifestSource | ManifestFailure:
        async with semaphore:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(extract_manifest, path, registry),
                    timeout=timeout if timeout > 0 else None,
                )
            except asyncio.TimeoutError:
                error: Exception = ExtractionTimeoutError(str(path), timeout)
            except (OSError, LockscanError) as exc:
                error = exc
            except Exception as exc:
                # a crashing extractor only loses its own manifest
                log.exception("pipeline.extractor_crashed", path=str(path))
                error = exc
        log.warning(
            "pipeline.manifest_failed",
            path=str(path),
            error_type=type(error).__name__,
            error=str(error),
        )
        return ManifestFailure(path=str(path), error=error)

    results = await asyncio.gather(*(_one(p) for p in paths))

    sources = [r for r in results if isinstance(r, ManifestSource)]
    failures = [r for r in results if isinstance(r, ManifestFailure)]
    log.info(
        "pipeline.extracted",
        manifests=len(sources),
        failed=len(failures),
        packages=sum(len(s.packages) for s in sources),
    )
    return sources, failures


async def scan(
    targets: Iterable[str | Path],
    registry: ExtractorRegistry | None = None,
    *,
    concurrency: int | None = None,
    timeout: float | None = None,
) -> ScanReport:
    """Scan directories and/or manifest files into one consolidated inventory.

    Directories are walked with :func:`discover_manifests`; files are taken
    as given. The merge order is the order of *targets*, with each
    directory's manifests in sorted path order.
    """
    if registry is None:
        registry = create_default_registry()

    paths: list[Path] = []
    for target in targets:
        target = Path(target)
        if target.is_dir():
            paths.extend(discover_manifests(target, registry))
        else:
            paths.append(target)

    sources, failures = await extract_manifests(
        paths, registry, concurrency=concurrency, timeout=timeout
    )
    packages = group_by_purl(sources)
    log.info("pipeline.grouped", unique_packages=len(packages))
    return ScanReport(packages=packages, sources=sources, failures=failures)
