"""Extractor registry — map manifest paths to the extractor that parses them."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from lockscan.exceptions import UnsupportedManifestError
from lockscan.extractors import (
    CargoLockExtractor,
    GoModExtractor,
    NpmLockExtractor,
    PipenvLockExtractor,
    PipRequirementsExtractor,
)
from lockscan.extractors.base import Extractor

log = structlog.get_logger("lockscan.registry")


class ExtractorRegistry:
    """Ordered set of extractors keyed by ``detection_method``.

    Dispatch tries extractors in registration order; the first whose
    ``should_extract`` accepts a path wins. Build it once at startup and
    share it: lookups never mutate it.
    """

    def __init__(self, extractors: Iterable[Extractor] = ()) -> None:
        self._extractors: dict[str, Extractor] = {}
        for extractor in extractors:
            self.register(extractor)

    def register(self, extractor: Extractor) -> None:
        name = extractor.detection_method
        if name in self._extractors:
            raise ValueError(f"extractor {name!r} is already registered")
        self._extractors[name] = extractor
        log.debug("registry.extractor_registered", detection_method=name)

    def get(self, name: str) -> Extractor | None:
        return self._extractors.get(name)

    def list_all(self) -> list[Extractor]:
        return list(self._extractors.values())

    def find(self, path: str) -> Extractor | None:
        """Return the first extractor accepting *path*, or None."""
        for extractor in self._extractors.values():
            if extractor.should_extract(path):
                return extractor
        return None

    def extractor_for(self, path: str) -> Extractor:
        """Like :meth:`find`, but raise when nothing accepts *path*."""
        extractor = self.find(path)
        if extractor is None:
            raise UnsupportedManifestError(path)
        return extractor

    def should_extract(self, path: str) -> bool:
        return self.find(path) is not None

    def __len__(self) -> int:
        return len(self._extractors)


def create_default_registry() -> ExtractorRegistry:
    """Create a registry with every built-in extractor."""
    return ExtractorRegistry(
        [
            CargoLockExtractor(),
            GoModExtractor(),
            NpmLockExtractor(),
            PipenvLockExtractor(),
            PipRequirementsExtractor(),
        ]
    )
