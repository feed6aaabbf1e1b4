"""Cross-manifest consolidation of extracted packages."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from lockscan import purl
from lockscan.models import (
    ConsolidatedPackage,
    FilePosition,
    ManifestSource,
    PackageDetails,
    PackageLocation,
    PackageLocations,
    is_position_valid,
)
from lockscan.purl import IdentityFunc

log = structlog.get_logger("lockscan.grouper")


def _to_location(path: str, position: FilePosition | None) -> PackageLocation | None:
    if position is None or not is_position_valid(position):
        return None
    return PackageLocation.from_position(path, position)


def package_locations(path: str, pkg: PackageDetails) -> PackageLocations:
    """Flatten a record's spans, attributing them to the manifest at *path*."""
    return PackageLocations(
        block=PackageLocation.from_position(path, pkg.block_location),
        name=_to_location(path, pkg.name_location),
        version=_to_location(path, pkg.version_location),
    )


def group_by_purl(
    sources: Iterable[ManifestSource],
    identify: IdentityFunc = purl.identify,
) -> dict[str, ConsolidatedPackage]:
    """Merge packages from many manifests into one inventory keyed by identity.

    Sources are consumed in order, and so are the packages inside each one.
    The first record seen for an identity supplies its name, version and
    ecosystem; later records only contribute locations. Records without an
    identity are dropped, and records without a valid block span contribute
    no location.

    Duplicate block spans are skipped twice over: against the spans already
    seen in the current source (reset for every source) and against the
    spans already attached to the package.
    """
    unique: dict[str, ConsolidatedPackage] = {}
    package_hashes: dict[str, set[str]] = {}

    for source in sources:
        source_hashes: set[str] = set()

        for pkg in source.packages:
            identity = identify(pkg.ecosystem, pkg.name, pkg.version)
            if identity is None:
                log.debug(
                    "grouper.identity_unresolved",
                    source=source.path,
                    ecosystem=pkg.ecosystem,
                    name=pkg.name,
                    version=pkg.version,
                )
                continue

            existing = unique.get(identity)
            created = existing is None
            if existing is None:
                existing = ConsolidatedPackage(
                    name=pkg.name,
                    version=pkg.version,
                    ecosystem=pkg.ecosystem,
                )
                unique[identity] = existing
                package_hashes[identity] = set()

            if not is_position_valid(pkg.block_location):
                continue

            location = package_locations(source.path, pkg)
            location_hash = location.block.hash()
            if not created and location_hash in source_hashes:
                continue
            if location_hash in package_hashes[identity]:
                continue

            existing.locations.append(location)
            source_hashes.add(location_hash)
            package_hashes[identity].add(location_hash)

    return unique
