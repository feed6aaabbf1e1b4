"""lockscan — consolidated dependency inventory from lockfiles."""

from lockscan.grouper import group_by_purl
from lockscan.models import (
    ConsolidatedPackage,
    Ecosystem,
    FilePosition,
    ManifestSource,
    PackageDetails,
    PackageLocation,
    PackageLocations,
    is_position_valid,
)
from lockscan.pipeline import ScanReport, scan
from lockscan.registry import ExtractorRegistry, create_default_registry

__all__ = [
    "ConsolidatedPackage",
    "Ecosystem",
    "ExtractorRegistry",
    "FilePosition",
    "ManifestSource",
    "PackageDetails",
    "PackageLocation",
    "PackageLocations",
    "ScanReport",
    "create_default_registry",
    "group_by_purl",
    "is_position_valid",
    "scan",
]
