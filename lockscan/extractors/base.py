"""Extractor interface and the helpers every extractor shares."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import IO, Protocol, runtime_checkable

import structlog

from lockscan.models import PackageDetails

log = structlog.get_logger("lockscan.extractors")


@runtime_checkable
class DepFile(Protocol):
    """A readable manifest handle that knows where it came from."""

    path: str

    def read(self, size: int = -1) -> bytes: ...


class LocalDepFile:
    """A manifest opened from the local filesystem."""

    def __init__(self, fileobj: IO[bytes], path: str) -> None:
        self._fileobj = fileobj
        self.path = path

    @classmethod
    def open(cls, path: str | Path) -> LocalDepFile:
        """Open *path* for reading. Raises ``OSError`` if it cannot be opened."""
        return cls(open(path, "rb"), str(path))

    def read(self, size: int = -1) -> bytes:
        return self._fileobj.read(size)

    def close(self) -> None:
        self._fileobj.close()

    def __enter__(self) -> LocalDepFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@runtime_checkable
class Extractor(Protocol):
    """Interface that every manifest extractor must satisfy."""

    detection_method: str

    def should_extract(self, path: str) -> bool: ...

    def extract(self, f: DepFile) -> list[PackageDetails]: ...


def decode_text(data: bytes, path: str) -> str:
    """Decode manifest bytes as UTF-8; undecodable bytes are replaced."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        log.debug("extractor.lossy_decode", path=path, offset=exc.start)
        return data.decode("utf-8", errors="replace")


def read_text(f: DepFile) -> str:
    """Read the whole handle as text."""
    return decode_text(f.read(), f.path)


def deduplicate_packages(packages: Iterable[PackageDetails]) -> list[PackageDetails]:
    """Collapse records sharing ``name@version``; the last one wins."""
    details: dict[str, PackageDetails] = {}
    for pkg in packages:
        details[f"{pkg.name}@{pkg.version}"] = pkg
    return list(details.values())


def extract_from_file(path: str | Path, extractor: Extractor) -> list[PackageDetails]:
    """Open *path* and run *extractor* over it."""
    with LocalDepFile.open(path) as f:
        return extractor.extract(f)
