"""Core data models shared by the scanner, extractor and indexer."""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet, Iterable, Optional, TypeVar

T = TypeVar("T")


def frozen_ordered_set(items: Iterable[T]) -> AbstractSet[T]:
    """Return an insertion-ordered, duplicate-free, read-only set view."""
    return dict.fromkeys(items).keys()


EMPTY_SET: AbstractSet = frozen_ordered_set(())


@dataclass(frozen=True)
class ArchiveEntry:
    """One record of an archive's central directory."""

    name: str
    is_directory: bool
    file_size: int = 0

    @classmethod
    def from_zipinfo(cls, info: zipfile.ZipInfo) -> "ArchiveEntry":
        return cls(name=info.filename, is_directory=info.is_dir(), file_size=info.file_size)


class SkipReason(str, Enum):
    """Why a classpath location contributed no class names."""

    NOT_FOUND = "not_found"
    UNSUPPORTED = "unsupported"
    CORRUPT_ARCHIVE = "corrupt_archive"
    UNREADABLE = "unreadable"


@dataclass(frozen=True)
class LocationScan:
    """Result of scanning one classpath location.

    Either ``class_names`` holds what was found, or ``skip_reason`` says why
    the location was passed over (``class_names`` is then empty).
    """

    location: str
    class_names: AbstractSet[str] = field(default_factory=lambda: EMPTY_SET)
    skip_reason: Optional[SkipReason] = None
    detail: str = ""

    @property
    def skipped(self) -> bool:
        return self.skip_reason is not None

    @classmethod
    def skip(cls, location: str, reason: SkipReason, detail: str = "") -> "LocationScan":
        return cls(location=location, skip_reason=reason, detail=detail)
