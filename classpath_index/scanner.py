"""Archive entry scanning with recursive and non-recursive containment."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import AbstractSet, Callable, Optional, Tuple, Union

from .archive_url import open_archive, resolve_relative_path, to_archive
from .models import ArchiveEntry, frozen_ordered_set
from .resolver import is_class_resource

logger = logging.getLogger(__name__)

EntryPredicate = Callable[[ArchiveEntry], bool]


def class_entry_filter(entry: ArchiveEntry) -> bool:
    """Accept class file entries only."""
    return not entry.is_directory and is_class_resource(entry.name)


def get_entry(archive: zipfile.ZipFile, name: str) -> Optional[ArchiveEntry]:
    """Entry called *name*, trying its directory form ``name/`` as well."""
    if not name:
        return None
    for candidate in (name, name.rstrip("/") + "/"):
        try:
            info = archive.getinfo(candidate)
        except KeyError:
            continue
        return ArchiveEntry.from_zipinfo(info)
    return None


def is_directory_path(archive: zipfile.ZipFile, name: str) -> bool:
    """True if *name* is a directory of the archive, explicit or implied."""
    if not name:
        return True
    prefix = name.rstrip("/") + "/"
    return any(info.filename.startswith(prefix) for info in archive.infolist())


def _accepts(entry: ArchiveEntry, relative_path: str, recursive: bool) -> bool:
    name = entry.name
    if recursive:
        return name.startswith(relative_path)
    if entry.is_directory:
        return name == relative_path
    if not name.startswith(relative_path):
        return False
    return name.find("/", len(relative_path)) < 0


class ArchiveEntryScanner:
    """Select archive entries lying under a relative path.

    ``recursive=True`` lists a whole subtree; ``recursive=False`` lists one
    directory level. Both are a single containment test per entry name.
    """

    def filter_entries(
        self,
        archive: zipfile.ZipFile,
        predicate: Optional[EntryPredicate] = None,
    ) -> Tuple[ArchiveEntry, ...]:
        """All entries in central-directory order, narrowed by *predicate*."""
        entries = (ArchiveEntry.from_zipinfo(info) for info in archive.infolist())
        return tuple(entry for entry in entries if predicate is None or predicate(entry))

    def scan(
        self,
        archive: zipfile.ZipFile,
        relative_path: str = "",
        recursive: bool = True,
        predicate: Optional[EntryPredicate] = None,
    ) -> AbstractSet[ArchiveEntry]:
        """Return the entries under *relative_path* as a read-only ordered set.

        *predicate* runs first; rejected entries never reach the containment
        test. In non-recursive mode a directory path given without its trailing
        slash gets one; recursive selection is a plain prefix match.
        """
        if (
            not recursive
            and relative_path
            and not relative_path.endswith("/")
            and is_directory_path(archive, relative_path)
        ):
            relative_path += "/"

        selected = (
            entry
            for entry in self.filter_entries(archive, predicate)
            if _accepts(entry, relative_path, recursive)
        )
        return frozen_ordered_set(selected)

    def scan_path(
        self,
        archive_path: Union[str, Path],
        relative_path: str = "",
        recursive: bool = True,
        predicate: Optional[EntryPredicate] = None,
    ) -> AbstractSet[ArchiveEntry]:
        with open_archive(archive_path) as archive:
            return self.scan(archive, relative_path, recursive, predicate)

    def scan_url(
        self,
        url: str,
        recursive: bool = True,
        predicate: Optional[EntryPredicate] = None,
    ) -> AbstractSet[ArchiveEntry]:
        """Scan below the entry a ``jar:``/``file:`` URL points at."""
        relative_path = resolve_relative_path(url)
        with to_archive(url) as archive:
            entries = self.scan(archive, relative_path, recursive, predicate)
        logger.debug("Scanned %d entries under %s (recursive=%s)", len(entries), url, recursive)
        return entries

    def find_entry(self, url: str) -> Optional[ArchiveEntry]:
        """The entry *url* points at, or ``None`` if the archive lacks it."""
        relative_path = resolve_relative_path(url)
        with to_archive(url) as archive:
            return get_entry(archive, relative_path)


DEFAULT_SCANNER = ArchiveEntryScanner()
