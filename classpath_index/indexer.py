"""Classpath indexer: discover locations, scan them, publish a frozen index.

Building happens in three phases:

1. **Discover** the ordered, duplicate-free classpath locations
   (bootstrap archives, ``CLASSPATH``, configured extras).
2. **Scan** each location on its own (optionally in a thread pool, one task
   per location) into a :class:`~classpath_index.models.LocationScan`.
3. **Assemble** the scans into an :class:`IndexSnapshot` and publish it with
   a single reference assignment.

Snapshots are never mutated after publication, so readers need no locking.
A rebuild assembles a complete new snapshot and swaps it in.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import AbstractSet, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from . import config_manager
from .archive_url import open_archive
from .config import (
    BOOT_CLASSPATH_ENV,
    CLASS_EXTENSION,
    CLASSPATH_ENV,
    DEFAULT_MAX_WORKERS,
    JAR_EXTENSION,
    JAVA_HOME_ENV,
)
from .errors import ArchiveIOError, ArchiveNotFoundError, IndexNotBuiltError, NullInputError
from .models import EMPTY_SET, LocationScan, SkipReason, frozen_ordered_set
from .paths import scan_directory, suffix_filter
from .resolver import resolve_class_name, resolve_class_name_in_directory, resolve_package_name
from .scanner import DEFAULT_SCANNER, ArchiveEntryScanner, class_entry_filter

logger = logging.getLogger(__name__)


# ===================================================================
# Location discovery
# ===================================================================

def _split_path_list(value: str) -> List[str]:
    return [part for part in value.split(os.pathsep) if part]


def bootstrap_locations() -> List[str]:
    """Bootstrap classpath: ``CPI_BOOT_CLASSPATH``, else the JDK's own archives."""
    explicit = os.environ.get(BOOT_CLASSPATH_ENV)
    if explicit is not None:
        return _split_path_list(explicit)

    java_home = os.environ.get(JAVA_HOME_ENV)
    if not java_home:
        return []
    locations: List[str] = []
    for lib_dir in (Path(java_home) / "jre" / "lib", Path(java_home) / "lib"):
        if lib_dir.is_dir():
            locations.extend(str(path) for path in sorted(lib_dir.glob(f"*{JAR_EXTENSION}")))
    return locations


def application_locations() -> List[str]:
    """Application classpath from the ``CLASSPATH`` environment variable."""
    return _split_path_list(os.environ.get(CLASSPATH_ENV, ""))


def discover_locations(
    bootstrap: Optional[Sequence[str]] = None,
    classpath: Optional[Sequence[str]] = None,
    extra: Iterable[str] = (),
) -> List[str]:
    """Ordered, duplicate-free union of bootstrap, application and extra locations.

    ``None`` for *bootstrap* or *classpath* means "read from the environment";
    pass an empty sequence to leave that group out.
    """
    if bootstrap is None:
        bootstrap = bootstrap_locations()
    if classpath is None:
        classpath = application_locations()
    ordered = dict.fromkeys(
        location
        for group in (bootstrap, classpath, extra)
        for location in group
        if location
    )
    return list(ordered)


# ===================================================================
# Per-location scanning
# ===================================================================

def _scan_directory_location(location: str, root: Path, recursive: bool) -> LocationScan:
    try:
        class_files = scan_directory(root, recursive, suffix_filter(CLASS_EXTENSION))
    except OSError as exc:
        logger.warning("Skipping unreadable classpath directory %s: %s", location, exc)
        return LocationScan.skip(location, SkipReason.UNREADABLE, str(exc))

    class_names = (resolve_class_name_in_directory(root, class_file) for class_file in class_files)
    return LocationScan(location=location, class_names=frozen_ordered_set(name for name in class_names if name.strip()))


def _scan_archive_location(
    location: str,
    archive_path: Path,
    recursive: bool,
    scanner: ArchiveEntryScanner,
) -> LocationScan:
    try:
        with open_archive(archive_path) as archive:
            entries = scanner.scan(archive, "", recursive, class_entry_filter)
    except ArchiveNotFoundError as exc:
        logger.debug("Archive vanished before scanning %s: %s", location, exc)
        return LocationScan.skip(location, SkipReason.NOT_FOUND, str(exc))
    except (ArchiveIOError, zipfile.BadZipFile, OSError) as exc:
        logger.warning("Skipping corrupt classpath archive %s: %s", location, exc)
        return LocationScan.skip(location, SkipReason.CORRUPT_ARCHIVE, str(exc))

    class_names = (resolve_class_name(entry.name) for entry in entries)
    return LocationScan(location=location, class_names=frozen_ordered_set(name for name in class_names if name.strip()))


def find_class_names_in_location(
    location: Optional[str],
    recursive: bool = True,
    extension: str = JAR_EXTENSION,
    scanner: ArchiveEntryScanner = DEFAULT_SCANNER,
) -> LocationScan:
    """Scan one directory or archive for class names.

    Locations that are missing, of an unsupported kind, or unreadable yield
    an empty result carrying a :class:`SkipReason` instead of raising.

    Raises:
        NullInputError: if *location* is ``None``.
    """
    if location is None:
        raise NullInputError("Classpath location must not be None")

    path = Path(location)
    if path.is_dir():
        return _scan_directory_location(location, path, recursive)
    if path.is_file() and location.endswith(extension):
        return _scan_archive_location(location, path, recursive, scanner)
    if not path.exists():
        logger.debug("Skipping missing classpath location %s", location)
        return LocationScan.skip(location, SkipReason.NOT_FOUND)
    logger.debug("Skipping unsupported classpath location %s", location)
    return LocationScan.skip(location, SkipReason.UNSUPPORTED, f"not a directory or *{extension} file")


# ===================================================================
# Published index
# ===================================================================

@dataclass(frozen=True)
class IndexSnapshot:
    """Immutable index triple plus the scans it was assembled from."""

    location_to_class_names: Mapping[str, AbstractSet[str]]
    class_name_to_location: Mapping[str, str]
    package_name_to_class_names: Mapping[str, AbstractSet[str]]
    scans: Tuple[LocationScan, ...] = ()

    @classmethod
    def assemble(cls, scans: Iterable[LocationScan]) -> "IndexSnapshot":
        """Build and freeze the three maps from per-location scans.

        When two locations hold the same class name, the later one wins in
        ``class_name_to_location``.
        """
        scans = tuple(scans)

        location_to_class_names: Dict[str, AbstractSet[str]] = {}
        for scan in scans:
            location_to_class_names[scan.location] = scan.class_names

        class_name_to_location: Dict[str, str] = {}
        for location, class_names in location_to_class_names.items():
            for class_name in class_names:
                previous = class_name_to_location.get(class_name)
                if previous is not None and previous != location:
                    logger.debug("Class %s in %s shadows the copy in %s", class_name, location, previous)
                class_name_to_location[class_name] = location

        grouped: Dict[str, List[str]] = {}
        for class_name in class_name_to_location:
            grouped.setdefault(resolve_package_name(class_name), []).append(class_name)

        return cls(
            location_to_class_names=MappingProxyType(location_to_class_names),
            class_name_to_location=MappingProxyType(class_name_to_location),
            package_name_to_class_names=MappingProxyType(
                {package_name: frozen_ordered_set(names) for package_name, names in grouped.items()}
            ),
            scans=scans,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation."""
        return {
            "locations": {location: list(names) for location, names in self.location_to_class_names.items()},
            "packages": {package: list(names) for package, names in self.package_name_to_class_names.items()},
            "skipped": [
                {"location": scan.location, "reason": scan.skip_reason.value, "detail": scan.detail}
                for scan in self.scans
                if scan.skip_reason is not None
            ],
        }


def _validated_locations(locations: Iterable[Optional[str]]) -> Tuple[str, ...]:
    ordered: List[str] = []
    for location in locations:
        if location is None:
            raise NullInputError("Classpath location must not be None")
        ordered.append(location)
    return tuple(dict.fromkeys(ordered))


class ClasspathIndex:
    """Owned, build-once index over an ordered set of classpath locations.

    Call :meth:`build` once before querying; :meth:`rebuild` swaps in a new
    snapshot. Queries are plain lookups on the current snapshot and are safe
    from any number of threads.
    """

    def __init__(
        self,
        locations: Iterable[str],
        *,
        recursive: bool = True,
        extension: str = JAR_EXTENSION,
        max_workers: int = DEFAULT_MAX_WORKERS,
        scanner: ArchiveEntryScanner = DEFAULT_SCANNER,
    ) -> None:
        self._locations = _validated_locations(locations)
        self.recursive = recursive
        self.extension = extension
        self.max_workers = max(1, max_workers)
        self.scanner = scanner
        self._snapshot: Optional[IndexSnapshot] = None
        self._build_lock = threading.Lock()

    @classmethod
    def from_environment(
        cls,
        extra: Iterable[str] = (),
        *,
        include_bootstrap: bool = True,
        include_environment: bool = True,
        **kwargs: Any,
    ) -> "ClasspathIndex":
        """Discover locations from the environment and build the index."""
        locations = discover_locations(
            bootstrap=None if include_bootstrap else (),
            classpath=None if include_environment else (),
            extra=extra,
        )
        index = cls(locations, **kwargs)
        index.build()
        return index

    @classmethod
    def from_settings(
        cls,
        extra: Iterable[str] = (),
        *,
        include_environment: Optional[bool] = None,
        max_workers: Optional[int] = None,
    ) -> "ClasspathIndex":
        """Build from the ``[classpath]`` config section plus *extra* locations."""
        settings = config_manager.load_settings()
        if include_environment is None:
            include_environment = settings["include_environment"]
        return cls.from_environment(
            extra=[*settings["locations"], *extra],
            include_bootstrap=settings["include_bootstrap"] and include_environment,
            include_environment=include_environment,
            extension=settings["archive_extension"],
            max_workers=max_workers or settings["workers"],
        )

    # ------------------------------------------------------------------
    # Build / publish
    # ------------------------------------------------------------------

    @property
    def locations(self) -> Tuple[str, ...]:
        return self._locations

    @property
    def is_built(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> IndexSnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise IndexNotBuiltError("Classpath index has not been built; call build() first")
        return snapshot

    def build(self) -> IndexSnapshot:
        """Build the index once; later calls return the published snapshot."""
        with self._build_lock:
            if self._snapshot is None:
                self._snapshot = self._build_snapshot(self._locations)
            return self._snapshot

    def rebuild(self, locations: Optional[Iterable[str]] = None) -> IndexSnapshot:
        """Build a fresh snapshot off to the side and swap it in."""
        with self._build_lock:
            if locations is not None:
                self._locations = _validated_locations(locations)
            snapshot = self._build_snapshot(self._locations)
            self._snapshot = snapshot
            return snapshot

    def _scan_location(self, location: str) -> LocationScan:
        return find_class_names_in_location(location, self.recursive, self.extension, self.scanner)

    def _build_snapshot(self, locations: Sequence[str]) -> IndexSnapshot:
        started = time.perf_counter()
        if self.max_workers > 1 and len(locations) > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(locations))) as executor:
                scans = list(executor.map(self._scan_location, locations))
        else:
            scans = [self._scan_location(location) for location in locations]

        snapshot = IndexSnapshot.assemble(scans)
        logger.info(
            "Indexed %d classes in %d packages from %d locations (%d skipped) in %.2fs",
            len(snapshot.class_name_to_location),
            len(snapshot.package_name_to_class_names),
            len(locations),
            sum(1 for scan in scans if scan.skipped),
            time.perf_counter() - started,
        )
        return snapshot

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def location_to_class_names(self) -> Mapping[str, AbstractSet[str]]:
        return self.snapshot.location_to_class_names

    def class_names_in_location(self, location: Optional[str], recursive: bool = True) -> AbstractSet[str]:
        """Class names under *location*.

        Indexed locations, empty or skipped ones included, answer from the
        snapshot. Unknown locations are scanned on demand with *recursive*
        and the snapshot is left untouched.
        """
        if location is None:
            raise NullInputError("Classpath location must not be None")
        location_to_class_names = self.snapshot.location_to_class_names
        if location in location_to_class_names:
            return location_to_class_names[location]
        return find_class_names_in_location(location, recursive, self.extension, self.scanner).class_names

    def find_location(self, class_name: Optional[str]) -> Optional[str]:
        if class_name is None:
            raise NullInputError("Class name must not be None")
        return self.snapshot.class_name_to_location.get(class_name)

    def class_names_in_package(self, package_name: Optional[str]) -> AbstractSet[str]:
        if package_name is None:
            raise NullInputError("Package name must not be None")
        return self.snapshot.package_name_to_class_names.get(package_name, EMPTY_SET)

    def all_class_names(self) -> AbstractSet[str]:
        return frozen_ordered_set(
            class_name
            for class_names in self.snapshot.location_to_class_names.values()
            for class_name in class_names
        )

    def all_package_names(self) -> AbstractSet[str]:
        return self.snapshot.package_name_to_class_names.keys()

    def skipped_locations(self) -> Tuple[LocationScan, ...]:
        return tuple(scan for scan in self.snapshot.scans if scan.skipped)

    def code_source_location(self, type_or_name: Union[type, str, None]) -> Optional[str]:
        """``file:`` URL of the code that defines a class.

        For a Python class the file of its defining module is used. Classes
        without one (builtins) and plain class names fall back to the index.
        Returns ``None`` when nothing is known.
        """
        if type_or_name is None:
            raise NullInputError("Type must not be None")

        if isinstance(type_or_name, type):
            module = sys.modules.get(type_or_name.__module__)
            module_file = getattr(module, "__file__", None)
            if module_file:
                return Path(module_file).absolute().as_uri()
            class_name = f"{type_or_name.__module__}.{type_or_name.__qualname__}"
        else:
            class_name = type_or_name

        location = self.find_location(class_name)
        if not location:
            return None
        return Path(location).absolute().as_uri()
