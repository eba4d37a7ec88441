"""Extract archive entries onto a target directory."""

from __future__ import annotations

import logging
import shutil
import zipfile
import zlib
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .archive_url import open_archive, resolve_relative_path, to_archive
from .errors import ArchiveIOError, CorruptEntryError, EntryNotFoundError
from .models import ArchiveEntry
from .scanner import DEFAULT_SCANNER, EntryPredicate, get_entry, is_directory_path

logger = logging.getLogger(__name__)


def extract(
    archive_path: Union[str, Path],
    target_directory: Union[str, Path],
    predicate: Optional[EntryPredicate] = None,
) -> List[Path]:
    """Extract every entry of the archive at *archive_path* accepted by *predicate*."""
    with open_archive(archive_path) as archive:
        return extract_archive(archive, target_directory, predicate)


def extract_archive(
    archive: zipfile.ZipFile,
    target_directory: Union[str, Path],
    predicate: Optional[EntryPredicate] = None,
) -> List[Path]:
    """Extract from an already open archive; the caller keeps ownership of it."""
    entries = DEFAULT_SCANNER.filter_entries(archive, predicate)
    return _do_extract(archive, entries, Path(target_directory))


def extract_url(
    url: str,
    target_directory: Union[str, Path],
    predicate: Optional[EntryPredicate] = None,
) -> List[Path]:
    """Extract the subtree a ``jar:``/``file:`` URL points at.

    A URL naming the archive itself extracts everything. A URL naming a
    directory entry extracts that directory and its descendants; one naming
    a file extracts the file.

    Raises:
        EntryNotFoundError: the URL names an entry the archive lacks.
    """
    relative_path = resolve_relative_path(url)
    with to_archive(url) as archive:
        if not relative_path:
            return extract_archive(archive, target_directory, predicate)

        entry = get_entry(archive, relative_path)
        if entry is not None:
            is_directory = entry.is_directory
            relative_path = entry.name
        elif is_directory_path(archive, relative_path):
            is_directory = True
            relative_path = relative_path.rstrip("/") + "/"
        else:
            raise EntryNotFoundError(
                f"Entry '{relative_path}' not found in archive for {url}",
                details={"url": url, "entry": relative_path},
            )

        def in_subtree(candidate: ArchiveEntry) -> bool:
            name = candidate.name
            if is_directory and name == relative_path:
                return True
            return name.startswith(relative_path)

        entries = DEFAULT_SCANNER.filter_entries(archive, in_subtree)
        if predicate is not None:
            entries = tuple(candidate for candidate in entries if predicate(candidate))
        return _do_extract(archive, entries, Path(target_directory))


def _target_path(target_root: Path, entry: ArchiveEntry) -> Path:
    target = (target_root / entry.name).resolve()
    if target != target_root and target_root not in target.parents:
        raise CorruptEntryError(
            f"Entry '{entry.name}' would be extracted outside {target_root}",
            details={"entry": entry.name},
        )
    return target


def _do_extract(archive: zipfile.ZipFile, entries: Iterable[ArchiveEntry], target_directory: Path) -> List[Path]:
    target_root = target_directory.resolve()
    written: List[Path] = []
    for entry in entries:
        target = _target_path(target_root, entry)
        try:
            if entry.is_directory:
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(entry.name) as source, open(target, "wb") as sink:
                    shutil.copyfileobj(source, sink)
        except (
            zipfile.BadZipFile,
            zipfile.LargeZipFile,
            zlib.error,
            EOFError,
            RuntimeError,  # encrypted entry
            NotImplementedError,  # unknown compression method
        ) as exc:
            raise CorruptEntryError(
                f"Cannot read entry '{entry.name}': {exc}", details={"entry": entry.name}
            ) from exc
        except OSError as exc:
            raise ArchiveIOError(
                f"Cannot write '{target}' for entry '{entry.name}': {exc}", details={"entry": entry.name}
            ) from exc
        written.append(target)
    logger.debug("Extracted %d entries to %s", len(written), target_root)
    return written
