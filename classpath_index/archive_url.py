"""Decompose ``jar:``/``file:`` URLs into archive file and entry path.

Two URL shapes are understood::

    jar:file:/opt/lib/app.jar!/com/acme/Foo.class   (entry inside an archive)
    file:/opt/lib/app.jar                           (the archive itself)

The archive path and the entry path are joined by ``!/``.
"""

from __future__ import annotations

import logging
import urllib.parse
import urllib.request
import zipfile
from pathlib import Path
from typing import Optional, Union

from .config import ARCHIVE_ENTRY_SEPARATOR, FILE_PROTOCOL, JAR_EXTENSION, JAR_PROTOCOL, SUPPORTED_PROTOCOLS
from .errors import ArchiveIOError, ArchiveNotFoundError, InvalidArchiveURLError, NullInputError
from .paths import decode, normalize_path

logger = logging.getLogger(__name__)


def assert_archive_url_protocol(url: Optional[str]) -> str:
    """Validate *url* and return its lower-cased scheme.

    Raises:
        NullInputError: if *url* is ``None``.
        InvalidArchiveURLError: if the scheme is neither ``jar`` nor ``file``.
    """
    if url is None:
        raise NullInputError("Archive URL must not be None")
    protocol = urllib.parse.urlsplit(url).scheme.lower()
    if protocol not in SUPPORTED_PROTOCOLS:
        raise InvalidArchiveURLError(
            f"URL protocol [{protocol}] is unsupported, expected {JAR_PROTOCOL} or {FILE_PROTOCOL}",
            details={"url": url},
        )
    return protocol


def resolve_relative_path(url: Optional[str]) -> str:
    """Return the entry path of *url* relative to the archive root.

    ``""`` when the URL denotes the archive itself.
    """
    assert_archive_url_protocol(url)
    _, separator, relative_path = url.partition(ARCHIVE_ENTRY_SEPARATOR)
    if not separator:
        return ""
    relative_path = normalize_path(relative_path).lstrip("/")
    return decode(relative_path)


def _archive_file_path(url: str) -> Optional[Path]:
    location = url
    if location[: len(JAR_PROTOCOL) + 1].lower() == f"{JAR_PROTOCOL}:":
        location = location[len(JAR_PROTOCOL) + 1:]
    location = location.partition(ARCHIVE_ENTRY_SEPARATOR)[0]
    parts = urllib.parse.urlsplit(location)
    if parts.scheme.lower() != FILE_PROTOCOL or not parts.path:
        return None
    return Path(urllib.request.url2pathname(parts.path))


def resolve_archive_absolute_path(url: Optional[str], extension: str = JAR_EXTENSION) -> Optional[str]:
    """Locate the archive file backing *url* on disk.

    Walks from the URL's path towards the filesystem root so that URLs naming
    an entry nested inside the archive still find the archive. Returns the
    absolute path, or ``None`` if no existing archive file backs the URL.
    """
    assert_archive_url_protocol(url)
    candidate = _archive_file_path(url)
    if candidate is None:
        return None
    while True:
        if candidate.is_file():
            if candidate.name.endswith(extension):
                return str(candidate.absolute())
            return None
        if candidate.is_dir():
            return None
        parent = candidate.parent
        if parent == candidate:
            return None
        candidate = parent


def open_archive(path: Union[str, Path]) -> zipfile.ZipFile:
    """Open the archive at *path* for reading; the caller must close it."""
    try:
        return zipfile.ZipFile(path)
    except FileNotFoundError as exc:
        raise ArchiveNotFoundError(f"Archive not found: {path}", details={"path": str(path)}) from exc
    except (zipfile.BadZipFile, OSError) as exc:
        raise ArchiveIOError(f"Cannot open archive {path}: {exc}", details={"path": str(path)}) from exc


def to_archive(url: Optional[str]) -> zipfile.ZipFile:
    """Open the archive backing *url*.

    Raises:
        ArchiveNotFoundError: no archive file backs the URL.
        ArchiveIOError: the file is not a readable zip archive.
    """
    archive_path = resolve_archive_absolute_path(url)
    if archive_path is None:
        raise ArchiveNotFoundError(f"No archive file backs URL {url}", details={"url": url})
    logger.debug("Opening archive %s for %s", archive_path, url)
    return open_archive(archive_path)
