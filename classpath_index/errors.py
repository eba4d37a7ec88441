"""Error taxonomy for classpath indexing and archive extraction."""

from __future__ import annotations

from typing import Any, Optional


class ClasspathIndexError(Exception):
    """Base exception for the classpath index package."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.details = details


class InvalidInputError(ClasspathIndexError, ValueError):
    """Raised when a required argument is missing or malformed."""
    pass


class NullInputError(InvalidInputError):
    """Raised when a required location or URL is ``None``."""
    pass


class InvalidArchiveURLError(InvalidInputError):
    """Raised when a URL uses a scheme other than ``jar`` or ``file``."""
    pass


class NotFoundError(ClasspathIndexError, LookupError):
    """Raised when an explicitly requested archive or entry does not exist."""
    pass


class ArchiveNotFoundError(NotFoundError):
    """Raised when a URL or path has no backing archive file."""
    pass


class EntryNotFoundError(NotFoundError):
    """Raised when a URL names an entry the archive does not contain."""
    pass


class ArchiveIOError(ClasspathIndexError, OSError):
    """Raised when an archive cannot be opened, read or extracted."""
    pass


class CorruptEntryError(ArchiveIOError):
    """Raised when a single archive entry is unreadable or unsafe to extract."""
    pass


class IndexNotBuiltError(ClasspathIndexError, RuntimeError):
    """Raised when the index is queried before :meth:`build` ran."""
    pass
