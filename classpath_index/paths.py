"""Path normalization, URL decoding and directory scanning helpers."""

from __future__ import annotations

import re
import urllib.parse
from pathlib import Path
from typing import Callable, List, Optional

_REPEATED_SLASHES = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Use forward slashes and collapse repeated separators.

    A trailing slash is kept: it marks directory entries inside archives.
    """
    return _REPEATED_SLASHES.sub("/", path.replace("\\", "/"))


def decode(value: str) -> str:
    """Percent-decode a URL path component."""
    return urllib.parse.unquote(value, encoding="utf-8")


def resolve_relative_path(root: Path, path: Path) -> str:
    """Path of *path* under *root* with forward slashes."""
    return path.relative_to(root).as_posix()


def suffix_filter(suffix: str) -> Callable[[Path], bool]:
    """Predicate accepting file names that end with *suffix*."""

    def accept(path: Path) -> bool:
        return path.name.endswith(suffix)

    return accept


def scan_directory(
    root: Path,
    recursive: bool = True,
    predicate: Optional[Callable[[Path], bool]] = None,
) -> List[Path]:
    """List regular files below *root* in sorted order.

    With ``recursive=False`` only the direct children are considered.
    OSError from the filesystem propagates to the caller.
    """
    candidates = root.rglob("*") if recursive else root.iterdir()
    files: List[Path] = []
    for path in sorted(candidates):
        if not path.is_file():
            continue
        if predicate is not None and not predicate(path):
            continue
        files.append(path)
    return files
