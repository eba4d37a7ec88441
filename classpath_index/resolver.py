"""Resource path to class name and class name to package name resolution."""

from __future__ import annotations

from pathlib import Path

from .config import CLASS_EXTENSION
from .paths import resolve_relative_path


def resolve_class_name(resource_path: str) -> str:
    """Convert a resource path such as ``com/acme/Foo.class`` to ``com.acme.Foo``.

    Both ``/`` and ``\\`` count as separators. Inputs without the ``.class``
    suffix still produce a dotted name.
    """
    class_name = resource_path.replace("\\", ".").replace("/", ".")
    if class_name.endswith(CLASS_EXTENSION):
        class_name = class_name[: -len(CLASS_EXTENSION)]
    return class_name.lstrip(".")


def resolve_package_name(class_name: str) -> str:
    """Return the package of *class_name*; ``""`` for the root package."""
    package_name, _, _ = class_name.rpartition(".")
    return package_name


def resolve_class_name_in_directory(root: Path, class_file: Path) -> str:
    return resolve_class_name(resolve_relative_path(root, class_file))


def is_class_resource(name: str) -> bool:
    """True for non-directory names carrying the class file extension."""
    return name.endswith(CLASS_EXTENSION) and not name.endswith("/")
