"""Constants and configuration paths for the classpath index."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("CPI_HOME", str(Path.home() / ".classpath-index"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

CLASS_EXTENSION = ".class"
JAR_EXTENSION = ".jar"

# jar:file:/path/to/app.jar!/com/acme/Foo.class
ARCHIVE_ENTRY_SEPARATOR = "!/"
JAR_PROTOCOL = "jar"
FILE_PROTOCOL = "file"
SUPPORTED_PROTOCOLS = (JAR_PROTOCOL, FILE_PROTOCOL)

DEFAULT_MAX_WORKERS = 4

# Environment variables consulted by location discovery
CLASSPATH_ENV = "CLASSPATH"
BOOT_CLASSPATH_ENV = "CPI_BOOT_CLASSPATH"
JAVA_HOME_ENV = "JAVA_HOME"


def ensure_base_dirs() -> None:
    """Create the base directory for local configuration if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
