"""Pytest configuration and fixtures for classpath index tests."""

import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Callable, Dict, Generator, Optional

import pytest


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    """Keep the developer's JDK and CLASSPATH out of every test."""
    monkeypatch.delenv("CLASSPATH", raising=False)
    monkeypatch.delenv("JAVA_HOME", raising=False)
    monkeypatch.delenv("CPI_BOOT_CLASSPATH", raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def temp_config(temp_dir: Path, monkeypatch) -> Path:
    """Point configuration at a throwaway directory; returns the config file path."""
    base_dir = temp_dir / "home"
    config_file = base_dir / "config.toml"
    monkeypatch.setattr("classpath_index.config.BASE_DIR", base_dir)
    monkeypatch.setattr("classpath_index.config.CONFIG_FILE", config_file)
    return config_file


@pytest.fixture
def make_jar(temp_dir: Path) -> Callable[..., Path]:
    """Factory writing a zip archive; ``None`` content marks a directory entry."""

    def _make(name: str, entries: Dict[str, Optional[bytes]]) -> Path:
        path = temp_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as archive:
            for entry_name, content in entries.items():
                if content is None:
                    archive.writestr(zipfile.ZipInfo(entry_name), b"")
                else:
                    archive.writestr(entry_name, content)
        return path

    return _make


@pytest.fixture
def sample_jar(make_jar) -> Path:
    """Archive with a small package tree plus non-class resources."""
    return make_jar(
        "lib/acme.jar",
        {
            "META-INF/": None,
            "META-INF/MANIFEST.MF": b"Manifest-Version: 1.0\n",
            "com/": None,
            "com/acme/": None,
            "com/acme/Foo.class": b"\xca\xfe\xba\xbe foo",
            "com/acme/Foo$Inner.class": b"\xca\xfe\xba\xbe inner",
            "com/acme/bar/": None,
            "com/acme/bar/Baz.class": b"\xca\xfe\xba\xbe baz",
            "com/acme/bar/messages.properties": b"greeting=hi\n",
            "Main.class": b"\xca\xfe\xba\xbe main",
        },
    )


@pytest.fixture
def nested_jar(make_jar) -> Path:
    """Archive shaped like the a/b containment example."""
    return make_jar(
        "nested.jar",
        {
            "a/": None,
            "a/b/": None,
            "a/b/C.class": b"c",
            "a/b/c/": None,
            "a/b/c/D.class": b"d",
            "a/bc/E.class": b"e",
        },
    )


@pytest.fixture
def classes_dir(temp_dir: Path) -> Path:
    """Compiled-classes directory with nested packages and a stray resource."""
    root = temp_dir / "classes"
    for relative in ("org/demo/App.class", "org/demo/util/Strings.class", "Top.class"):
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\xca\xfe\xba\xbe")
    (root / "org" / "demo" / "app.properties").write_text("name=demo\n")
    return root
