"""Tests for jar:/file: URL decomposition and archive opening."""

import zipfile
from pathlib import Path

import pytest

from classpath_index.archive_url import (
    open_archive,
    resolve_archive_absolute_path,
    resolve_relative_path,
    to_archive,
)
from classpath_index.errors import (
    ArchiveIOError,
    ArchiveNotFoundError,
    InvalidArchiveURLError,
    InvalidInputError,
    NullInputError,
)


def _jar_url(jar: Path, entry: str = "") -> str:
    return f"jar:{jar.as_uri()}!/{entry}"


class TestResolveRelativePath:
    """Tests for resolve_relative_path."""

    def test_entry_inside_archive(self):
        assert resolve_relative_path("jar:file:/x.jar!/a/B.class") == "a/B.class"

    def test_directory_entry_keeps_trailing_slash(self):
        assert resolve_relative_path("jar:file:/x.jar!/com/acme/") == "com/acme/"

    def test_archive_root(self):
        assert resolve_relative_path("jar:file:/x.jar!/") == ""
        assert resolve_relative_path("file:/x.jar") == ""

    def test_percent_decoding_and_normalization(self):
        url = "jar:file:/x.jar!/my%20dir//sub\\Foo.class"
        assert resolve_relative_path(url) == "my dir/sub/Foo.class"

    def test_none_url(self):
        with pytest.raises(NullInputError):
            resolve_relative_path(None)

    @pytest.mark.parametrize("url", ["http://example.com/x.jar!/a/B.class", "ftp://host/x.jar", "x.jar"])
    def test_unsupported_scheme(self, url: str):
        with pytest.raises(InvalidArchiveURLError):
            resolve_relative_path(url)

    def test_invalid_scheme_is_value_error(self):
        with pytest.raises(ValueError):
            resolve_relative_path("https://example.com/a.jar")


class TestResolveArchiveAbsolutePath:
    """Tests for resolve_archive_absolute_path."""

    def test_jar_url_with_entry(self, sample_jar: Path):
        url = _jar_url(sample_jar, "com/acme/Foo.class")
        assert resolve_archive_absolute_path(url) == str(sample_jar.absolute())

    def test_file_url_of_archive(self, sample_jar: Path):
        assert resolve_archive_absolute_path(sample_jar.as_uri()) == str(sample_jar.absolute())

    def test_file_url_pointing_into_archive(self, sample_jar: Path):
        url = sample_jar.as_uri() + "/com/acme/Foo.class"
        assert resolve_archive_absolute_path(url) == str(sample_jar.absolute())

    def test_missing_archive_returns_none(self, temp_dir: Path):
        url = _jar_url(temp_dir / "gone.jar", "a/B.class")
        assert resolve_archive_absolute_path(url) is None

    def test_non_archive_file_returns_none(self, temp_dir: Path):
        text_file = temp_dir / "notes.txt"
        text_file.write_text("hello")
        assert resolve_archive_absolute_path(text_file.as_uri()) is None

    def test_validation_errors(self):
        with pytest.raises(NullInputError):
            resolve_archive_absolute_path(None)
        with pytest.raises(InvalidInputError):
            resolve_archive_absolute_path("http://example.com/x.jar")


class TestToArchive:
    """Tests for to_archive / open_archive."""

    def test_opens_archive(self, sample_jar: Path):
        with to_archive(_jar_url(sample_jar, "com/acme/Foo.class")) as archive:
            assert isinstance(archive, zipfile.ZipFile)
            assert "com/acme/Foo.class" in archive.namelist()

    def test_missing_archive(self, temp_dir: Path):
        with pytest.raises(ArchiveNotFoundError):
            to_archive(_jar_url(temp_dir / "gone.jar"))

    def test_corrupt_archive(self, temp_dir: Path):
        broken = temp_dir / "broken.jar"
        broken.write_bytes(b"this is not a zip file")
        with pytest.raises(ArchiveIOError) as excinfo:
            to_archive(broken.as_uri())
        assert isinstance(excinfo.value.__cause__, zipfile.BadZipFile)

    def test_open_archive_missing_path(self, temp_dir: Path):
        with pytest.raises(ArchiveNotFoundError):
            open_archive(temp_dir / "absent.jar")
