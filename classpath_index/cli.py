"""Typer-based CLI for the classpath index."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__, config, config_manager
from .archive_url import assert_archive_url_protocol
from .errors import ClasspathIndexError, InvalidInputError
from .extractor import extract, extract_url
from .indexer import ClasspathIndex
from .models import ArchiveEntry
from .scanner import DEFAULT_SCANNER, class_entry_filter

console = Console()

app = typer.Typer(
    help="☕ Classpath Index — class and package lookup over directories and JARs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    help="⚙️  Configuration — extra classpath locations and discovery settings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"Classpath Index v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log indexing progress to stderr."),
):
    """Classpath Index: build class/package indices over a classpath."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(exc: ClasspathIndexError) -> NoReturn:
    console.print(f"[red]{escape(str(exc))}[/red]")
    raise typer.Exit(code=1)


def _build_index(locations: List[str], no_env: bool = False, workers: Optional[int] = None) -> ClasspathIndex:
    return ClasspathIndex.from_settings(
        extra=locations,
        include_environment=False if no_env else None,
        max_workers=workers,
    )


LOCATIONS_ARGUMENT = typer.Argument(None, help="Directories or JAR files to index.")
NO_ENV_OPTION = typer.Option(False, "--no-env", help="Ignore JAVA_HOME, CLASSPATH and bootstrap settings.")


@app.command("index")
def index_command(
    locations: Optional[List[str]] = LOCATIONS_ARGUMENT,
    no_env: bool = NO_ENV_OPTION,
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, max=64, help="Parallel location scans."),
    json_output: Optional[Path] = typer.Option(None, "--json", help="Write the full index as JSON to this file."),
):
    """Index classpath locations and summarize what each contributed."""
    index = _build_index(locations or [], no_env=no_env, workers=workers)
    snapshot = index.snapshot

    table = Table(title="Classpath locations")
    table.add_column("Location", style="cyan")
    table.add_column("Classes", justify="right")
    table.add_column("Status")
    for scan in snapshot.scans:
        status = "[green]ok[/green]" if not scan.skipped else f"[yellow]{scan.skip_reason.value}[/yellow]"
        table.add_row(scan.location, str(len(scan.class_names)), status)
    console.print(table)
    console.print(
        f"Classes: {len(snapshot.class_name_to_location)} | "
        f"Packages: {len(snapshot.package_name_to_class_names)} | "
        f"Locations: {len(snapshot.scans)}"
    )

    if json_output is not None:
        json_output.parent.mkdir(parents=True, exist_ok=True)
        json_output.write_text(json.dumps(snapshot.to_dict(), indent=2), encoding="utf-8")
        console.print(f"Wrote index to {json_output}")


@app.command("find")
def find_command(
    class_name: str = typer.Argument(..., help="Fully-qualified class name, e.g. com.acme.Foo."),
    locations: Optional[List[str]] = LOCATIONS_ARGUMENT,
    no_env: bool = NO_ENV_OPTION,
):
    """Show which classpath location provides a class."""
    index = _build_index(locations or [], no_env=no_env)
    location = index.find_location(class_name)
    if location is None:
        console.print(f"[red]Class '{escape(class_name)}' not found on the classpath.[/red]")
        raise typer.Exit(code=1)
    typer.echo(location)


@app.command("package")
def package_command(
    package_name: str = typer.Argument(..., help="Dotted package name; '' for the root package."),
    locations: Optional[List[str]] = LOCATIONS_ARGUMENT,
    no_env: bool = NO_ENV_OPTION,
):
    """List the classes of one package."""
    index = _build_index(locations or [], no_env=no_env)
    class_names = index.class_names_in_package(package_name)
    if not class_names:
        typer.echo(f"No classes in package '{package_name}'.")
        raise typer.Exit(code=0)
    for class_name in class_names:
        typer.echo(class_name)


@app.command("packages")
def packages_command(
    locations: Optional[List[str]] = LOCATIONS_ARGUMENT,
    no_env: bool = NO_ENV_OPTION,
):
    """List every package known to the index."""
    index = _build_index(locations or [], no_env=no_env)
    package_names = sorted(index.all_package_names())
    if not package_names:
        typer.echo("No packages found.")
        raise typer.Exit(code=0)
    for package_name in package_names:
        typer.echo(package_name or "<root>")


@app.command("entries")
def entries_command(
    url: str = typer.Argument(..., help="jar:file:/path/app.jar!/dir/ or file:/path/app.jar"),
    recursive: bool = typer.Option(True, "--recursive/--no-recursive", help="Include nested entries."),
    classes_only: bool = typer.Option(False, "--classes-only", help="Only list class files."),
):
    """List archive entries under a jar: or file: URL."""
    try:
        entries = DEFAULT_SCANNER.scan_url(url, recursive, class_entry_filter if classes_only else None)
    except ClasspathIndexError as exc:
        _fail(exc)

    for entry in entries:
        typer.echo(f"{'d' if entry.is_directory else '-'} {entry.file_size:>10} {entry.name}")


def _is_archive_url(source: str) -> bool:
    try:
        assert_archive_url_protocol(source)
    except InvalidInputError:
        return False
    return True


@app.command("extract")
def extract_command(
    source: str = typer.Argument(..., help="jar:/file: URL or path of the archive."),
    target: Path = typer.Argument(..., file_okay=False, help="Directory to extract into."),
    classes_only: bool = typer.Option(False, "--classes-only", help="Only extract class files."),
):
    """Extract an archive, or the subtree a jar: URL points at."""

    def keep(entry: ArchiveEntry) -> bool:
        return entry.is_directory or class_entry_filter(entry)

    predicate = keep if classes_only else None
    try:
        if _is_archive_url(source):
            written = extract_url(source, target, predicate)
        else:
            written = extract(source, target, predicate)
    except ClasspathIndexError as exc:
        _fail(exc)

    typer.echo(f"Extracted {len(written)} entries to {target}")


# ===================================================================
# Configuration commands
# ===================================================================

@config_app.command("show")
def config_show():
    """Show effective classpath settings."""
    settings = config_manager.load_settings()
    console.print(f"Config file: [cyan]{config.CONFIG_FILE}[/cyan]")
    for key, value in settings.items():
        typer.echo(f"  {key} = {value!r}")


@config_app.command("add")
def config_add(location: str = typer.Argument(..., help="Directory or JAR to always index.")):
    """Add a location to every index build."""
    locations = config_manager.add_location(location)
    typer.echo(f"Configured locations: {len(locations)}")


@config_app.command("reset")
def config_reset():
    """Remove all classpath settings from the config file."""
    if config_manager.reset_config():
        typer.echo("Classpath settings reset.")
    else:
        typer.echo("Nothing to reset.")


if __name__ == "__main__":
    app()
