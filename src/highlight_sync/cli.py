"""CLI entry point for highlight-sync."""

import json
from pathlib import Path

import click
from loguru import logger

from .concurrency import ImportLock
from .config import SyncConfig
from .errors import ConfigError, LockError, NothingToImportError, StoreError
from .importer import import_text, make_lookup
from .models import ImportSummary
from .store import JsonLibraryStore

log = logger.bind(stage="cli")


def find_env_file() -> Path | None:
    """Look for .env next to the package or in cwd."""
    pkg_dir = Path(__file__).resolve().parent
    for candidate in [
        pkg_dir.parent.parent / ".env",  # dev: src/../.env
        Path.cwd() / ".env",
    ]:
        if candidate.is_file():
            return candidate
    return None


def load_config(config_file: str | None, **overrides: object) -> SyncConfig:
    """Build the config and configure logging.

    Resolution order is .env file < environment variables < overrides, so
    only options the user actually passed belong in overrides.
    """
    env_file = Path(config_file) if config_file else find_env_file()
    try:
        config = SyncConfig(_env_file=env_file, **overrides)  # type: ignore[arg-type]
        config.setup_logging()
    except (ConfigError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    if env_file:
        log.debug(f"Loaded env from {env_file}")
    return config


def _print_summary(summary: ImportSummary, dry_run: bool) -> None:
    heading = "Sync complete (dry run)" if dry_run else "Sync complete"
    click.echo(heading)
    click.echo(f"  Books scanned:  {summary.total_books_processed}")
    click.echo(f"  New highlights: +{summary.total_highlights_added}")
    click.echo("")
    if not summary.updates:
        click.echo("No new highlights found in this batch.")
        return
    for update in summary.updates:
        click.echo(f"  +{update.new_count:<4} {update.title}")


@click.command()
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-l",
    "--library-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Library directory (holds library.json).",
)
@click.option("--no-lookup", is_flag=True, help="Skip online metadata lookup.")
@click.option(
    "--dry-run", is_flag=True, help="Show what would be imported without saving."
)
@click.option(
    "--json-output",
    "json_out",
    is_flag=True,
    help="Output the import summary as JSON.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True),
    default=None,
    help="Path to .env file.",
)
def main(
    source_file: str,
    library_dir: str | None,
    no_lookup: bool,
    dry_run: bool,
    json_out: bool,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Import ebook highlights (clippings text or HTML export) into the library."""
    overrides: dict[str, object] = {}
    if library_dir:
        overrides["library_dir"] = Path(library_dir)
    if no_lookup:
        overrides["metadata_lookup"] = False
    if dry_run:
        overrides["dry_run"] = True
    if verbose:
        overrides["log_level"] = "DEBUG"
    config = load_config(config_file, **overrides)

    source = Path(source_file).resolve()
    # utf-8-sig drops the BOM some e-readers write at the start of the file
    text = source.read_text(encoding="utf-8-sig", errors="replace")
    log.info(f"Importing {source} into {config.library_dir} dry_run={config.dry_run}")

    try:
        with ImportLock(config.lock_dir, config.library_dir):
            summary = import_text(
                text,
                JsonLibraryStore(config.library_dir),
                lookup=make_lookup(config),
                cover_template=config.placeholder_cover_url,
                dry_run=config.dry_run,
            )
    except (LockError, NothingToImportError, StoreError) as e:
        raise click.ClickException(str(e)) from e

    if json_out:
        click.echo(json.dumps(summary.to_dict(), indent=2))
    else:
        _print_summary(summary, config.dry_run)
