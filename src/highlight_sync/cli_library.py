"""CLI entry point for browsing and editing a library (highlight-library command)."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from loguru import logger

from . import library
from .cli import load_config
from .concurrency import ImportLock
from .config import SyncConfig
from .errors import LibraryError, LockError, StoreError
from .models import Book, Highlight, HighlightSource, LibrarySnapshot
from .store import JsonLibraryStore

log = logger.bind(stage="library-cli")


def _load(config: SyncConfig) -> LibrarySnapshot:
    try:
        return JsonLibraryStore(config.library_dir).load()
    except StoreError as e:
        raise click.ClickException(str(e)) from e


@contextmanager
def _editing(config: SyncConfig) -> Iterator[LibrarySnapshot]:
    """Load the library under the import lock and save it if the edit succeeds."""
    store = JsonLibraryStore(config.library_dir)
    try:
        with ImportLock(config.lock_dir, config.library_dir):
            snapshot = store.load()
            yield snapshot
            store.save(snapshot)
    except (LibraryError, LockError, StoreError) as e:
        raise click.ClickException(str(e)) from e


def _book_line(book: Book) -> str:
    return f"{book.id}  {book.title} -- {book.author} ({book.total_highlights})"


def _highlight_line(hl: Highlight) -> str:
    page = f"p.{hl.page_number} " if hl.page_number is not None else ""
    return f"{hl.id}  {page}{hl.text}"


def _echo_json(data: object) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@click.group()
@click.option(
    "-l",
    "--library-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Library directory (holds library.json).",
)
@click.option(
    "--json-output",
    "json_out",
    is_flag=True,
    help="Output as JSON instead of human-readable.",
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
@click.pass_context
def main(
    ctx: click.Context,
    library_dir: str | None,
    json_out: bool,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Browse, search and edit the highlight library."""
    overrides: dict[str, object] = {}
    if library_dir:
        overrides["library_dir"] = Path(library_dir)
    if verbose:
        overrides["log_level"] = "DEBUG"
    ctx.obj = {"config": load_config(config_file, **overrides), "json": json_out}


# -- Read commands --


@main.command("books")
@click.pass_obj
def list_books(obj: dict) -> None:
    """List books, most recently added first."""
    snapshot = _load(obj["config"])
    if obj["json"]:
        _echo_json([b.to_dict() for b in snapshot.books])
        return
    if not snapshot.books:
        click.echo("Library is empty.")
        return
    for book in snapshot.books:
        click.echo(_book_line(book))


@main.command("show")
@click.argument("book_id")
@click.pass_obj
def show_book(obj: dict, book_id: str) -> None:
    """Show one book and its highlights, newest first."""
    snapshot = _load(obj["config"])
    try:
        book = library.get_book(snapshot, book_id)
    except LibraryError as e:
        raise click.ClickException(str(e)) from e
    highlights = library.highlights_for_book(snapshot, book_id)

    if obj["json"]:
        _echo_json({
            "book": book.to_dict(),
            "highlights": [h.to_dict() for h in highlights],
        })
        return
    click.echo(_book_line(book))
    for hl in highlights:
        click.echo(f"  {_highlight_line(hl)}")
        for thought in hl.thoughts:
            click.echo(f"      > {thought.text}")


@main.command("search")
@click.argument("query")
@click.pass_obj
def search(obj: dict, query: str) -> None:
    """Search book titles, authors, highlight text and thoughts."""
    results = library.search_library(_load(obj["config"]), query)
    if obj["json"]:
        _echo_json({
            "books": [b.to_dict() for b in results.books],
            "highlights": [
                {"highlight": h.to_dict(), "bookTitle": b.title}
                for h, b in results.highlights
            ],
        })
        return
    if not results.books and not results.highlights:
        click.echo(f"No matches for {query!r}.")
        return
    for book in results.books:
        click.echo(_book_line(book))
    for hl, book in results.highlights:
        click.echo(f"[{book.title}] {_highlight_line(hl)}")


# -- Edit commands --


@main.command("add-book")
@click.argument("title")
@click.option("-a", "--author", default="", help="Author name.")
@click.option("--cover-url", default=None, help="Cover image URL.")
@click.pass_obj
def add_book(obj: dict, title: str, author: str, cover_url: str | None) -> None:
    """Add a book by hand."""
    config: SyncConfig = obj["config"]
    with _editing(config) as snapshot:
        book = library.add_book(
            snapshot, title, author, cover_url=cover_url,
            cover_template=config.placeholder_cover_url,
        )
    click.echo(_book_line(book))


@main.command("edit-book")
@click.argument("book_id")
@click.option("--title", default=None, help="New title.")
@click.option("--author", default=None, help="New author.")
@click.pass_obj
def edit_book(obj: dict, book_id: str, title: str | None, author: str | None) -> None:
    """Change a book's title and/or author."""
    if title is None and author is None:
        raise click.UsageError("Pass --title and/or --author.")
    with _editing(obj["config"]) as snapshot:
        current = library.get_book(snapshot, book_id)
        book = library.update_book_details(
            snapshot,
            book_id,
            title if title is not None else current.title,
            author if author is not None else current.author,
        )
    click.echo(_book_line(book))


@main.command("delete-book")
@click.argument("book_id")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
def delete_book(obj: dict, book_id: str, yes: bool) -> None:
    """Delete a book and all of its highlights."""
    if not yes:
        click.confirm(
            f"Delete book {book_id} and all of its highlights?", abort=True,
        )
    with _editing(obj["config"]) as snapshot:
        removed = library.delete_book(snapshot, book_id)
    click.echo(f"Deleted book {book_id} ({removed} highlights)")


@main.command("add-highlight")
@click.argument("book_id")
@click.argument("text")
@click.option("-p", "--page", "page_number", type=int, default=None, help="Page number.")
@click.option("-n", "--note", default=None, help="First thought on the highlight.")
@click.option(
    "--source",
    type=click.Choice([s.value for s in HighlightSource]),
    default=HighlightSource.SCANNED.value,
    show_default=True,
    help="How the highlight was captured.",
)
@click.pass_obj
def add_highlight(
    obj: dict,
    book_id: str,
    text: str,
    page_number: int | None,
    note: str | None,
    source: str,
) -> None:
    """Add a highlight to a book by hand."""
    with _editing(obj["config"]) as snapshot:
        hl = library.add_highlight(
            snapshot, book_id, text, page_number=page_number, note=note,
            source=HighlightSource(source),
        )
    click.echo(_highlight_line(hl))


@main.command("add-thought")
@click.argument("highlight_id")
@click.argument("text")
@click.pass_obj
def add_thought(obj: dict, highlight_id: str, text: str) -> None:
    """Append a thought to a highlight."""
    with _editing(obj["config"]) as snapshot:
        thought = library.append_thought(snapshot, highlight_id, text)
    click.echo(f"{thought.id}  {thought.text}")


@main.command("delete-highlight")
@click.argument("highlight_id")
@click.pass_obj
def delete_highlight(obj: dict, highlight_id: str) -> None:
    """Delete one highlight."""
    with _editing(obj["config"]) as snapshot:
        hl = library.delete_highlight(snapshot, highlight_id)
    click.echo(f"Deleted highlight {hl.id}")
