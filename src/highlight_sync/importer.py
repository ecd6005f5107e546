"""Import orchestration -- parse, reconcile, persist.

The parser and reconciler are pure; this module owns the I/O around them:
reading the store, wiring the metadata lookup, and writing the updated
library back in one save.
"""

from __future__ import annotations

import functools
from typing import Callable

from loguru import logger

from .api.google_books import lookup_book
from .config import SyncConfig
from .errors import EmptyImportError, UnrecognizedFormatError
from .models import Clock, ImportSummary, LibrarySnapshot, utcnow
from .parsers import detect_format, parse_import_text
from .reconcile import PLACEHOLDER_COVER_URL, MetadataLookup, new_id, reconcile
from .store import JsonLibraryStore

log = logger.bind(stage="import")


def make_lookup(config: SyncConfig) -> MetadataLookup | None:
    """Build the metadata lookup described by config, or None when disabled."""
    if not config.metadata_lookup:
        return None
    return functools.partial(
        lookup_book,
        base_url=config.google_books_url,
        timeout=config.lookup_timeout,
        cover_template=config.placeholder_cover_url,
    )


def import_text(
    text: str,
    store: JsonLibraryStore,
    lookup: MetadataLookup | None = None,
    clock: Clock = utcnow,
    id_factory: Callable[[], str] = new_id,
    cover_template: str = PLACEHOLDER_COVER_URL,
    dry_run: bool = False,
) -> ImportSummary:
    """Import raw export text into the library held by store.

    Raises UnrecognizedFormatError or EmptyImportError (both
    NothingToImportError) before touching the store when there is nothing
    to import. With dry_run the summary is computed but nothing is written.
    """
    fmt = detect_format(text)
    if fmt is None:
        log.info("Input matches no supported import format")
        raise UnrecognizedFormatError()

    parsed_books = parse_import_text(text, clock=clock)
    if not parsed_books:
        log.info(f"No usable highlights in {fmt} input")
        raise EmptyImportError()

    log.info(
        f"Parsed {len(parsed_books)} books, "
        f"{sum(len(b.highlights) for b in parsed_books)} highlights ({fmt})"
    )

    snapshot = store.load()
    result = reconcile(
        snapshot.books,
        snapshot.highlights,
        parsed_books,
        lookup=lookup,
        clock=clock,
        id_factory=id_factory,
        cover_template=cover_template,
    )

    if dry_run:
        log.info("[DRY-RUN] Library not written")
    else:
        store.save(LibrarySnapshot(books=result.books, highlights=result.highlights))

    return result.summary
