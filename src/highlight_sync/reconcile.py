"""Merge parsed books into an existing library without duplicating highlights.

A highlight is a duplicate when a highlight with exactly the same text
already exists for the same book. Existing books are matched by
case-insensitive title only; author is not part of the match.

The reconciler never aborts partway: a failed metadata lookup for one
book falls back to a placeholder record and processing continues.
"""

import uuid
from dataclasses import dataclass, replace
from typing import Callable
from urllib.parse import quote

from loguru import logger

from .errors import MetadataLookupError
from .models import (
    Book,
    BookMetadata,
    BookUpdate,
    Clock,
    Highlight,
    HighlightSource,
    ImportSummary,
    ParsedBook,
    utcnow,
)
from .normalize import parse_page_number

log = logger.bind(stage="reconcile")

PLACEHOLDER_COVER_URL = "https://placehold.co/400x600?text={title}"

# Returns None for "no match"; raises MetadataLookupError when the lookup itself fails
MetadataLookup = Callable[[str], BookMetadata | None]


@dataclass
class ReconcileResult:
    books: list[Book]
    highlights: list[Highlight]
    summary: ImportSummary


def new_id() -> str:
    return str(uuid.uuid4())


def placeholder_cover(title: str, template: str = PLACEHOLDER_COVER_URL) -> str:
    return template.format(title=quote(title, safe="!~*'()"))


def _lookup_metadata(lookup: MetadataLookup | None, query: str) -> BookMetadata | None:
    if lookup is None:
        return None
    try:
        return lookup(query)
    except MetadataLookupError as e:
        # Local to one book; the caller falls back to a placeholder
        log.warning(str(e))
        return None


def _create_book(
    parsed: ParsedBook,
    lookup: MetadataLookup | None,
    id_factory: Callable[[], str],
    cover_template: str,
) -> Book:
    meta = _lookup_metadata(lookup, f"{parsed.title} {parsed.author}")
    if meta is not None:
        log.debug(f"Metadata match for {parsed.title!r}: {meta.title!r}")
        return Book(
            id=id_factory(),
            title=meta.title,
            author=meta.author,
            cover_url=meta.cover_url,
        )
    log.debug(f"No metadata for {parsed.title!r}, creating placeholder")
    return Book(
        id=id_factory(),
        title=parsed.title,
        author=parsed.author,
        cover_url=placeholder_cover(parsed.title, cover_template),
    )


def reconcile(
    books: list[Book],
    highlights: list[Highlight],
    parsed_books: list[ParsedBook],
    lookup: MetadataLookup | None = None,
    clock: Clock = utcnow,
    id_factory: Callable[[], str] = new_id,
    cover_template: str = PLACEHOLDER_COVER_URL,
) -> ReconcileResult:
    """Merge parsed_books into (books, highlights).

    Inputs are not mutated; the result carries new lists. Books are
    processed in input order and summary updates follow that order.
    New books are inserted at the front of the book list.
    """
    result_books = [replace(b) for b in books]
    result_highlights = list(highlights)
    seen = {(h.book_id, h.text) for h in result_highlights}
    summary = ImportSummary(total_books_processed=len(parsed_books))

    for parsed in parsed_books:
        title_key = parsed.title.lower()
        book = next(
            (b for b in result_books if b.title.lower() == title_key), None,
        )
        if book is None:
            book = _create_book(parsed, lookup, id_factory, cover_template)
            result_books.insert(0, book)
            log.info(f"New book: {book.title!r} by {book.author!r}")

        added = 0
        for ph in parsed.highlights:
            if (book.id, ph.text) in seen:
                continue
            result_highlights.append(
                Highlight(
                    id=id_factory(),
                    book_id=book.id,
                    text=ph.text,
                    page_number=parse_page_number(ph.page),
                    created_at=ph.created_at or clock(),
                    source=HighlightSource.DIGITAL,
                )
            )
            seen.add((book.id, ph.text))
            book.total_highlights += 1
            added += 1

        if added > 0:
            summary.updates.append(BookUpdate(title=parsed.title, new_count=added))
            summary.total_highlights_added += added
        log.debug(
            f"{parsed.title!r}: {added} added, "
            f"{len(parsed.highlights) - added} duplicates skipped"
        )

    log.info(
        f"Reconciled {summary.total_books_processed} books, "
        f"{summary.total_highlights_added} new highlights"
    )
    return ReconcileResult(
        books=result_books, highlights=result_highlights, summary=summary,
    )
