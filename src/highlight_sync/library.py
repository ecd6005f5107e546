"""Library lifecycle operations on an in-memory LibrarySnapshot.

Books are created on import or manual add, edited from book settings, and
deleted together with all of their highlights. Highlights are created by
import, manual entry or scan capture, mutated only by appending thoughts,
and deleted independently of their book.

Every operation keeps Book.total_highlights equal to the number of
highlights referencing the book, and rejects a second highlight with the
same text for the same book.
"""

from dataclasses import dataclass, field
from typing import Callable

from loguru import logger

from .errors import LibraryError
from .models import (
    UNKNOWN_AUTHOR,
    Book,
    Clock,
    Highlight,
    HighlightSource,
    LibrarySnapshot,
    Thought,
    utcnow,
)
from .reconcile import PLACEHOLDER_COVER_URL, new_id, placeholder_cover

log = logger.bind(stage="library")


@dataclass
class SearchResults:
    books: list[Book] = field(default_factory=list)
    highlights: list[tuple[Highlight, Book]] = field(default_factory=list)


def get_book(snapshot: LibrarySnapshot, book_id: str) -> Book:
    for book in snapshot.books:
        if book.id == book_id:
            return book
    raise LibraryError(f"Book not found: {book_id}")


def get_highlight(snapshot: LibrarySnapshot, highlight_id: str) -> Highlight:
    for highlight in snapshot.highlights:
        if highlight.id == highlight_id:
            return highlight
    raise LibraryError(f"Highlight not found: {highlight_id}")


def add_book(
    snapshot: LibrarySnapshot,
    title: str,
    author: str = UNKNOWN_AUTHOR,
    cover_url: str | None = None,
    id_factory: Callable[[], str] = new_id,
    cover_template: str = PLACEHOLDER_COVER_URL,
) -> Book:
    """Add a book to the front of the library."""
    title = title.strip()
    if not title:
        raise LibraryError("Book title must not be empty")
    book = Book(
        id=id_factory(),
        title=title,
        author=author.strip() or UNKNOWN_AUTHOR,
        cover_url=cover_url or placeholder_cover(title, cover_template),
    )
    snapshot.books.insert(0, book)
    log.info(f"Added book {book.title!r} ({book.id})")
    return book


def update_book_details(
    snapshot: LibrarySnapshot, book_id: str, title: str, author: str,
) -> Book:
    book = get_book(snapshot, book_id)
    book.title = title
    book.author = author
    log.debug(f"Updated book {book_id}: title={title!r} author={author!r}")
    return book


def delete_book(snapshot: LibrarySnapshot, book_id: str) -> int:
    """Delete a book and every highlight that references it.

    Returns the number of highlights removed.
    """
    get_book(snapshot, book_id)
    before = len(snapshot.highlights)
    snapshot.books = [b for b in snapshot.books if b.id != book_id]
    snapshot.highlights = [h for h in snapshot.highlights if h.book_id != book_id]
    removed = before - len(snapshot.highlights)
    log.info(f"Deleted book {book_id} and {removed} highlights")
    return removed


def add_highlight(
    snapshot: LibrarySnapshot,
    book_id: str,
    text: str,
    page_number: int | None = None,
    note: str | None = None,
    source: HighlightSource = HighlightSource.SCANNED,
    image_url: str | None = None,
    clock: Clock = utcnow,
    id_factory: Callable[[], str] = new_id,
) -> Highlight:
    """Add a manually entered or scanned highlight, with an optional first thought."""
    book = get_book(snapshot, book_id)
    if not text.strip():
        raise LibraryError("Highlight text must not be empty")
    if any(h.book_id == book_id and h.text == text for h in snapshot.highlights):
        raise LibraryError(f"Highlight already exists for book {book_id}")

    now = clock()
    thoughts = []
    if note:
        thoughts.append(Thought(id=id_factory(), text=note, created_at=now))
    highlight = Highlight(
        id=id_factory(),
        book_id=book_id,
        text=text,
        page_number=page_number,
        thoughts=thoughts,
        created_at=now,
        source=source,
        image_url=image_url,
    )
    snapshot.highlights.append(highlight)
    book.total_highlights += 1
    return highlight


def append_thought(
    snapshot: LibrarySnapshot,
    highlight_id: str,
    text: str,
    clock: Clock = utcnow,
    id_factory: Callable[[], str] = new_id,
) -> Thought:
    highlight = get_highlight(snapshot, highlight_id)
    if not text.strip():
        raise LibraryError("Thought text must not be empty")
    thought = Thought(id=id_factory(), text=text, created_at=clock())
    highlight.thoughts.append(thought)
    return thought


def delete_highlight(snapshot: LibrarySnapshot, highlight_id: str) -> Highlight:
    highlight = get_highlight(snapshot, highlight_id)
    snapshot.highlights = [h for h in snapshot.highlights if h.id != highlight_id]
    for book in snapshot.books:
        if book.id == highlight.book_id:
            book.total_highlights = max(book.total_highlights - 1, 0)
            break
    log.debug(f"Deleted highlight {highlight_id}")
    return highlight


def highlights_for_book(snapshot: LibrarySnapshot, book_id: str) -> list[Highlight]:
    """Highlights for one book, newest first."""
    return sorted(
        (h for h in snapshot.highlights if h.book_id == book_id),
        key=lambda h: h.created_at,
        reverse=True,
    )


def search_library(snapshot: LibrarySnapshot, query: str) -> SearchResults:
    """Case-insensitive substring search over books, highlights and thoughts."""
    needle = query.strip().lower()
    if not needle:
        return SearchResults()

    books_by_id = {b.id: b for b in snapshot.books}
    results = SearchResults(
        books=[
            b for b in snapshot.books
            if needle in b.title.lower() or needle in b.author.lower()
        ],
    )
    for h in snapshot.highlights:
        book = books_by_id.get(h.book_id)
        if book is None:
            continue
        if needle in h.text.lower() or any(
            needle in t.text.lower() for t in h.thoughts
        ):
            results.highlights.append((h, book))
    return results
