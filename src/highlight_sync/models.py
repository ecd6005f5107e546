"""Core enums and data types for highlight import and reconciliation.

Enums:
    HighlightSource -- Where a persisted highlight came from (scanned, digital).
    ImportFormat    -- Recognized import text formats (clippings, html).

Parse-time types (ephemeral, one import run):
    ParsedHighlight, ParsedBook

Persisted types (camelCase JSON via to_dict/from_dict):
    Book, Highlight, Thought

Collaborator / result types:
    BookMetadata, BookUpdate, ImportSummary, LibrarySnapshot
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Callable

UNKNOWN_AUTHOR = "Unknown Author"
DEFAULT_HTML_TITLE = "Imported Ebook"

# Injected wall clock; returns an ISO-8601 UTC timestamp
Clock = Callable[[], str]


def utcnow() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class HighlightSource(StrEnum):
    SCANNED = "scanned"
    DIGITAL = "digital"


class ImportFormat(StrEnum):
    CLIPPINGS = "clippings"
    HTML = "html"


@dataclass
class ParsedHighlight:
    text: str
    page: str | None = None
    created_at: str = ""


@dataclass
class ParsedBook:
    """One book extracted from import text, keyed by (title, author)."""

    title: str
    author: str
    highlights: list[ParsedHighlight] = field(default_factory=list)


@dataclass
class BookMetadata:
    """Result of a metadata lookup for a book query."""

    title: str
    author: str
    cover_url: str


@dataclass
class Thought:
    id: str
    text: str
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Thought":
        return cls(
            id=data["id"],
            text=data.get("text", ""),
            created_at=data.get("createdAt", ""),
        )


@dataclass
class Book:
    """A book in the personal library.

    total_highlights always equals the number of stored highlights
    whose book_id is this book's id.
    """

    id: str
    title: str
    author: str
    cover_url: str
    total_highlights: int = 0
    last_read: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "coverUrl": self.cover_url,
            "totalHighlights": self.total_highlights,
        }
        if self.last_read is not None:
            data["lastRead"] = self.last_read
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Book":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            author=data.get("author", UNKNOWN_AUTHOR),
            cover_url=data.get("coverUrl", ""),
            total_highlights=int(data.get("totalHighlights", 0)),
            last_read=data.get("lastRead"),
        )


@dataclass
class Highlight:
    id: str
    book_id: str
    text: str
    created_at: str
    source: HighlightSource
    page_number: int | None = None
    thoughts: list[Thought] = field(default_factory=list)
    image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "bookId": self.book_id,
            "text": self.text,
            "thoughts": [t.to_dict() for t in self.thoughts],
            "createdAt": self.created_at,
            "source": str(self.source),
        }
        if self.page_number is not None:
            data["pageNumber"] = self.page_number
        if self.image_url is not None:
            data["imageUrl"] = self.image_url
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Highlight":
        page = data.get("pageNumber")
        return cls(
            id=data["id"],
            book_id=data["bookId"],
            text=data.get("text", ""),
            created_at=data.get("createdAt", ""),
            source=HighlightSource(data.get("source", HighlightSource.DIGITAL)),
            page_number=int(page) if page is not None else None,
            thoughts=[Thought.from_dict(t) for t in data.get("thoughts") or []],
            image_url=data.get("imageUrl"),
        )


@dataclass
class BookUpdate:
    title: str
    new_count: int


@dataclass
class ImportSummary:
    """What one import run changed."""

    total_books_processed: int = 0
    total_highlights_added: int = 0
    updates: list[BookUpdate] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalBooksProcessed": self.total_books_processed,
            "totalHighlightsAdded": self.total_highlights_added,
            "updates": [
                {"title": u.title, "newCount": u.new_count} for u in self.updates
            ],
        }


@dataclass
class LibrarySnapshot:
    """Full library state as read from (or written to) a store."""

    books: list[Book] = field(default_factory=list)
    highlights: list[Highlight] = field(default_factory=list)
