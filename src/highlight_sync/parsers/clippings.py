"""Parser for plain-text clippings exports (My Clippings.txt).

Each entry is a block separated by a line of ten '=' characters:

    Dune (Herbert, Frank)
    - Your Highlight on page 42 | Location 1023-1024 | Added on ...

    The highlighted text, possibly
    spanning several lines.
    ==========

Bookmarks and empty notes carry no highlight and are dropped.
"""

import re

from loguru import logger

from ..models import UNKNOWN_AUTHOR, Clock, ParsedBook, ParsedHighlight, utcnow
from ..normalize import CLIPPINGS_PAGE_RE, book_key, extract_page, normalize_author

log = logger.bind(stage="clippings")

SEPARATOR = "=========="

_LINE_SPLIT_RE = re.compile(r"\r?\n")


def split_title_line(line: str) -> tuple[str, str]:
    """Split "Title (Author)" into (title, author).

    The author is whatever sits inside the last opening parenthesis, up to
    the final character. A line without a parenthesis (or starting with one)
    is all title.
    """
    line = line.strip()
    paren = line.rfind("(")
    if paren <= 0:
        return line, UNKNOWN_AUTHOR
    title = line[:paren].strip()
    raw_author = line[paren + 1 : len(line) - 1].strip()
    return title, normalize_author(raw_author)


def _entry_body(lines: list[str]) -> str:
    start = 2
    while start < len(lines) and lines[start].strip() == "":
        start += 1
    return "\n".join(lines[start:]).strip()


def parse_clippings(text: str, clock: Clock = utcnow) -> list[ParsedBook]:
    """Parse clippings text into books, preserving encounter order."""
    entries = [e for e in text.split(SEPARATOR) if e.strip()]
    books: dict[str, ParsedBook] = {}
    skipped = 0

    for entry in entries:
        lines = _LINE_SPLIT_RE.split(entry.strip())
        if len(lines) < 2:
            skipped += 1
            continue

        title, author = split_title_line(lines[0])
        page = extract_page(lines[1].strip(), CLIPPINGS_PAGE_RE)

        body = _entry_body(lines)
        if not body or body.lower().startswith("bookmark"):
            skipped += 1
            continue

        key = book_key(title, author)
        book = books.get(key)
        if book is None:
            book = ParsedBook(title=title, author=author)
            books[key] = book
        book.highlights.append(
            ParsedHighlight(text=body, page=page, created_at=clock())
        )

    log.debug(
        f"Parsed {len(entries)} entries into {len(books)} books "
        f"({skipped} skipped)"
    )
    return list(books.values())
