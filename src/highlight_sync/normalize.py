"""Text normalization shared by the parsers and the reconciler."""

import re

from loguru import logger

log = logger.bind(stage="normalize")

# Clippings metadata lines read "page 42" with exactly one space
CLIPPINGS_PAGE_RE = re.compile(r"page (\d+)", re.IGNORECASE)
# HTML exports are looser: "page 42", "Page  42", "page42"
HTML_PAGE_RE = re.compile(r"page\s*(\d+)", re.IGNORECASE)


def book_key(title: str, author: str) -> str:
    """Grouping key for one parse run: case-insensitive (title, author)."""
    return f"{title}-{author}".lower()


def normalize_author(raw: str) -> str:
    """Reorder "Last, First" into "First Last".

    Only a raw field with exactly one comma is reordered; anything else
    (no comma, or several) is returned unchanged.
    """
    if "," not in raw:
        return raw
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 2:
        log.debug(f"Author {raw!r} has {len(parts)} comma parts, keeping as-is")
        return raw
    return f"{parts[1]} {parts[0]}"


def extract_page(text: str, pattern: re.Pattern[str] = HTML_PAGE_RE) -> str | None:
    """Return the digit run of the first page match in text, if any."""
    match = pattern.search(text)
    return match.group(1) if match else None


def parse_page_number(page: str | None) -> int | None:
    """Convert a parsed page string to an int, or None when not numeric."""
    if not page:
        return None
    match = re.match(r"\s*(\d+)", page)
    return int(match.group(1)) if match else None
