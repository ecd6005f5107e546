"""Import text parsers.

Submodules:
    clippings   -- Plain-text clippings export (entries split by ten '=' chars).
                   Title line "Title (Last, First)" with author reordering,
                   page from the metadata line, bookmarks and empty notes
                   dropped, entries grouped by case-insensitive (title, author).
    html_export -- HTML highlight exports via BeautifulSoup. Ordered selector
                   strategies: Kindle notebook .noteText first, then generic
                   highlight/annotation/quote containers.

detect_format() classifies raw text; parse_import_text() dispatches to the
right parser and returns an empty list for unrecognized input.
"""

from loguru import logger

from ..models import Clock, ImportFormat, ParsedBook, utcnow
from .clippings import SEPARATOR, parse_clippings
from .html_export import parse_html_highlights

log = logger.bind(stage="parse")

HTML_MARKERS = ("<!doctype html>", "<html>")


def detect_format(text: str) -> ImportFormat | None:
    """Return the import format of text, or None when unrecognized."""
    trimmed = text.strip()
    if SEPARATOR in trimmed:
        return ImportFormat.CLIPPINGS
    lowered = trimmed.lower()
    if trimmed.startswith("<") or any(m in lowered for m in HTML_MARKERS):
        return ImportFormat.HTML
    return None


def parse_import_text(text: str, clock: Clock = utcnow) -> list[ParsedBook]:
    """Parse raw import text into books. Unrecognized input yields []."""
    fmt = detect_format(text)
    log.debug(f"Detected import format: {fmt}")
    if fmt == ImportFormat.CLIPPINGS:
        return parse_clippings(text.strip(), clock=clock)
    if fmt == ImportFormat.HTML:
        return parse_html_highlights(text.strip(), clock=clock)
    return []


__all__ = [
    "HTML_MARKERS",
    "detect_format",
    "parse_clippings",
    "parse_html_highlights",
    "parse_import_text",
]
