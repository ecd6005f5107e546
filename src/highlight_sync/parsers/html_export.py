"""Parser for HTML highlight exports (Kindle notebook, Nook, generic).

There is no fixed schema. The document title/author come from the first
element matching a title-like (or author-like) selector, and highlights are
extracted by an ordered list of strategies: the first strategy whose
selector matches anything in the document is the only one used.
"""

from dataclasses import dataclass
from typing import Callable

from bs4 import BeautifulSoup, Tag
from loguru import logger

from ..models import (
    DEFAULT_HTML_TITLE,
    UNKNOWN_AUTHOR,
    Clock,
    ParsedBook,
    ParsedHighlight,
    utcnow,
)
from ..normalize import HTML_PAGE_RE, extract_page

log = logger.bind(stage="html")

TITLE_SELECTOR = "h1, .bookTitle, .title, .metadata h1"
AUTHOR_SELECTOR = "h2, .authors, .author, .metadata h2"

# Generic containers shorter than this are decoration, not highlights
MIN_GENERIC_LENGTH = 5


@dataclass(frozen=True)
class HtmlStrategy:
    """A selector plus the function that turns its matches into highlights."""

    name: str
    selector: str
    extract: Callable[[list[Tag], Clock], list[ParsedHighlight]]


def _extract_note_text(elements: list[Tag], clock: Clock) -> list[ParsedHighlight]:
    highlights = []
    for el in elements:
        text = el.get_text().strip()
        if text:
            highlights.append(ParsedHighlight(text=text, created_at=clock()))
    return highlights


def _extract_generic(elements: list[Tag], clock: Clock) -> list[ParsedHighlight]:
    highlights = []
    for el in elements:
        full_text = el.get_text()
        child = el.select_one(".bm-text, .text, p")
        text = child.get_text().strip() if child is not None else ""
        if not text:
            text = full_text.strip()
        if len(text) <= MIN_GENERIC_LENGTH:
            continue
        highlights.append(
            ParsedHighlight(
                text=text, page=extract_page(full_text, HTML_PAGE_RE), created_at=clock()
            )
        )
    return highlights


HTML_STRATEGIES: tuple[HtmlStrategy, ...] = (
    # Kindle notebook export
    HtmlStrategy("kindle-notebook", ".noteText", _extract_note_text),
    # Nook and general annotation markup
    HtmlStrategy(
        "generic",
        ".bm-item, .highlight, .annotation, blockquote, .item",
        _extract_generic,
    ),
)


def _first_text(soup: BeautifulSoup, selector: str, default: str) -> str:
    el = soup.select_one(selector)
    text = el.get_text().strip() if el is not None else ""
    return text or default


def parse_html_highlights(
    html: str,
    clock: Clock = utcnow,
    strategies: tuple[HtmlStrategy, ...] = HTML_STRATEGIES,
) -> list[ParsedBook]:
    """Parse an HTML export into at most one book."""
    soup = BeautifulSoup(html, "html.parser")
    title = _first_text(soup, TITLE_SELECTOR, DEFAULT_HTML_TITLE)
    author = _first_text(soup, AUTHOR_SELECTOR, UNKNOWN_AUTHOR)

    highlights: list[ParsedHighlight] = []
    for strategy in strategies:
        elements = soup.select(strategy.selector)
        if not elements:
            continue
        log.debug(
            f"Strategy {strategy.name!r} matched {len(elements)} elements"
        )
        highlights = strategy.extract(elements, clock)
        break

    if not highlights:
        log.debug(f"No highlights found in HTML export titled {title!r}")
        return []

    log.debug(f"Parsed {len(highlights)} highlights for {title!r} by {author!r}")
    return [ParsedBook(title=title, author=author, highlights=highlights)]
