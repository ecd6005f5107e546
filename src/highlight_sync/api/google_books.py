"""Google Books volume search -- the default metadata lookup.

Queries the public volumes API for the single best match and turns it into
a BookMetadata record (title, first author, cover URL). Queries prefixed
with "isbn:" fall back to an Open Library cover when Google has no image.
Network and response-shape failures surface as MetadataLookupError.
"""

import httpx
from loguru import logger

from ..errors import MetadataLookupError
from ..models import UNKNOWN_AUTHOR, BookMetadata
from ..reconcile import PLACEHOLDER_COVER_URL, placeholder_cover

log = logger.bind(stage="lookup")

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"
OPEN_LIBRARY_COVER_URL = "https://covers.openlibrary.org/b/isbn/{isbn}-L.jpg"


def lookup_book(
    query: str,
    base_url: str = GOOGLE_BOOKS_URL,
    timeout: float = 10.0,
    cover_template: str = PLACEHOLDER_COVER_URL,
) -> BookMetadata | None:
    """Return metadata for the best match of query, or None when nothing matches.

    Raises:
        MetadataLookupError: on HTTP errors and timeouts, or when the body
            is not a volumes JSON payload.
    """
    log.debug(f"Google Books search: query={query!r}")

    try:
        resp = httpx.get(
            base_url,
            params={"q": query, "maxResults": "1"},
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPError as e:
        raise MetadataLookupError(query, f"Google Books API error: {e}") from e
    except ValueError as e:
        raise MetadataLookupError(query, f"invalid JSON response: {e}") from e

    if not isinstance(data, dict):
        raise MetadataLookupError(query, f"unexpected response type {type(data).__name__}")
    items = data.get("items") or []
    if not isinstance(items, list):
        raise MetadataLookupError(query, "'items' is not a list")
    if not items:
        log.debug(f"No Google Books results for {query!r}")
        return None

    info = items[0].get("volumeInfo") if isinstance(items[0], dict) else None
    if not isinstance(info, dict):
        raise MetadataLookupError(query, "result has no volumeInfo object")
    title = info.get("title") or ""
    if not title:
        return None

    authors = info.get("authors") or []
    cover_url = _best_cover(info.get("imageLinks") or {})
    if not cover_url and query.startswith("isbn:"):
        cover_url = OPEN_LIBRARY_COVER_URL.format(isbn=query[len("isbn:"):])

    result = BookMetadata(
        title=title,
        author=authors[0] if authors else UNKNOWN_AUTHOR,
        cover_url=cover_url or placeholder_cover(title, cover_template),
    )
    log.debug(f"Google Books match: {result.title!r} by {result.author!r}")
    return result


def _best_cover(image_links: dict) -> str:
    """Pick the thumbnail, forced to https and without the zoom=1 downscale."""
    url = image_links.get("thumbnail") or image_links.get("smallThumbnail") or ""
    if url:
        url = url.replace("http:", "https:").replace("&zoom=1", "&zoom=0")
    return url
