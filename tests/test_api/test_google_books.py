"""Tests for api/google_books.py -- metadata lookup with mocked HTTP."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from highlight_sync.api.google_books import _best_cover, lookup_book
from highlight_sync.errors import MetadataLookupError
from highlight_sync.models import UNKNOWN_AUTHOR


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    return resp


class TestLookupBook:
    @patch("highlight_sync.api.google_books.httpx.get")
    def test_successful_lookup(self, mock_get):
        mock_get.return_value = _response({
            "items": [{
                "volumeInfo": {
                    "title": "Dune",
                    "authors": ["Frank Herbert", "Someone Else"],
                    "imageLinks": {
                        "thumbnail": "http://books.google.com/c?id=1&zoom=1",
                    },
                },
            }],
        })

        meta = lookup_book("Dune Frank Herbert")

        assert meta is not None
        assert meta.title == "Dune"
        assert meta.author == "Frank Herbert"
        assert meta.cover_url == "https://books.google.com/c?id=1&zoom=0"
        params = mock_get.call_args.kwargs["params"]
        assert params == {"q": "Dune Frank Herbert", "maxResults": "1"}

    @patch("highlight_sync.api.google_books.httpx.get")
    def test_no_items_returns_none(self, mock_get):
        mock_get.return_value = _response({"totalItems": 0})
        assert lookup_book("nothing") is None

    @patch("highlight_sync.api.google_books.httpx.get")
    def test_timeout_raises_lookup_error(self, mock_get):
        mock_get.side_effect = httpx.ConnectTimeout("timed out")
        with pytest.raises(MetadataLookupError, match="timed out") as exc_info:
            lookup_book("Dune")
        assert exc_info.value.query == "Dune"

    @patch("highlight_sync.api.google_books.httpx.get")
    def test_status_error_raises_lookup_error(self, mock_get):
        resp = MagicMock()
        resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            "503", request=MagicMock(), response=MagicMock(),
        )
        mock_get.return_value = resp
        with pytest.raises(MetadataLookupError, match="Google Books API error"):
            lookup_book("Dune")

    @patch("highlight_sync.api.google_books.httpx.get")
    def test_invalid_json_raises_lookup_error(self, mock_get):
        resp = MagicMock()
        resp.json.side_effect = ValueError("Expecting value")
        mock_get.return_value = resp
        with pytest.raises(MetadataLookupError, match="invalid JSON"):
            lookup_book("Dune")

    @pytest.mark.parametrize(
        "payload",
        [
            ["not", "an", "object"],
            {"items": {"volumeInfo": {"title": "Dune"}}},
            {"items": [{"kind": "books#volume"}]},
            {"items": ["Dune"]},
        ],
    )
    @patch("highlight_sync.api.google_books.httpx.get")
    def test_unexpected_shape_raises_lookup_error(self, mock_get, payload):
        mock_get.return_value = _response(payload)
        with pytest.raises(MetadataLookupError):
            lookup_book("Dune")

    @patch("highlight_sync.api.google_books.httpx.get")
    def test_untitled_volume_is_no_match(self, mock_get):
        mock_get.return_value = _response({"items": [{"volumeInfo": {"authors": ["X"]}}]})
        assert lookup_book("Dune") is None

    @patch("highlight_sync.api.google_books.httpx.get")
    def test_missing_author_and_cover(self, mock_get):
        mock_get.return_value = _response({"items": [{"volumeInfo": {"title": "Anon"}}]})
        meta = lookup_book("Anon")
        assert meta.author == UNKNOWN_AUTHOR
        assert meta.cover_url == "https://placehold.co/400x600?text=Anon"

    @patch("highlight_sync.api.google_books.httpx.get")
    def test_isbn_falls_back_to_open_library(self, mock_get):
        mock_get.return_value = _response({"items": [{"volumeInfo": {"title": "Dune"}}]})
        meta = lookup_book("isbn:9780441013593")
        assert meta.cover_url == "https://covers.openlibrary.org/b/isbn/9780441013593-L.jpg"

    @patch("highlight_sync.api.google_books.httpx.get")
    def test_custom_base_url_and_timeout(self, mock_get):
        mock_get.return_value = _response({})
        lookup_book("Dune", base_url="http://mirror/volumes", timeout=2.5)
        assert mock_get.call_args.args[0] == "http://mirror/volumes"
        assert mock_get.call_args.kwargs["timeout"] == 2.5


class TestBestCover:
    def test_prefers_thumbnail(self):
        links = {"thumbnail": "https://a", "smallThumbnail": "https://b"}
        assert _best_cover(links) == "https://a"

    def test_small_thumbnail_fallback(self):
        assert _best_cover({"smallThumbnail": "http://b"}) == "https://b"

    def test_empty(self):
        assert _best_cover({}) == ""
