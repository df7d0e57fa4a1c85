"""
Tests for GoogleBooksClient.

HTTP is served by httpx.MockTransport; no network calls.
"""

from typing import Any, Dict

import httpx
import pytest

from bookstore.core.errors import MetadataProviderError
from bookstore.infrastructure.external.google_books import GoogleBooksClient

ISBN = "9780141439518"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _volume(**info) -> Dict[str, Any]:
    volume_info: Dict[str, Any] = {
        "title": "Pride and Prejudice",
        "authors": ["Jane Austen"],
        "publisher": "Penguin",
        "publishedDate": "2003-04-29",
        "description": "A classic.",
        "pageCount": 480,
        "categories": ["Fiction"],
        "averageRating": 4.5,
        "ratingsCount": 2000,
        "industryIdentifiers": [
            {"type": "ISBN_10", "identifier": "0141439513"},
            {"type": "ISBN_13", "identifier": ISBN},
        ],
        "imageLinks": {"thumbnail": "http://books.google.com/books/content?id=x&zoom=1"},
    }
    volume_info.update(info)
    return {"items": [{"id": "vol1", "volumeInfo": volume_info}]}


class TestFetchByIsbn:

    async def test_query_params_without_key(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, json={"totalItems": 0})

        async with _client(handler) as http:
            await GoogleBooksClient(http).fetch_by_isbn(ISBN)

        assert seen["url"].path == "/books/v1/volumes"
        assert seen["url"].params["q"] == f"isbn:{ISBN}"
        assert "key" not in seen["url"].params

    async def test_api_key_is_sent(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, json={})

        async with _client(handler) as http:
            await GoogleBooksClient(http, api_key="secret").fetch_by_isbn(ISBN)

        assert seen["url"].params["key"] == "secret"

    async def test_parses_first_volume(self):
        async with _client(lambda request: httpx.Response(200, json=_volume())) as http:
            record = await GoogleBooksClient(http).fetch_by_isbn(ISBN)

        assert record.title == "Pride and Prejudice"
        assert record.authors == ["Jane Austen"]
        assert record.published_date == "2003-04-29"
        assert record.page_count == 480
        assert record.average_rating == 4.5
        assert record.ratings_count == 2000
        assert record.isbn_10 == "0141439513"
        assert record.isbn_13 == ISBN

    async def test_thumbnail_upgraded_to_zoom_2(self):
        async with _client(lambda request: httpx.Response(200, json=_volume())) as http:
            record = await GoogleBooksClient(http).fetch_by_isbn(ISBN)

        assert record.cover_url == "http://books.google.com/books/content?id=x&zoom=2"

    async def test_large_image_preferred(self):
        payload = _volume(imageLinks={"large": "large.jpg", "thumbnail": "thumb?zoom=1"})
        async with _client(lambda request: httpx.Response(200, json=payload)) as http:
            record = await GoogleBooksClient(http).fetch_by_isbn(ISBN)

        assert record.cover_url == "large.jpg"

    async def test_no_items_returns_none(self):
        async with _client(lambda request: httpx.Response(200, json={"totalItems": 0})) as http:
            assert await GoogleBooksClient(http).fetch_by_isbn(ISBN) is None

    async def test_rate_limited_raises_provider_error(self):
        async with _client(lambda request: httpx.Response(429)) as http:
            with pytest.raises(MetadataProviderError):
                await GoogleBooksClient(http).fetch_by_isbn(ISBN)

    async def test_connection_error_raises_provider_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        async with _client(handler) as http:
            with pytest.raises(MetadataProviderError):
                await GoogleBooksClient(http).fetch_by_isbn(ISBN)
