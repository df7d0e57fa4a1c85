"""Google Books client implementing :class:`IMetadataProvider`."""

import logging
from typing import Any, Optional

import httpx

from bookstore.core.errors import MetadataProviderError
from bookstore.domain.entities import GoogleBooksRecord
from bookstore.domain.repositories import IMetadataProvider

logger = logging.getLogger(__name__)


class GoogleBooksClient(IMetadataProvider):
    """Provider B: the richer commercial catalogue.

    Works without an API key at a lower rate limit; pass *api_key* to raise
    it.
    """

    BASE_URL = "https://www.googleapis.com/books/v1"
    source_name = "google_books"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self._http = http_client
        self._api_key = api_key
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    async def fetch_by_isbn(self, isbn: str) -> Optional[GoogleBooksRecord]:
        params = {"q": f"isbn:{isbn}"}
        if self._api_key:
            params["key"] = self._api_key
        try:
            response = await self._http.get(f"{self.base_url}/volumes", params=params)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise MetadataProviderError(f"Google Books request failed: {exc}") from exc

        items = data.get("items") if isinstance(data, dict) else None
        if not items:
            logger.info("No Google Books data for ISBN: %s", isbn)
            return None
        return self._parse_volume_info(items[0].get("volumeInfo") or {})

    def _parse_volume_info(self, info: dict[str, Any]) -> GoogleBooksRecord:
        isbn_10 = None
        isbn_13 = None
        for identifier in info.get("industryIdentifiers") or []:
            if identifier.get("type") == "ISBN_10":
                isbn_10 = identifier.get("identifier")
            elif identifier.get("type") == "ISBN_13":
                isbn_13 = identifier.get("identifier")

        return GoogleBooksRecord(
            title=info.get("title"),
            authors=list(info.get("authors") or []),
            description=info.get("description"),
            cover_url=self._cover_url(info.get("imageLinks") or {}),
            published_date=info.get("publishedDate"),
            publisher=info.get("publisher"),
            page_count=info.get("pageCount"),
            categories=list(info.get("categories") or []),
            average_rating=info.get("averageRating"),
            ratings_count=info.get("ratingsCount"),
            isbn_10=isbn_10,
            isbn_13=isbn_13,
        )

    @staticmethod
    def _cover_url(image_links: dict[str, str]) -> Optional[str]:
        if image_links.get("large"):
            return image_links["large"]
        thumbnail = image_links.get("thumbnail")
        # zoom=2 asks for a larger rendition of the same thumbnail
        return thumbnail.replace("zoom=1", "zoom=2") if thumbnail else None
