"""Open Library client implementing :class:`IMetadataProvider`.

Queries the ``/api/books`` endpoint with ``jscmd=data``, which returns the
edition record keyed by ``ISBN:<isbn>``.  A missing key means Open Library
has never heard of the ISBN.
"""

import logging
from typing import Any, Optional

import httpx

from bookstore.core.errors import MetadataProviderError
from bookstore.domain.entities import OpenLibraryRecord
from bookstore.domain.repositories import IMetadataProvider

logger = logging.getLogger(__name__)


class OpenLibraryClient(IMetadataProvider):
    """Provider A: free, anonymous, sparse on descriptions."""

    BASE_URL = "https://openlibrary.org"
    source_name = "open_library"

    def __init__(self, http_client: httpx.AsyncClient, base_url: Optional[str] = None):
        self._http = http_client
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    async def fetch_by_isbn(self, isbn: str) -> Optional[OpenLibraryRecord]:
        bibkey = f"ISBN:{isbn}"
        params = {"bibkeys": bibkey, "format": "json", "jscmd": "data"}
        try:
            response = await self._http.get(f"{self.base_url}/api/books", params=params)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise MetadataProviderError(f"Open Library request failed: {exc}") from exc

        book = data.get(bibkey) if isinstance(data, dict) else None
        if not book:
            logger.info("No Open Library data for ISBN: %s", isbn)
            return None
        return self._parse_book(book)

    # ------------------------------------------------------------------
    # Parsing helpers
    # ------------------------------------------------------------------
    def _parse_book(self, book: dict[str, Any]) -> OpenLibraryRecord:
        cover = book.get("cover") or {}
        identifiers = book.get("identifiers") or {}
        return OpenLibraryRecord(
            title=book.get("title"),
            authors=self._names(book.get("authors")),
            description=self._description(book),
            cover_url=cover.get("large") or cover.get("medium"),
            publish_date=book.get("publish_date"),
            publishers=self._names(book.get("publishers")),
            number_of_pages=book.get("number_of_pages"),
            subjects=self._names(book.get("subjects")),
            isbn_10=self._first(identifiers.get("isbn_10")),
            isbn_13=self._first(identifiers.get("isbn_13")),
        )

    @staticmethod
    def _description(book: dict[str, Any]) -> Optional[str]:
        # ``notes`` is either a plain string or {"type": ..., "value": ...}
        notes = book.get("notes")
        if isinstance(notes, dict):
            notes = notes.get("value")
        return notes or book.get("subtitle")

    @staticmethod
    def _names(entries: Optional[list[Any]]) -> list[str]:
        names = []
        for entry in entries or []:
            name = entry.get("name") if isinstance(entry, dict) else entry
            if name:
                names.append(str(name))
        return names

    @staticmethod
    def _first(values: Optional[list[str]]) -> Optional[str]:
        return values[0] if values else None
