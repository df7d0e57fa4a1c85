"""Metadata aggregation across the two bibliographic providers."""

import asyncio
import logging
from typing import Any, Optional

from bookstore.core.errors import NotFoundError
from bookstore.domain.entities import (
    BookMetadata,
    ExternalMetadata,
    GoogleBooksRecord,
    MergedMetadata,
    OpenLibraryRecord,
)
from bookstore.domain.isbn import normalize_isbn
from bookstore.domain.repositories import IMetadataProvider

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Author"
DEFAULT_LANGUAGE = "en"
MAX_SUBJECTS = 5


class MetadataAggregator:
    """Fetches from Open Library and Google Books, then merges.

    Google Books wins every field it provides; Open Library fills the gaps.
    """

    def __init__(self, open_library: IMetadataProvider, google_books: IMetadataProvider):
        self.open_library = open_library
        self.google_books = google_books

    async def fetch_metadata(self, isbn: str) -> ExternalMetadata:
        """Query both providers concurrently.

        A provider that errors is logged and treated as having no data, so
        one outage never aborts the other lookup.  Raises
        :class:`NotFoundError` only when neither provider has the book.
        """
        normalized = normalize_isbn(isbn)
        ol_result, gb_result = await asyncio.gather(
            self.open_library.fetch_by_isbn(normalized),
            self.google_books.fetch_by_isbn(normalized),
            return_exceptions=True,
        )
        metadata = ExternalMetadata(
            open_library=self._settled(self.open_library, ol_result),
            google_books=self._settled(self.google_books, gb_result),
        )
        if metadata.open_library is None and metadata.google_books is None:
            raise NotFoundError(f"Could not fetch metadata for ISBN: {isbn}")
        return metadata

    @staticmethod
    def _settled(provider: IMetadataProvider, result: Any) -> Optional[Any]:
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning("%s lookup failed: %s", provider.source_name, result)
            return None
        return result

    def merge_metadata(self, external: ExternalMetadata) -> MergedMetadata:
        ol = external.open_library
        gb = external.google_books

        title = (gb and gb.title) or (ol and ol.title) or UNKNOWN_TITLE
        description = (gb and gb.description) or (ol and ol.description) or None
        cover_url = (gb and gb.cover_url) or (ol and ol.cover_url) or None

        return MergedMetadata(
            title=title,
            author=self._author(gb, ol),
            description=description,
            cover_url=cover_url,
            metadata=self._metadata(gb, ol),
        )

    @staticmethod
    def _author(gb: Optional[GoogleBooksRecord], ol: Optional[OpenLibraryRecord]) -> str:
        if gb and gb.authors:
            return ", ".join(gb.authors)
        if ol and ol.authors:
            return ", ".join(ol.authors)
        return UNKNOWN_AUTHOR

    @staticmethod
    def _metadata(
        gb: Optional[GoogleBooksRecord], ol: Optional[OpenLibraryRecord]
    ) -> BookMetadata:
        ol_publisher = ol.publishers[0] if ol and ol.publishers else None
        ol_subjects = ol.subjects[:MAX_SUBJECTS] if ol and ol.subjects else []
        return BookMetadata(
            publisher=(gb and gb.publisher) or ol_publisher,
            publish_date=(gb and gb.published_date) or (ol and ol.publish_date) or None,
            page_count=(gb and gb.page_count) or (ol and ol.number_of_pages) or None,
            language=DEFAULT_LANGUAGE,
            categories=(gb and gb.categories) or ol_subjects,
            isbn_10=(gb and gb.isbn_10) or (ol and ol.isbn_10) or None,
            isbn_13=(gb and gb.isbn_13) or (ol and ol.isbn_13) or None,
            average_rating=gb.average_rating if gb else None,
            ratings_count=gb.ratings_count if gb else None,
        )
