"""Book ingestion orchestrator and the review (approve / reject) transitions."""

import logging
import math
from typing import Optional
from uuid import UUID, uuid4

from bookstore.core.errors import (
    BookstoreError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from bookstore.domain.entities import (
    Book,
    BookChanges,
    BookCondition,
    BookStatus,
    Enrichment,
)
from bookstore.domain.isbn import validate_isbn
from bookstore.domain.pricing import format_price, pence_to_pounds, pounds_to_pence, suggest_price
from bookstore.domain.repositories import IBookRepository, IEnrichmentService
from bookstore.domain.services import (
    Degraded,
    IAssetTransferService,
    IIngestionService,
    IngestionResult,
)
from bookstore.services.metadata_service import MetadataAggregator

logger = logging.getLogger(__name__)

ENRICHMENT_FAILED = "AI enrichment failed - using defaults"
COVER_UPLOAD_FAILED = "Cover upload failed - using external URL"

# Approval is a one-way move onto the storefront.
_NOT_APPROVABLE = {BookStatus.LIVE, BookStatus.SOLD}


class IngestionService(IIngestionService):
    """Turns an ISBN plus a cost price into a ``pending_review`` listing."""

    def __init__(
        self,
        book_repository: IBookRepository,
        metadata: MetadataAggregator,
        enrichment: IEnrichmentService,
        assets: IAssetTransferService,
        strict_isbn_checksum: bool = False,
    ):
        self.book_repository = book_repository
        self.metadata = metadata
        self.enrichment = enrichment
        self.assets = assets
        self.strict_isbn_checksum = strict_isbn_checksum

    async def ingest_book(
        self,
        isbn: str,
        condition: BookCondition,
        cost_price: float,
        custom_title: Optional[str] = None,
        custom_author: Optional[str] = None,
    ) -> IngestionResult:
        try:
            return await self._ingest(isbn, condition, cost_price, custom_title, custom_author)
        except BookstoreError:
            raise
        except Exception as exc:
            logger.error("Ingestion error for ISBN %s: %s", isbn, exc, exc_info=True)
            raise PersistenceError(f"Failed to ingest book: {exc}") from exc

    async def _ingest(
        self,
        isbn: str,
        condition: BookCondition,
        cost_price: float,
        custom_title: Optional[str],
        custom_author: Optional[str],
    ) -> IngestionResult:
        errors: list[str] = []

        # ── 1. Validate ──────────────────────────────────────────────────────
        normalized = validate_isbn(isbn, check_checksum=self.strict_isbn_checksum)
        if not math.isfinite(cost_price) or cost_price <= 0:
            raise ValidationError("Cost price must be greater than 0")
        cost_price_pence = pounds_to_pence(cost_price)
        if cost_price_pence <= 0:
            raise ValidationError("Cost price must be at least 1p")

        # ── 2. Duplicate check (fast path; the unique index is authoritative)
        existing = await self.book_repository.get_by_isbn(normalized)
        if existing:
            raise ConflictError(
                f"Book with ISBN {normalized} already exists (ID: {existing.id})",
                existing_id=str(existing.id),
            )

        # ── 3. Fetch + merge provider metadata ───────────────────────────────
        logger.info("Fetching metadata for ISBN: %s", normalized)
        external = await self.metadata.fetch_metadata(normalized)
        merged = self.metadata.merge_metadata(external)
        title = custom_title or merged.title
        author = custom_author or merged.author

        # ── 4. Enrichment (best effort) ──────────────────────────────────────
        try:
            logger.info("Enriching book: %s", title)
            enrichment = await self.enrichment.enrich(title, author, merged.description)
        except Exception as exc:
            logger.warning("AI enrichment failed, using defaults: %s", exc)
            errors.append(ENRICHMENT_FAILED)
            enrichment = Enrichment()

        # ── 5. Price ─────────────────────────────────────────────────────────
        sell_price = suggest_price(cost_price_pence, condition)
        logger.info("Suggested price for %s: %s", normalized, format_price(sell_price))

        # ── 6. Persist ───────────────────────────────────────────────────────
        logger.info("Creating book record for: %s", title)
        book = await self.book_repository.create(
            Book(
                id=uuid4(),
                isbn=normalized,
                title=title,
                author=author,
                description=merged.description,
                cover_url=merged.cover_url,
                condition=condition,
                cost_price=cost_price_pence,
                sell_price=sell_price,
                in_stock=True,
                metadata=merged.metadata,
                vibe_tags=enrichment.vibe_keywords or None,
                ai_enrichment=enrichment,
                status=BookStatus.PENDING_REVIEW,
            )
        )

        # ── 7. Cover transfer (best effort, after the id exists) ─────────────
        if book.cover_url:
            book = await self._transfer_cover(book, errors)

        return IngestionResult(
            book=book,
            external_metadata=external,
            suggested_price=pence_to_pounds(sell_price),
            errors=errors or None,
        )

    async def _transfer_cover(self, book: Book, errors: list[str]) -> Book:
        source_url = book.cover_url
        result = await self.assets.transfer_cover(book.id, source_url)
        if isinstance(result, Degraded):
            logger.warning("Cover upload failed for %s: %s", book.id, result.cause)
            errors.append(COVER_UPLOAD_FAILED)
            return book

        if result.url == source_url:
            return book
        try:
            updated = await self.book_repository.update(book.id, BookChanges(cover_url=result.url))
        except PersistenceError as exc:
            logger.warning("Could not record stored cover for %s: %s", book.id, exc)
            errors.append(COVER_UPLOAD_FAILED)
            return book
        return updated or book

    async def approve_book(
        self,
        book_id: UUID,
        final_price: Optional[float] = None,
        title: Optional[str] = None,
        author: Optional[str] = None,
        description: Optional[str] = None,
        vibe_tags: Optional[str] = None,
    ) -> Book:
        book = await self.book_repository.get_by_id(book_id)
        if not book:
            raise NotFoundError("Book not found")
        if book.status in _NOT_APPROVABLE:
            raise ValidationError(f"Book is already {book.status.value}")
        if final_price is not None and (
            not math.isfinite(final_price) or pounds_to_pence(final_price) <= 0
        ):
            raise ValidationError("Final price must be greater than 0")

        changes = BookChanges(
            status=BookStatus.LIVE,
            sell_price=pounds_to_pence(final_price) if final_price is not None else None,
            title=title or None,
            author=author or None,
            description=description or None,
            vibe_tags=vibe_tags or None,
        )
        updated = await self.book_repository.update(book_id, changes)
        if not updated:
            raise PersistenceError("Failed to update book")

        logger.info("Book approved and set to live: %s", book_id)
        return updated

    async def reject_book(self, book_id: UUID) -> Book:
        book = await self.book_repository.get_by_id(book_id)
        if not book:
            raise NotFoundError("Book not found")

        updated = await self.book_repository.update(book_id, BookChanges(status=BookStatus.REMOVED))
        if not updated:
            raise PersistenceError("Failed to update book")

        logger.info("Book rejected and removed: %s", book_id)
        return updated
