"""Admin API routes: ingestion, review queue, edits and sales."""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from bookstore.api.schemas import (
    ApiResponse,
    ApproveBookRequest,
    BookDetailResponse,
    BookListResponse,
    BookResponse,
    BookUpdateRequest,
    ExternalMetadataResponse,
    IngestBookRequest,
    IngestBookResponse,
    MessageResponse,
    OrderResponse,
    RecordSaleRequest,
)
from bookstore.core.dependencies import get_catalog_service, get_ingestion_service
from bookstore.domain.entities import BookChanges, BookStatus
from bookstore.domain.services import ICatalogService, IIngestionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------
@router.post(
    "/books/ingest",
    response_model=ApiResponse[IngestBookResponse],
    status_code=status.HTTP_201_CREATED,
)
async def ingest_book(
    body: IngestBookRequest,
    ingestion: Annotated[IIngestionService, Depends(get_ingestion_service)],
) -> ApiResponse[IngestBookResponse]:
    """Register a book by ISBN.

    The new record lands in ``pending_review``.  Enrichment and cover
    transfer are best effort; their failures are listed in ``errors``.
    """
    result = await ingestion.ingest_book(
        isbn=body.isbn,
        condition=body.condition,
        cost_price=body.cost_price,
        custom_title=body.custom_title,
        custom_author=body.custom_author,
    )
    return ApiResponse(
        data=IngestBookResponse(
            book_id=result.book.id,
            book=BookResponse.model_validate(result.book),
            metadata=ExternalMetadataResponse.model_validate(result.external_metadata),
            suggested_price=result.suggested_price,
            errors=result.errors,
        )
    )


# ---------------------------------------------------------------------------
# Listing / editing
# ---------------------------------------------------------------------------
@router.get("/books", response_model=ApiResponse[BookListResponse])
async def list_books(
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
    book_status: Optional[BookStatus] = Query(None, alias="status"),
    in_stock: Optional[bool] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ApiResponse[BookListResponse]:
    books, total = await catalog.list_books(
        status=book_status, in_stock=in_stock, limit=limit, offset=offset
    )
    return ApiResponse(
        data=BookListResponse(
            books=[BookResponse.model_validate(b) for b in books],
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(books) < total,
        )
    )


@router.get("/books/{book_id}", response_model=ApiResponse[BookDetailResponse])
async def get_book(
    book_id: UUID,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> ApiResponse[BookDetailResponse]:
    book = await catalog.get_book(book_id)
    return ApiResponse(data=BookDetailResponse(book=BookResponse.model_validate(book)))


@router.patch("/books/{book_id}", response_model=ApiResponse[BookDetailResponse])
async def update_book(
    book_id: UUID,
    body: BookUpdateRequest,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> ApiResponse[BookDetailResponse]:
    changes = BookChanges(**body.model_dump(exclude_none=True))
    book = await catalog.update_book(book_id, changes)
    return ApiResponse(data=BookDetailResponse(book=BookResponse.model_validate(book)))


# ---------------------------------------------------------------------------
# Review transitions
# ---------------------------------------------------------------------------
@router.patch("/books/{book_id}/approve", response_model=ApiResponse[BookDetailResponse])
async def approve_book(
    book_id: UUID,
    ingestion: Annotated[IIngestionService, Depends(get_ingestion_service)],
    body: Optional[ApproveBookRequest] = None,
) -> ApiResponse[BookDetailResponse]:
    body = body or ApproveBookRequest()
    book = await ingestion.approve_book(
        book_id,
        final_price=body.final_price,
        title=body.title,
        author=body.author,
        description=body.description,
        vibe_tags=body.vibe_tags,
    )
    return ApiResponse(data=BookDetailResponse(book=BookResponse.model_validate(book)))


@router.delete("/books/{book_id}", response_model=ApiResponse[MessageResponse])
async def reject_book(
    book_id: UUID,
    ingestion: Annotated[IIngestionService, Depends(get_ingestion_service)],
) -> ApiResponse[MessageResponse]:
    await ingestion.reject_book(book_id)
    return ApiResponse(data=MessageResponse(message="Book rejected and removed"))


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------
@router.post(
    "/books/{book_id}/sold",
    response_model=ApiResponse[OrderResponse],
    status_code=status.HTTP_201_CREATED,
)
async def record_sale(
    book_id: UUID,
    body: RecordSaleRequest,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> ApiResponse[OrderResponse]:
    """Mark a live book as sold and record the order for the donation batch."""
    order = await catalog.record_sale(
        book_id,
        charity_name=body.charity_name,
        payment_reference=body.payment_reference,
        customer_email=body.customer_email,
    )
    return ApiResponse(data=OrderResponse.model_validate(order))
