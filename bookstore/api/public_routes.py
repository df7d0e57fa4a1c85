"""Storefront API routes (browse, search, health) and stored assets."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from bookstore.api.schemas import (
    ApiResponse,
    BookDetailResponse,
    BookListResponse,
    BookResponse,
    HealthResponse,
    SearchResponse,
)
from bookstore.core.dependencies import get_catalog_service, get_storage_service
from bookstore.core.errors import NotFoundError
from bookstore.domain.entities import utcnow
from bookstore.domain.repositories import IStorageService
from bookstore.domain.services import ICatalogService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["public"])
assets_router = APIRouter(tags=["assets"])

ASSET_CACHE_CONTROL = "public, max-age=31536000"


@router.get("/health", response_model=ApiResponse[HealthResponse])
async def health_check(
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
):
    """Store connectivity probe; 503 when the database is unreachable."""
    if not await catalog.health():
        return JSONResponse(
            status_code=503, content={"success": False, "error": "Service unhealthy"}
        )
    return ApiResponse(
        data=HealthResponse(status="healthy", database="connected", timestamp=utcnow())
    )


@router.get("/books", response_model=ApiResponse[BookListResponse])
async def list_public_books(
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> ApiResponse[BookListResponse]:
    books, total = await catalog.list_public_books(limit=limit, offset=offset)
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
async def get_public_book(
    book_id: UUID,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> ApiResponse[BookDetailResponse]:
    book = await catalog.get_public_book(book_id)
    return ApiResponse(data=BookDetailResponse(book=BookResponse.model_validate(book)))


@router.get("/search", response_model=ApiResponse[SearchResponse])
async def search_books(
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
    q: str = Query("", description="Keywords matched against title, author, description and tags"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse[SearchResponse]:
    results = await catalog.search(q, limit=limit)
    return ApiResponse(
        data=SearchResponse(
            query=q,
            results=[BookResponse.model_validate(b) for b in results],
            total=len(results),
        )
    )


@assets_router.get("/assets/{key:path}")
async def get_asset(
    key: str,
    storage: Annotated[IStorageService, Depends(get_storage_service)],
) -> Response:
    stored = await storage.get(key)
    if stored is None:
        raise NotFoundError("Asset not found")
    return Response(
        content=stored.data,
        media_type=stored.content_type,
        headers={"Cache-Control": ASSET_CACHE_CONTROL},
    )
