"""Dependency injection container.

The application factory puts three long-lived objects on ``app.state``:
``settings``, ``database`` and ``http_client``.  Everything else is built
per request from those, and this module is the only place that reads
settings on behalf of a component.
"""

from typing import AsyncGenerator

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.config import Settings
from bookstore.domain.repositories import (
    IBookRepository,
    IEnrichmentService,
    IOrderRepository,
    IStorageService,
)
from bookstore.domain.services import IAssetTransferService, ICatalogService, IIngestionService
from bookstore.infrastructure.database.repository import BookRepository, OrderRepository
from bookstore.infrastructure.external.google_books import GoogleBooksClient
from bookstore.infrastructure.external.open_library import OpenLibraryClient
from bookstore.infrastructure.llm.services import (
    HeuristicEnrichmentService,
    LlamaEnrichmentService,
    OpenAIEnrichmentService,
)
from bookstore.infrastructure.storage.local import LocalStorageService
from bookstore.infrastructure.storage.s3 import S3StorageService
from bookstore.services.asset_service import AssetTransferService
from bookstore.services.catalog_service import CatalogService
from bookstore.services.ingestion_service import IngestionService
from bookstore.services.metadata_service import MetadataAggregator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async for session in request.app.state.database.session():
        yield session


# ---------------------------------------------------------------------------
# Infrastructure builders
# ---------------------------------------------------------------------------
def build_storage_service(settings: Settings) -> IStorageService:
    """Return the configured storage backend."""
    if settings.storage_backend == "local":
        return LocalStorageService(settings.storage_path, public_base_url=settings.asset_base_url)
    elif settings.storage_backend == "s3":
        return S3StorageService(
            bucket_name=settings.s3_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url or None,
            aws_access_key_id=settings.s3_access_key or None,
            aws_secret_access_key=settings.s3_secret_key or None,
            public_base_url=settings.asset_base_url,
        )
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


def build_enrichment_service(
    settings: Settings, http_client: httpx.AsyncClient
) -> IEnrichmentService:
    """Return the configured enrichment engine."""
    if settings.enrichment_provider == "heuristic":
        return HeuristicEnrichmentService()
    elif settings.enrichment_provider == "openai":
        return OpenAIEnrichmentService(
            api_key=settings.openai_api_key or None,
            model=settings.openai_model,
        )
    elif settings.enrichment_provider == "llama":
        return LlamaEnrichmentService(
            http_client,
            base_url=settings.llm_base_url,
            model=settings.llm_model,
        )
    raise ValueError(f"Unknown enrichment provider: {settings.enrichment_provider}")


def build_metadata_aggregator(
    settings: Settings, http_client: httpx.AsyncClient
) -> MetadataAggregator:
    return MetadataAggregator(
        open_library=OpenLibraryClient(http_client),
        google_books=GoogleBooksClient(http_client, api_key=settings.google_books_api_key or None),
    )


# ---------------------------------------------------------------------------
# Request-scoped providers
# ---------------------------------------------------------------------------
def get_storage_service(request: Request) -> IStorageService:
    """One storage backend per application, built lazily on first use."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = build_storage_service(request.app.state.settings)
        request.app.state.storage = storage
    return storage


def get_enrichment_service(
    settings: Settings = Depends(get_app_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> IEnrichmentService:
    return build_enrichment_service(settings, http_client)


def get_metadata_aggregator(
    settings: Settings = Depends(get_app_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> MetadataAggregator:
    return build_metadata_aggregator(settings, http_client)


def get_asset_transfer_service(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    storage: IStorageService = Depends(get_storage_service),
) -> IAssetTransferService:
    return AssetTransferService(http_client, storage)


async def get_book_repository(session: AsyncSession = Depends(get_session)) -> IBookRepository:
    return BookRepository(session)


async def get_order_repository(session: AsyncSession = Depends(get_session)) -> IOrderRepository:
    return OrderRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_ingestion_service(
    repo: IBookRepository = Depends(get_book_repository),
    metadata: MetadataAggregator = Depends(get_metadata_aggregator),
    enrichment: IEnrichmentService = Depends(get_enrichment_service),
    assets: IAssetTransferService = Depends(get_asset_transfer_service),
    settings: Settings = Depends(get_app_settings),
) -> IIngestionService:
    return IngestionService(
        book_repository=repo,
        metadata=metadata,
        enrichment=enrichment,
        assets=assets,
        strict_isbn_checksum=settings.strict_isbn_checksum,
    )


async def get_catalog_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    order_repo: IOrderRepository = Depends(get_order_repository),
) -> ICatalogService:
    return CatalogService(book_repository=book_repo, order_repository=order_repo)
