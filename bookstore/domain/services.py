"""Domain-level application service interfaces (ports).

These abstract classes define the contracts that the API layer depends on.
Concrete implementations live in ``bookstore/services/`` and are wired
together by the composition root in ``bookstore/core/dependencies.py``.
Route handlers import from ``bookstore.domain`` only, so every service can
be replaced with a test double via ``app.dependency_overrides``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID

from bookstore.domain.entities import (
    Book,
    BookChanges,
    BookCondition,
    BookStatus,
    ExternalMetadata,
    Order,
)


@dataclass
class Transferred:
    url: str


@dataclass
class Degraded:
    """The asset could not be copied; callers keep using *fallback_url*."""

    fallback_url: str
    cause: str


AssetTransferResult = Union[Transferred, Degraded]


@dataclass
class IngestionResult:
    book: Book
    external_metadata: ExternalMetadata
    suggested_price: float  # pounds, for display
    errors: Optional[list[str]] = None


class IAssetTransferService(ABC):

    @abstractmethod
    async def transfer_cover(self, book_id: UUID, source_url: str) -> AssetTransferResult:
        """Copy a cover image into object storage.  Never raises."""
        pass


class IIngestionService(ABC):

    @abstractmethod
    async def ingest_book(
        self,
        isbn: str,
        condition: BookCondition,
        cost_price: float,
        custom_title: Optional[str] = None,
        custom_author: Optional[str] = None,
    ) -> IngestionResult:
        """Register a book from its ISBN.

        Validate, reject duplicates, fetch and merge provider metadata,
        enrich (best effort), price, persist as ``pending_review`` and
        finally copy the cover (best effort).  *cost_price* is in pounds.
        """
        pass

    @abstractmethod
    async def approve_book(
        self,
        book_id: UUID,
        final_price: Optional[float] = None,
        title: Optional[str] = None,
        author: Optional[str] = None,
        description: Optional[str] = None,
        vibe_tags: Optional[str] = None,
    ) -> Book:
        pass

    @abstractmethod
    async def reject_book(self, book_id: UUID) -> Book:
        pass


class ICatalogService(ABC):

    @abstractmethod
    async def list_books(
        self,
        status: Optional[BookStatus] = None,
        in_stock: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Book], int]:
        pass

    @abstractmethod
    async def list_public_books(self, limit: int = 20, offset: int = 0) -> tuple[list[Book], int]:
        pass

    @abstractmethod
    async def get_book(self, book_id: UUID) -> Book:
        pass

    @abstractmethod
    async def get_public_book(self, book_id: UUID) -> Book:
        pass

    @abstractmethod
    async def update_book(self, book_id: UUID, changes: BookChanges) -> Book:
        pass

    @abstractmethod
    async def search(self, query: str, limit: int = 20) -> list[Book]:
        pass

    @abstractmethod
    async def record_sale(
        self,
        book_id: UUID,
        charity_name: str,
        payment_reference: str,
        customer_email: Optional[str] = None,
    ) -> Order:
        pass

    @abstractmethod
    async def health(self) -> bool:
        pass
