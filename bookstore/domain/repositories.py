"""Repository and collaborator interfaces (ports) for dependency inversion."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from bookstore.domain.entities import (
    Book,
    BookChanges,
    BookStatus,
    Enrichment,
    Order,
    Review,
)


class IBookRepository(ABC):

    @abstractmethod
    async def create(self, book: Book) -> Book:
        """Persist a new book; a duplicate ISBN raises ``ConflictError``."""
        pass

    @abstractmethod
    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        pass

    @abstractmethod
    async def get_by_isbn(self, isbn: str) -> Optional[Book]:
        pass

    @abstractmethod
    async def update(self, book_id: UUID, changes: BookChanges) -> Optional[Book]:
        """Apply a partial update; ``None`` when the book does not exist."""
        pass

    @abstractmethod
    async def list_books(
        self,
        status: Optional[BookStatus] = None,
        in_stock: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Book], int]:
        """Return one page of books and the total number matching the filters."""
        pass

    @abstractmethod
    async def search(self, query: str, limit: int = 20) -> list[Book]:
        """Keyword search over live, in-stock books, most relevant first."""
        pass

    @abstractmethod
    async def mark_sold(self, book_id: UUID) -> Optional[Book]:
        pass

    @abstractmethod
    async def ping(self) -> bool:
        pass


class IOrderRepository(ABC):

    @abstractmethod
    async def create(self, order: Order) -> Order:
        pass

    @abstractmethod
    async def get_by_id(self, order_id: UUID) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_by_month(self, month_batch: str) -> list[Order]:
        pass


class IMetadataProvider(ABC):
    """An external bibliographic source queried by ISBN."""

    source_name: str = ""

    @abstractmethod
    async def fetch_by_isbn(self, isbn: str) -> Optional[Any]:
        """Return the provider record, or ``None`` when the ISBN is unknown.

        Raises ``MetadataProviderError`` when the provider cannot be reached.
        """
        pass


@dataclass
class StoredObject:
    data: bytes
    content_type: str


class IStorageService(ABC):

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store *data* under *key* and return the key."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[StoredObject]:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    def public_url(self, key: str) -> str:
        pass


class IEnrichmentService(ABC):

    @abstractmethod
    async def enrich(
        self,
        title: str,
        author: str,
        description: Optional[str] = None,
        reviews: Optional[list[Review]] = None,
    ) -> Enrichment:
        pass
