"""
Shared fakes and fixtures.

The fakes implement the domain ports in memory and record their calls, so
service tests can assert on what was (or was not) written.
"""

from dataclasses import fields, replace
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

import pytest

from bookstore.core.errors import ConflictError, PersistenceError
from bookstore.domain.entities import (
    Book,
    BookChanges,
    BookCondition,
    BookStatus,
    Order,
)
from bookstore.domain.repositories import (
    IBookRepository,
    IOrderRepository,
    IStorageService,
    StoredObject,
)


# =============================================================================
# Fake implementations
# =============================================================================


class FakeBookRepository(IBookRepository):
    """In-memory book store with spy lists."""

    def __init__(self, initial_books: Optional[List[Book]] = None):
        self._books: dict[UUID, Book] = {b.id: b for b in initial_books or []}
        self.create_calls: List[Book] = []
        self.update_calls: List[BookChanges] = []
        self.fail_on_update = False

    async def create(self, book: Book) -> Book:
        self.create_calls.append(book)
        for existing in self._books.values():
            if existing.isbn == book.isbn:
                raise ConflictError(
                    f"Book with ISBN {book.isbn} already exists (ID: {existing.id})",
                    existing_id=str(existing.id),
                )
        self._books[book.id] = book
        return book

    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        return self._books.get(book_id)

    async def get_by_isbn(self, isbn: str) -> Optional[Book]:
        return next((b for b in self._books.values() if b.isbn == isbn), None)

    async def update(self, book_id: UUID, changes: BookChanges) -> Optional[Book]:
        self.update_calls.append(changes)
        if self.fail_on_update:
            raise PersistenceError("Failed to update book: disk full")
        book = self._books.get(book_id)
        if book is None:
            return None
        values = {
            f.name: getattr(changes, f.name)
            for f in fields(changes)
            if getattr(changes, f.name) is not None
        }
        if not values:
            return book
        updated = replace(book, updated_at=datetime.now(timezone.utc), **values)
        self._books[book_id] = updated
        return updated

    async def list_books(
        self,
        status: Optional[BookStatus] = None,
        in_stock: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[List[Book], int]:
        matching = [
            b for b in self._books.values()
            if (status is None or b.status == status)
            and (in_stock is None or b.in_stock == in_stock)
        ]
        matching.sort(key=lambda b: b.created_at, reverse=True)
        return matching[offset:offset + limit], len(matching)

    async def search(self, query: str, limit: int = 20) -> List[Book]:
        q = query.lower()
        return [b for b in self._books.values() if b.is_public and q in b.title.lower()][:limit]

    async def mark_sold(self, book_id: UUID) -> Optional[Book]:
        book = self._books.get(book_id)
        if book is None:
            return None
        sold = replace(
            book, status=BookStatus.SOLD, in_stock=False, sold_at=datetime.now(timezone.utc)
        )
        self._books[book_id] = sold
        return sold

    async def ping(self) -> bool:
        return True


class FakeOrderRepository(IOrderRepository):

    def __init__(self):
        self.orders: dict[UUID, Order] = {}

    async def create(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order

    async def get_by_id(self, order_id: UUID) -> Optional[Order]:
        return self.orders.get(order_id)

    async def list_by_month(self, month_batch: str) -> List[Order]:
        return [o for o in self.orders.values() if o.month_batch == month_batch]


class FakeStorage(IStorageService):
    """Dict-backed object store; ``fail`` makes every write raise."""

    def __init__(self, fail: bool = False):
        self.objects: dict[str, StoredObject] = {}
        self.fail = fail

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise OSError("bucket unavailable")
        self.objects[key] = StoredObject(data=data, content_type=content_type)
        return self.public_url(key)

    async def get(self, key: str) -> Optional[StoredObject]:
        return self.objects.get(key)

    async def delete(self, key: str) -> bool:
        return self.objects.pop(key, None) is not None

    def public_url(self, key: str) -> str:
        return f"/assets/{key}"


def make_book(**overrides) -> Book:
    """Build a valid book; keyword arguments override any field."""
    defaults = dict(
        id=uuid4(),
        isbn="9780141439518",
        title="Pride and Prejudice",
        author="Jane Austen",
        condition=BookCondition.GOOD,
        cost_price=300,
        sell_price=899,
        description="A witty romance of manners.",
        status=BookStatus.PENDING_REVIEW,
    )
    defaults.update(overrides)
    return Book(**defaults)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def book_repository() -> FakeBookRepository:
    return FakeBookRepository()


@pytest.fixture
def order_repository() -> FakeOrderRepository:
    return FakeOrderRepository()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()
