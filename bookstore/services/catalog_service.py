"""Catalogue browsing, admin edits and sales."""

import logging
from typing import Optional
from uuid import UUID, uuid4

from bookstore.core.errors import NotFoundError, PersistenceError, ValidationError
from bookstore.domain.entities import Book, BookChanges, BookStatus, Order, utcnow
from bookstore.domain.pricing import month_batch
from bookstore.domain.repositories import IBookRepository, IOrderRepository
from bookstore.domain.services import ICatalogService

logger = logging.getLogger(__name__)


class CatalogService(ICatalogService):

    def __init__(self, book_repository: IBookRepository, order_repository: IOrderRepository):
        self.book_repository = book_repository
        self.order_repository = order_repository

    async def list_books(
        self,
        status: Optional[BookStatus] = None,
        in_stock: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Book], int]:
        return await self.book_repository.list_books(
            status=status, in_stock=in_stock, limit=limit, offset=offset
        )

    async def list_public_books(self, limit: int = 20, offset: int = 0) -> tuple[list[Book], int]:
        return await self.book_repository.list_books(
            status=BookStatus.LIVE, in_stock=True, limit=limit, offset=offset
        )

    async def get_book(self, book_id: UUID) -> Book:
        book = await self.book_repository.get_by_id(book_id)
        if not book:
            raise NotFoundError("Book not found")
        return book

    async def get_public_book(self, book_id: UUID) -> Book:
        """Storefront lookup: anything not live and in stock does not exist."""
        book = await self.get_book(book_id)
        if not book.is_public:
            raise NotFoundError("Book not available")
        return book

    async def update_book(self, book_id: UUID, changes: BookChanges) -> Book:
        if changes.sell_price is not None and changes.sell_price <= 0:
            raise ValidationError("Sell price must be greater than 0")
        updated = await self.book_repository.update(book_id, changes)
        if not updated:
            raise NotFoundError("Book not found")
        logger.info("Book updated: %s", book_id)
        return updated

    async def search(self, query: str, limit: int = 20) -> list[Book]:
        if not query or not query.strip():
            raise ValidationError("Search query is required")
        return await self.book_repository.search(query.strip(), limit)

    async def record_sale(
        self,
        book_id: UUID,
        charity_name: str,
        payment_reference: str,
        customer_email: Optional[str] = None,
    ) -> Order:
        """Mark a storefront book as sold and write its order.

        The payment is recorded as already settled; the order joins the
        donation batch for the current month.
        """
        book = await self.get_book(book_id)
        if not book.is_public:
            raise ValidationError(f"Book is not available for sale (status: {book.status.value})")

        sold = await self.book_repository.mark_sold(book_id)
        if not sold:
            raise PersistenceError("Failed to mark book as sold")

        now = utcnow()
        order = await self.order_repository.create(
            Order(
                id=uuid4(),
                book_id=book_id,
                customer_email=customer_email,
                book_price=book.sell_price,
                profit_amount=book.sell_price - book.cost_price,
                charity_name=charity_name,
                payment_reference=payment_reference,
                month_batch=month_batch(now),
                payment_status="succeeded",
                donation_status="pending",
                created_at=now,
                paid_at=now,
            )
        )
        logger.info("Book %s sold, order %s (%s)", book_id, order.id, order.month_batch)
        return order

    async def health(self) -> bool:
        return await self.book_repository.ping()
