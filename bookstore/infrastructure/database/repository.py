"""Repository implementations."""

import logging
import re
from dataclasses import asdict, fields
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar
from uuid import UUID

from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.errors import ConflictError, PersistenceError
from bookstore.domain.entities import (
    Book,
    BookChanges,
    BookCondition,
    BookMetadata,
    BookStatus,
    Enrichment,
    Order,
)
from bookstore.domain.repositories import IBookRepository, IOrderRepository
from bookstore.infrastructure.database.models import BookModel, OrderModel

logger = logging.getLogger(__name__)

T = TypeVar("T")

# BookChanges field -> BookModel attribute.  Anything not listed here can
# never be changed through ``update``.
_UPDATABLE_COLUMNS: dict[str, str] = {
    "title": "title",
    "author": "author",
    "description": "description",
    "cover_url": "cover_url",
    "sell_price": "sell_price",
    "in_stock": "in_stock",
    "metadata": "metadata_",
    "vibe_tags": "vibe_tags",
    "ai_enrichment": "ai_enrichment",
    "review_summary": "review_summary",
    "vector_id": "vector_id",
    "status": "status",
}

_SEARCH_SQL = text(
    """
    SELECT books.* FROM books_fts
    JOIN books ON books.rowid = books_fts.rowid
    WHERE books_fts MATCH :match
      AND books.status = 'live'
      AND books.in_stock = 1
    ORDER BY bm25(books_fts)
    LIMIT :limit
    """
)

_SEARCH_TERM = re.compile(r"\w+", re.UNICODE)


def _from_dict(cls: type[T], data: Optional[dict[str, Any]]) -> Optional[T]:
    """Rebuild a dataclass from a JSON column, ignoring unknown keys."""
    if data is None:
        return None
    known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    return cls(**{k: v for k, v in data.items() if k in known})


def _serialize(value: Any) -> Any:
    if isinstance(value, (BookMetadata, Enrichment)):
        return asdict(value)
    if isinstance(value, BookStatus):
        return value.value
    return value


def build_match_expression(query: str) -> str:
    """Quote each word so user input can never break FTS5 query syntax."""
    return " ".join(f'"{term}"' for term in _SEARCH_TERM.findall(query))


# ---------------------------------------------------------------------------
# Book Repository
# ---------------------------------------------------------------------------
class BookRepository(IBookRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, book: Book) -> Book:
        db_book = BookModel(
            id=book.id,
            isbn=book.isbn,
            title=book.title,
            author=book.author,
            description=book.description,
            cover_url=book.cover_url,
            condition=BookCondition(book.condition).value,
            cost_price=book.cost_price,
            sell_price=book.sell_price,
            in_stock=book.in_stock,
            metadata_=_serialize(book.metadata),
            vibe_tags=book.vibe_tags,
            ai_enrichment=_serialize(book.ai_enrichment) if book.ai_enrichment else None,
            review_summary=book.review_summary,
            vector_id=book.vector_id,
            status=BookStatus(book.status).value,
            created_at=book.created_at,
            updated_at=book.updated_at,
        )
        self.session.add(db_book)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            existing = await self.get_by_isbn(book.isbn)
            if existing is not None:
                raise ConflictError(
                    f"Book with ISBN {book.isbn} already exists (ID: {existing.id})",
                    existing_id=str(existing.id),
                ) from exc
            logger.error("Integrity error creating book %s", book.isbn, exc_info=True)
            raise PersistenceError(f"Failed to create book: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Failed to create book %s", book.isbn, exc_info=True)
            raise PersistenceError(f"Failed to create book: {exc}") from exc
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book_id))
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def get_by_isbn(self, isbn: str) -> Optional[Book]:
        result = await self.session.execute(select(BookModel).where(BookModel.isbn == isbn))
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def update(self, book_id: UUID, changes: BookChanges) -> Optional[Book]:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book_id))
        db_book = result.scalar_one_or_none()
        if db_book is None:
            return None

        values = {
            column: _serialize(getattr(changes, name))
            for name, column in _UPDATABLE_COLUMNS.items()
            if getattr(changes, name) is not None
        }
        if not values:
            return self._to_entity(db_book)

        for column, value in values.items():
            setattr(db_book, column, value)
        db_book.updated_at = datetime.now(timezone.utc)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Failed to update book %s", book_id, exc_info=True)
            raise PersistenceError(f"Failed to update book: {exc}") from exc
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def list_books(
        self,
        status: Optional[BookStatus] = None,
        in_stock: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Book], int]:
        conditions = []
        if status is not None:
            conditions.append(BookModel.status == BookStatus(status).value)
        if in_stock is not None:
            conditions.append(BookModel.in_stock == in_stock)

        count_result = await self.session.execute(
            select(func.count()).select_from(BookModel).where(*conditions)
        )
        total = count_result.scalar_one()

        result = await self.session.execute(
            select(BookModel)
            .where(*conditions)
            .order_by(BookModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return [self._to_entity(b) for b in result.scalars().all()], total

    async def search(self, query: str, limit: int = 20) -> list[Book]:
        match = build_match_expression(query)
        if not match:
            return []
        # bm25() is lower-is-better, so ascending order puts the best first.
        result = await self.session.execute(
            select(BookModel).from_statement(_SEARCH_SQL),
            {"match": match, "limit": limit},
        )
        return [self._to_entity(b) for b in result.scalars().all()]

    async def mark_sold(self, book_id: UUID) -> Optional[Book]:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book_id))
        db_book = result.scalar_one_or_none()
        if db_book is None:
            return None
        now = datetime.now(timezone.utc)
        db_book.status = BookStatus.SOLD.value
        db_book.in_stock = False
        db_book.sold_at = now
        db_book.updated_at = now
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError(f"Failed to mark book as sold: {exc}") from exc
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def ping(self) -> bool:
        try:
            result = await self.session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.error("Database ping failed: %s", exc)
            return False
        return result.scalar_one() == 1

    @staticmethod
    def _to_entity(model: BookModel) -> Book:
        return Book(
            id=model.id,
            isbn=model.isbn,
            title=model.title,
            author=model.author,
            description=model.description,
            cover_url=model.cover_url,
            condition=BookCondition(model.condition),
            cost_price=model.cost_price,
            sell_price=model.sell_price,
            in_stock=bool(model.in_stock),
            metadata=_from_dict(BookMetadata, model.metadata_) or BookMetadata(),
            vibe_tags=model.vibe_tags,
            ai_enrichment=_from_dict(Enrichment, model.ai_enrichment),
            review_summary=model.review_summary,
            vector_id=model.vector_id,
            status=BookStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
            sold_at=model.sold_at,
        )


# ---------------------------------------------------------------------------
# Order Repository
# ---------------------------------------------------------------------------
class OrderRepository(IOrderRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, order: Order) -> Order:
        db_order = OrderModel(
            id=order.id,
            book_id=order.book_id,
            customer_email=order.customer_email,
            book_price=order.book_price,
            profit_amount=order.profit_amount,
            charity_name=order.charity_name,
            payment_reference=order.payment_reference,
            payment_status=order.payment_status,
            month_batch=order.month_batch,
            donation_status=order.donation_status,
            created_at=order.created_at,
            paid_at=order.paid_at,
        )
        self.session.add(db_order)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Failed to create order for book %s", order.book_id, exc_info=True)
            raise PersistenceError(f"Failed to create order: {exc}") from exc
        await self.session.refresh(db_order)
        return self._to_entity(db_order)

    async def get_by_id(self, order_id: UUID) -> Optional[Order]:
        result = await self.session.execute(select(OrderModel).where(OrderModel.id == order_id))
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def list_by_month(self, month_batch: str) -> list[Order]:
        result = await self.session.execute(
            select(OrderModel)
            .where(OrderModel.month_batch == month_batch)
            .order_by(OrderModel.created_at.desc())
        )
        return [self._to_entity(o) for o in result.scalars().all()]

    @staticmethod
    def _to_entity(model: OrderModel) -> Order:
        return Order(
            id=model.id,
            book_id=model.book_id,
            customer_email=model.customer_email,
            book_price=model.book_price,
            profit_amount=model.profit_amount,
            charity_name=model.charity_name,
            payment_reference=model.payment_reference,
            payment_status=model.payment_status,
            month_batch=model.month_batch,
            donation_status=model.donation_status,
            created_at=model.created_at,
            paid_at=model.paid_at,
        )
