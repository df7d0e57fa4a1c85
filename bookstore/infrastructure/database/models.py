"""SQLAlchemy database models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    DDL,
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    event,
)
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class BookModel(Base):
    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint(
            "condition IN ('like_new', 'very_good', 'good', 'acceptable')",
            name="ck_books_condition",
        ),
        CheckConstraint(
            "status IN ('draft', 'pending_review', 'live', 'sold', 'removed')",
            name="ck_books_status",
        ),
        CheckConstraint("cost_price >= 0 AND sell_price >= 0", name="ck_books_prices"),
        Index("ix_books_status_stock", "status", "in_stock"),
        Index("ix_books_created_at", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    isbn = Column(String(13), nullable=False, unique=True, index=True)
    title = Column(String(500), nullable=False)
    author = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    cover_url = Column(String(1024), nullable=True)
    condition = Column(String(20), nullable=False)
    cost_price = Column(Integer, nullable=False)  # pence
    sell_price = Column(Integer, nullable=False)  # pence
    in_stock = Column(Boolean, default=True, nullable=False)
    metadata_ = Column("metadata", JSON(none_as_null=True), nullable=True)
    vibe_tags = Column(Text, nullable=True)
    ai_enrichment = Column(JSON(none_as_null=True), nullable=True)
    review_summary = Column(Text, nullable=True)
    vector_id = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="draft")
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    sold_at = Column(DateTime(timezone=True), nullable=True)


class OrderModel(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(
            "payment_status IN ('pending', 'succeeded', 'failed')",
            name="ck_orders_payment_status",
        ),
        CheckConstraint(
            "donation_status IN ('pending', 'sent', 'confirmed')",
            name="ck_orders_donation_status",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    book_id = Column(Uuid, ForeignKey("books.id"), nullable=False, index=True)
    customer_email = Column(String(255), nullable=True)
    book_price = Column(Integer, nullable=False)  # pence
    profit_amount = Column(Integer, nullable=False)  # pence
    charity_name = Column(String(255), nullable=False)
    payment_reference = Column(String(255), nullable=False)
    payment_status = Column(String(20), nullable=False, default="pending")
    month_batch = Column(String(7), nullable=False, index=True)  # YYYY-MM
    donation_status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Keyword search index
# ---------------------------------------------------------------------------
# A standalone FTS5 table keyed by the books rowid.  The triggers keep it in
# lockstep with ``books``: updates delete and reinsert the row because the
# indexed columns are copies, never edited in place.
SEARCH_INDEX_DDL = [
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS books_fts USING fts5(
        book_id UNINDEXED,
        title,
        author,
        description,
        vibe_tags
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS books_fts_insert AFTER INSERT ON books BEGIN
        INSERT INTO books_fts(rowid, book_id, title, author, description, vibe_tags)
        VALUES (new.rowid, new.id, new.title, new.author, new.description, new.vibe_tags);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS books_fts_update AFTER UPDATE ON books BEGIN
        DELETE FROM books_fts WHERE rowid = old.rowid;
        INSERT INTO books_fts(rowid, book_id, title, author, description, vibe_tags)
        VALUES (new.rowid, new.id, new.title, new.author, new.description, new.vibe_tags);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS books_fts_delete AFTER DELETE ON books BEGIN
        DELETE FROM books_fts WHERE rowid = old.rowid;
    END
    """,
]

for _statement in SEARCH_INDEX_DDL:
    event.listen(
        BookModel.__table__,
        "after_create",
        DDL(_statement).execute_if(dialect="sqlite"),
    )

event.listen(
    BookModel.__table__,
    "before_drop",
    DDL("DROP TABLE IF EXISTS books_fts").execute_if(dialect="sqlite"),
)
