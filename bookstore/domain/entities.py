"""Domain entities for the bookstore."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookCondition(str, Enum):
    LIKE_NEW = "like_new"
    VERY_GOOD = "very_good"
    GOOD = "good"
    ACCEPTABLE = "acceptable"


class BookStatus(str, Enum):
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    LIVE = "live"
    SOLD = "sold"
    REMOVED = "removed"


@dataclass
class BookMetadata:
    """Auxiliary bibliographic data merged from the external providers."""

    publisher: Optional[str] = None
    publish_date: Optional[str] = None
    page_count: Optional[int] = None
    language: Optional[str] = None
    categories: list[str] = field(default_factory=list)
    isbn_10: Optional[str] = None
    isbn_13: Optional[str] = None
    average_rating: Optional[float] = None
    ratings_count: Optional[int] = None


@dataclass
class Enrichment:
    """Vibe tags derived from a book's description.

    ``shock_factor`` is the 1-10 intensity score; ``vibe_keywords`` is the
    short summary string that also feeds the ``vibe_tags`` column.
    """

    emotional_tone: list[str] = field(default_factory=list)
    shock_factor: Optional[int] = None
    pace: Optional[str] = None
    atmosphere: list[str] = field(default_factory=list)
    vibe_keywords: str = ""
    themes: list[str] = field(default_factory=list)
    similar_to: list[str] = field(default_factory=list)


@dataclass
class Review:
    """A sample reader review handed to the enrichment engine."""

    source: str
    text: str
    rating: Optional[float] = None
    author: Optional[str] = None
    date: Optional[str] = None


@dataclass
class Book:
    id: UUID
    isbn: str
    title: str
    author: str
    condition: BookCondition
    cost_price: int  # minor units (pence)
    sell_price: int  # minor units (pence)
    in_stock: bool = True
    description: Optional[str] = None
    cover_url: Optional[str] = None
    metadata: BookMetadata = field(default_factory=BookMetadata)
    vibe_tags: Optional[str] = None
    ai_enrichment: Optional[Enrichment] = None
    review_summary: Optional[str] = None
    vector_id: Optional[str] = None
    status: BookStatus = BookStatus.DRAFT
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    sold_at: Optional[datetime] = None

    @property
    def is_public(self) -> bool:
        """Visible on the storefront: live and still in stock."""
        return self.status == BookStatus.LIVE and self.in_stock


@dataclass
class BookChanges:
    """Partial update over the fixed set of mutable book fields.

    ``None`` means "leave unchanged".
    """

    title: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    cover_url: Optional[str] = None
    sell_price: Optional[int] = None
    in_stock: Optional[bool] = None
    metadata: Optional[BookMetadata] = None
    vibe_tags: Optional[str] = None
    ai_enrichment: Optional[Enrichment] = None
    review_summary: Optional[str] = None
    vector_id: Optional[str] = None
    status: Optional[BookStatus] = None


@dataclass
class Order:
    """A sale of one book; ``month_batch`` groups orders for donations."""

    id: UUID
    book_id: UUID
    book_price: int
    profit_amount: int
    charity_name: str
    payment_reference: str
    month_batch: str
    customer_email: Optional[str] = None
    payment_status: str = "succeeded"  # pending | succeeded | failed
    donation_status: str = "pending"  # pending | sent | confirmed
    created_at: datetime = field(default_factory=utcnow)
    paid_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# External metadata
# ---------------------------------------------------------------------------
@dataclass
class OpenLibraryRecord:
    title: Optional[str] = None
    authors: list[str] = field(default_factory=list)
    description: Optional[str] = None
    cover_url: Optional[str] = None
    publish_date: Optional[str] = None
    publishers: list[str] = field(default_factory=list)
    number_of_pages: Optional[int] = None
    subjects: list[str] = field(default_factory=list)
    isbn_10: Optional[str] = None
    isbn_13: Optional[str] = None


@dataclass
class GoogleBooksRecord:
    title: Optional[str] = None
    authors: list[str] = field(default_factory=list)
    description: Optional[str] = None
    cover_url: Optional[str] = None
    published_date: Optional[str] = None
    publisher: Optional[str] = None
    page_count: Optional[int] = None
    categories: list[str] = field(default_factory=list)
    average_rating: Optional[float] = None
    ratings_count: Optional[int] = None
    isbn_10: Optional[str] = None
    isbn_13: Optional[str] = None


@dataclass
class ExternalMetadata:
    """Raw provider results; at least one is present after a fetch."""

    open_library: Optional[OpenLibraryRecord] = None
    google_books: Optional[GoogleBooksRecord] = None


@dataclass
class MergedMetadata:
    title: str
    author: str
    description: Optional[str] = None
    cover_url: Optional[str] = None
    metadata: BookMetadata = field(default_factory=BookMetadata)
