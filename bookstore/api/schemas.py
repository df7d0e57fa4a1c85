"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from bookstore.domain.entities import BookCondition, BookStatus

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------
class ApiResponse(BaseModel, Generic[T]):
    """Uniform success envelope: ``{"success": true, "data": ...}``."""

    success: bool = True
    data: T


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    database: str
    timestamp: datetime


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------
class BookMetadataResponse(BaseModel):
    publisher: Optional[str] = None
    publish_date: Optional[str] = None
    page_count: Optional[int] = None
    language: Optional[str] = None
    categories: list[str] = []
    isbn_10: Optional[str] = None
    isbn_13: Optional[str] = None
    average_rating: Optional[float] = None
    ratings_count: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class EnrichmentResponse(BaseModel):
    emotional_tone: list[str] = []
    shock_factor: Optional[int] = None
    pace: Optional[str] = None
    atmosphere: list[str] = []
    vibe_keywords: str = ""
    themes: list[str] = []
    similar_to: list[str] = []

    model_config = ConfigDict(from_attributes=True)


class BookResponse(BaseModel):
    """A book record.  Prices are in pence."""

    id: UUID
    isbn: str
    title: str
    author: str
    description: Optional[str] = None
    cover_url: Optional[str] = None
    condition: BookCondition
    cost_price: int
    sell_price: int
    in_stock: bool
    metadata: BookMetadataResponse
    vibe_tags: Optional[str] = None
    ai_enrichment: Optional[EnrichmentResponse] = None
    review_summary: Optional[str] = None
    status: BookStatus
    created_at: datetime
    updated_at: datetime
    sold_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookListResponse(BaseModel):
    books: list[BookResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class BookDetailResponse(BaseModel):
    book: BookResponse


class SearchResponse(BaseModel):
    query: str
    results: list[BookResponse]
    total: int


# ---------------------------------------------------------------------------
# Ingestion / review
# ---------------------------------------------------------------------------
class IngestBookRequest(BaseModel):
    isbn: str = Field(..., min_length=1, max_length=32)
    condition: BookCondition
    cost_price: float = Field(..., gt=0, allow_inf_nan=False, description="Cost price in pounds")
    custom_title: Optional[str] = Field(None, max_length=500)
    custom_author: Optional[str] = Field(None, max_length=255)


class OpenLibraryRecordResponse(BaseModel):
    title: Optional[str] = None
    authors: list[str] = []
    description: Optional[str] = None
    cover_url: Optional[str] = None
    publish_date: Optional[str] = None
    publishers: list[str] = []
    number_of_pages: Optional[int] = None
    subjects: list[str] = []
    isbn_10: Optional[str] = None
    isbn_13: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class GoogleBooksRecordResponse(BaseModel):
    title: Optional[str] = None
    authors: list[str] = []
    description: Optional[str] = None
    cover_url: Optional[str] = None
    published_date: Optional[str] = None
    publisher: Optional[str] = None
    page_count: Optional[int] = None
    categories: list[str] = []
    average_rating: Optional[float] = None
    ratings_count: Optional[int] = None
    isbn_10: Optional[str] = None
    isbn_13: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ExternalMetadataResponse(BaseModel):
    open_library: Optional[OpenLibraryRecordResponse] = None
    google_books: Optional[GoogleBooksRecordResponse] = None

    model_config = ConfigDict(from_attributes=True)


class IngestBookResponse(BaseModel):
    book_id: UUID
    book: BookResponse
    metadata: ExternalMetadataResponse
    suggested_price: float = Field(..., description="Suggested sell price in pounds")
    errors: Optional[list[str]] = None


class ApproveBookRequest(BaseModel):
    final_price: Optional[float] = Field(None, gt=0, description="Sell price in pounds")
    title: Optional[str] = Field(None, max_length=500)
    author: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    vibe_tags: Optional[str] = None


class BookUpdateRequest(BaseModel):
    """Admin edit over the mutable fields.  ``sell_price`` is in pence."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    cover_url: Optional[str] = None
    sell_price: Optional[int] = Field(None, gt=0)
    in_stock: Optional[bool] = None
    vibe_tags: Optional[str] = None
    review_summary: Optional[str] = None
    status: Optional[BookStatus] = None


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------
class RecordSaleRequest(BaseModel):
    charity_name: str = Field(..., min_length=1, max_length=255)
    payment_reference: str = Field(..., min_length=1, max_length=255)
    customer_email: Optional[EmailStr] = None


class OrderResponse(BaseModel):
    id: UUID
    book_id: UUID
    customer_email: Optional[str] = None
    book_price: int
    profit_amount: int
    charity_name: str
    payment_reference: str
    payment_status: str
    month_batch: str
    donation_status: str
    created_at: datetime
    paid_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
