"""
Tests for CatalogService: storefront visibility, admin edits and sales.
"""

from uuid import uuid4

import pytest

from conftest import FakeBookRepository, FakeOrderRepository, make_book

from bookstore.core.errors import NotFoundError, ValidationError
from bookstore.domain.entities import BookChanges, BookStatus
from bookstore.services.catalog_service import CatalogService


def _service(*books) -> CatalogService:
    return CatalogService(FakeBookRepository(list(books)), FakeOrderRepository())


class TestVisibility:

    async def test_public_listing_only_live_in_stock(self):
        live = make_book(isbn="1111111111", status=BookStatus.LIVE)
        pending = make_book(isbn="2222222222")
        out_of_stock = make_book(isbn="3333333333", status=BookStatus.LIVE, in_stock=False)
        removed = make_book(isbn="4444444444", status=BookStatus.REMOVED)
        service = _service(live, pending, out_of_stock, removed)

        books, total = await service.list_public_books()

        assert [b.id for b in books] == [live.id]
        assert total == 1

    async def test_admin_listing_filters(self):
        live = make_book(isbn="1111111111", status=BookStatus.LIVE)
        pending = make_book(isbn="2222222222")
        service = _service(live, pending)

        books, total = await service.list_books(status=BookStatus.PENDING_REVIEW)
        assert [b.id for b in books] == [pending.id]
        _, total = await service.list_books()
        assert total == 2

    async def test_public_lookup_hides_unpublished_book(self):
        pending = make_book()
        service = _service(pending)

        with pytest.raises(NotFoundError, match="Book not available"):
            await service.get_public_book(pending.id)
        assert (await service.get_book(pending.id)).id == pending.id

    async def test_missing_book(self):
        with pytest.raises(NotFoundError, match="Book not found"):
            await _service().get_book(uuid4())


class TestUpdateAndSearch:

    async def test_update_applies_changes(self):
        book = make_book()
        service = _service(book)

        updated = await service.update_book(book.id, BookChanges(title="Persuasion", in_stock=False))

        assert updated.title == "Persuasion"
        assert updated.in_stock is False
        assert updated.author == book.author

    async def test_update_missing_book(self):
        with pytest.raises(NotFoundError):
            await _service().update_book(uuid4(), BookChanges(title="x"))

    async def test_update_rejects_non_positive_price(self):
        book = make_book()
        with pytest.raises(ValidationError):
            await _service(book).update_book(book.id, BookChanges(sell_price=0))

    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_search_rejected(self, query):
        with pytest.raises(ValidationError, match="Search query is required"):
            await _service().search(query)

    async def test_search_with_no_hits_is_empty(self):
        assert await _service(make_book(status=BookStatus.LIVE)).search("zzz") == []


class TestRecordSale:

    async def test_sale_marks_sold_and_writes_order(self):
        book = make_book(status=BookStatus.LIVE, cost_price=300, sell_price=899)
        books = FakeBookRepository([book])
        orders = FakeOrderRepository()
        service = CatalogService(books, orders)

        order = await service.record_sale(book.id, "Oxfam", "pi_123", customer_email="a@b.com")

        assert order.book_price == 899
        assert order.profit_amount == 599
        assert order.payment_status == "succeeded"
        assert order.donation_status == "pending"
        assert order.month_batch == order.created_at.strftime("%Y-%m")
        assert orders.orders[order.id] is order

        sold = await books.get_by_id(book.id)
        assert sold.status == BookStatus.SOLD
        assert sold.in_stock is False
        assert sold.sold_at is not None

    async def test_sale_refused_for_unpublished_book(self):
        book = make_book()
        with pytest.raises(ValidationError, match="not available for sale"):
            await _service(book).record_sale(book.id, "Oxfam", "pi_123")

    async def test_book_cannot_be_sold_twice(self):
        book = make_book(status=BookStatus.LIVE)
        service = _service(book)

        await service.record_sale(book.id, "Oxfam", "pi_1")
        with pytest.raises(ValidationError):
            await service.record_sale(book.id, "Oxfam", "pi_2")


class TestHealth:

    async def test_health_reports_store_probe(self):
        assert await _service().health() is True
