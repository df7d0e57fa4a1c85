"""
Tests for BookRepository and OrderRepository against a real SQLite file.

Covers JSON bag round-trips, the allowlisted update, pagination and the
FTS5 keyword index kept in sync by triggers.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from conftest import make_book

from bookstore.core.errors import ConflictError
from bookstore.domain.entities import (
    BookChanges,
    BookMetadata,
    BookStatus,
    Enrichment,
    Order,
)
from bookstore.infrastructure.database.connection import Database
from bookstore.infrastructure.database.repository import (
    BookRepository,
    OrderRepository,
    build_match_expression,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.init_models()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session_maker() as session:
        yield session


@pytest.fixture
def repo(session) -> BookRepository:
    return BookRepository(session)


def _live(**overrides):
    overrides.setdefault("status", BookStatus.LIVE)
    overrides.setdefault("isbn", str(uuid4().int)[:13])
    return make_book(**overrides)


# =============================================================================
# Tests: CRUD
# =============================================================================


class TestCreateAndRead:

    async def test_round_trip_with_json_bags(self, repo):
        book = make_book(
            metadata=BookMetadata(publisher="Penguin", categories=["Fiction", "Classics"]),
            ai_enrichment=Enrichment(emotional_tone=["humorous"], shock_factor=5, pace="moderate"),
        )
        await repo.create(book)

        loaded = await repo.get_by_id(book.id)

        assert loaded.isbn == book.isbn
        assert loaded.status == BookStatus.PENDING_REVIEW
        assert loaded.metadata.publisher == "Penguin"
        assert loaded.metadata.categories == ["Fiction", "Classics"]
        assert loaded.ai_enrichment.emotional_tone == ["humorous"]
        assert loaded.ai_enrichment.shock_factor == 5

    async def test_get_by_isbn(self, repo):
        book = await repo.create(make_book())
        assert (await repo.get_by_isbn(book.isbn)).id == book.id
        assert await repo.get_by_isbn("0000000000") is None

    async def test_missing_id_is_none(self, repo):
        assert await repo.get_by_id(uuid4()) is None

    async def test_duplicate_isbn_conflict_names_existing(self, repo):
        first = await repo.create(make_book())

        with pytest.raises(ConflictError) as exc_info:
            await repo.create(make_book(isbn=first.isbn))

        assert exc_info.value.existing_id == str(first.id)


class TestUpdate:

    async def test_partial_update_refreshes_timestamp(self, repo):
        book = await repo.create(make_book())

        updated = await repo.update(book.id, BookChanges(title="Emma", sell_price=1299))

        assert updated.title == "Emma"
        assert updated.sell_price == 1299
        assert updated.author == book.author
        assert updated.updated_at.replace(tzinfo=None) >= book.updated_at.replace(tzinfo=None)

    async def test_empty_update_returns_current(self, repo):
        book = await repo.create(make_book())
        unchanged = await repo.update(book.id, BookChanges())
        assert unchanged.title == book.title

    async def test_update_missing_returns_none(self, repo):
        assert await repo.update(uuid4(), BookChanges(title="x")) is None

    async def test_update_status_and_metadata(self, repo):
        book = await repo.create(make_book())
        updated = await repo.update(
            book.id,
            BookChanges(status=BookStatus.LIVE, metadata=BookMetadata(language="fr")),
        )
        assert updated.status == BookStatus.LIVE
        assert updated.metadata.language == "fr"

    async def test_mark_sold(self, repo):
        book = await repo.create(_live())
        sold = await repo.mark_sold(book.id)
        assert sold.status == BookStatus.SOLD
        assert sold.in_stock is False
        assert sold.sold_at is not None


class TestList:

    async def test_filters_and_total(self, repo):
        now = datetime.now(timezone.utc)
        for i in range(3):
            await repo.create(_live(created_at=now + timedelta(seconds=i)))
        await repo.create(_live(in_stock=False))
        await repo.create(make_book(isbn="1234567890"))

        page, total = await repo.list_books(status=BookStatus.LIVE, in_stock=True, limit=2)

        assert total == 3
        assert len(page) == 2
        assert page[0].created_at >= page[1].created_at

        _, everything = await repo.list_books()
        assert everything == 5

    async def test_offset(self, repo):
        for _ in range(3):
            await repo.create(_live())
        page, total = await repo.list_books(offset=2, limit=10)
        assert total == 3
        assert len(page) == 1


# =============================================================================
# Tests: keyword search
# =============================================================================


class TestSearch:

    async def test_only_live_in_stock_books_match(self, repo):
        live = await repo.create(_live(title="The Haunting of Hill House"))
        await repo.create(_live(title="Haunting Tales", in_stock=False))
        await repo.create(make_book(isbn="1234567890", title="Haunting Pending"))

        results = await repo.search("haunting")

        assert [b.id for b in results] == [live.id]

    async def test_matches_author_description_and_tags(self, repo):
        book = await repo.create(
            _live(
                title="Untitled",
                author="Shirley Jackson",
                description="A gothic tale",
                vibe_tags="eerie slow dread",
            )
        )
        for query in ("jackson", "gothic", "eerie"):
            assert [b.id for b in await repo.search(query)] == [book.id]

    async def test_ranked_by_relevance(self, repo):
        weak = await repo.create(_live(title="Gardening", description="One mention of dragons."))
        strong = await repo.create(
            _live(title="Dragons", author="Dragon Lore", description="Dragons and more dragons.")
        )

        results = await repo.search("dragons")

        assert [b.id for b in results] == [strong.id, weak.id]

    async def test_index_follows_updates(self, repo):
        book = await repo.create(_live(title="Old Title"))
        await repo.update(book.id, BookChanges(title="Fresh Name"))

        assert await repo.search("old") == []
        assert [b.id for b in await repo.search("fresh")] == [book.id]

    async def test_no_hits_is_empty_list(self, repo):
        await repo.create(_live())
        assert await repo.search("xylophone") == []

    async def test_query_syntax_is_neutralised(self, repo):
        await repo.create(_live(title="Pride and Prejudice"))
        results = await repo.search('"pride* (')
        assert len(results) == 1

    async def test_all_terms_must_match(self, repo):
        await repo.create(_live(title="Pride and Prejudice"))
        assert len(await repo.search("pride prejudice")) == 1
        assert await repo.search("pride zombies") == []

    async def test_punctuation_only_query(self, repo):
        assert await repo.search("!!!") == []

    def test_build_match_expression(self):
        assert build_match_expression('war "and" peace*') == '"war" "and" "peace"'
        assert build_match_expression("--") == ""


class TestPing:

    async def test_ping(self, repo):
        assert await repo.ping() is True


# =============================================================================
# Tests: orders
# =============================================================================


class TestOrderRepository:

    async def test_create_and_list_by_month(self, session, repo):
        book = await repo.create(_live())
        orders = OrderRepository(session)
        order = await orders.create(
            Order(
                id=uuid4(),
                book_id=book.id,
                book_price=899,
                profit_amount=599,
                charity_name="Oxfam",
                payment_reference="pi_1",
                month_batch="2024-05",
            )
        )

        assert (await orders.get_by_id(order.id)).charity_name == "Oxfam"
        assert [o.id for o in await orders.list_by_month("2024-05")] == [order.id]
        assert await orders.list_by_month("2024-06") == []
