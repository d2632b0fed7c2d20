"""
Inkwell Backend: Post Service Tests
====================================

What:  Tests for PostService against a real temporary SQLite database.

What we test:
    ✅ Create joins content lines and round-trips meta through JSON
    ✅ Update writes only the named fields, verbatim, and reports 0 for unknown ids
    ✅ Read filters by equality (query-string values coerced to column types)
    ✅ Delete requires an id and never touches other rows
    ✅ Corrupt meta fails loudly on read
"""

from datetime import date

import pytest
from sqlalchemy import select

from inkwell.database import create_tables_if_missing
from inkwell.exceptions import (
    DeserializationError,
    MissingIdentifier,
    StoreReadError,
    StoreWriteError,
    ValidationError,
)
from inkwell.models.post import Post
from inkwell.schemas.post import PostCreate, PostUpdate
from inkwell.services.post_service import PostService


async def _stored(db, post_id):
    result = await db.execute(
        select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestProvisioning:

    @pytest.mark.asyncio
    async def test_create_tables_is_idempotent(self, reset_database):
        """Tables already exist after the fixture ran; nothing is created again."""
        assert await create_tables_if_missing() == []


class TestCreatePost:

    def setup_method(self):
        self.service = PostService()

    @pytest.mark.asyncio
    async def test_content_lines_are_joined_and_meta_round_trips(self, db_session):
        created = await self.service.create_post(
            db_session,
            PostCreate(title="A", content=["line1", "line2"], meta={"tag": "x"}),
        )

        assert created.id is not None
        assert created.content == ["line1", "line2"]
        assert created.meta == {"tag": "x"}

        row = await _stored(db_session, created.id)
        assert row.content == "line1\nline2"
        assert row.meta == '{"tag": "x"}'

        listing = await self.service.read_posts(db_session, {"id": created.id})
        assert len(listing.posts) == 1
        assert listing.posts[0].content == "line1\nline2"
        assert listing.posts[0].meta == {"tag": "x"}

    @pytest.mark.asyncio
    async def test_nested_meta_is_deep_equal_after_read(self, db_session):
        meta = {"tags": ["a", "b"], "stats": {"words": 120, "draft": False}, "score": 1.5}
        created = await self.service.create_post(db_session, PostCreate(title="Deep", meta=meta))

        listing = await self.service.read_posts(db_session, {"id": created.id})
        assert listing.posts[0].meta == meta

    @pytest.mark.asyncio
    async def test_text_content_is_stored_as_is(self, db_session):
        created = await self.service.create_post(
            db_session, PostCreate(title="T", content="already\njoined")
        )
        row = await _stored(db_session, created.id)
        assert row.content == "already\njoined"

    @pytest.mark.asyncio
    async def test_missing_meta_is_stored_as_json_null(self, db_session):
        created = await self.service.create_post(db_session, PostCreate(title="No meta"))

        row = await _stored(db_session, created.id)
        assert row.meta == "null"

        listing = await self.service.read_posts(db_session, {"id": created.id})
        assert listing.posts[0].meta is None

    @pytest.mark.asyncio
    async def test_each_create_adds_exactly_one_row(self, db_session):
        first = await self.service.create_post(db_session, PostCreate(title="one"))
        second = await self.service.create_post(db_session, PostCreate(title="two"))

        assert first.id != second.id
        listing = await self.service.read_posts(db_session, True)
        assert [post.id for post in listing.posts] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_date_is_persisted(self, db_session):
        created = await self.service.create_post(
            db_session, PostCreate(title="Dated", date=date(2018, 7, 4))
        )
        row = await _stored(db_session, created.id)
        assert row.date == date(2018, 7, 4)


class TestUpdatePost:

    def setup_method(self):
        self.service = PostService()

    @pytest.mark.asyncio
    async def test_only_named_fields_change(self, db_session):
        created = await self.service.create_post(
            db_session,
            PostCreate(title="Old", source="blog", content=["a", "b"], html="<p>a</p>", meta={"k": 1}),
        )

        result = await self.service.update_post(
            db_session, PostUpdate(id=created.id, title="New")
        )
        assert result.rows_affected == 1

        post = (await self.service.read_posts(db_session, {"id": created.id})).posts[0]
        assert post.title == "New"
        assert post.source == "blog"
        assert post.content == "a\nb"
        assert post.html == "<p>a</p>"
        assert post.meta == {"k": 1}

    @pytest.mark.asyncio
    async def test_unknown_id_affects_zero_rows(self, db_session):
        result = await self.service.update_post(db_session, PostUpdate(id=9999, title="x"))
        assert result.rows_affected == 0

    @pytest.mark.asyncio
    async def test_missing_id_raises(self, db_session):
        with pytest.raises(MissingIdentifier):
            await self.service.update_post(db_session, PostUpdate(title="x"))

    @pytest.mark.asyncio
    async def test_id_without_fields_raises(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.update_post(db_session, PostUpdate(id=1))

    @pytest.mark.asyncio
    async def test_meta_text_is_written_verbatim(self, db_session):
        created = await self.service.create_post(db_session, PostCreate(title="M", meta={"a": 1}))

        await self.service.update_post(db_session, PostUpdate(id=created.id, meta='{"b": 2}'))

        row = await _stored(db_session, created.id)
        assert row.meta == '{"b": 2}'
        post = (await self.service.read_posts(db_session, {"id": created.id})).posts[0]
        assert post.meta == {"b": 2}

    @pytest.mark.asyncio
    async def test_content_text_is_not_rejoined(self, db_session):
        created = await self.service.create_post(db_session, PostCreate(title="C", content=["x"]))

        await self.service.update_post(db_session, PostUpdate(id=created.id, content="y\nz"))

        row = await _stored(db_session, created.id)
        assert row.content == "y\nz"

    @pytest.mark.asyncio
    async def test_structured_meta_is_rejected_by_store(self, db_session):
        """Update does not serialize meta, so a dict cannot be bound to the TEXT column."""
        created = await self.service.create_post(db_session, PostCreate(title="S"))

        with pytest.raises(StoreWriteError):
            await self.service.update_post(
                db_session, PostUpdate(id=created.id, meta={"not": "encoded"})
            )


class TestReadPosts:

    def setup_method(self):
        self.service = PostService()

    async def _seed(self, db):
        for title, source in [("X", "gh"), ("Y", "gh"), ("X", "web")]:
            await self.service.create_post(db, PostCreate(title=title, source=source))

    @pytest.mark.asyncio
    async def test_match_all_returns_every_row(self, db_session):
        await self._seed(db_session)

        listing = await self.service.read_posts(db_session, True)

        assert len(listing.posts) == 3
        assert listing.query is True
        assert listing.newline == "\n"

    @pytest.mark.asyncio
    async def test_title_filter_returns_only_matches(self, db_session):
        await self._seed(db_session)

        listing = await self.service.read_posts(db_session, {"title": "X"})

        assert len(listing.posts) == 2
        assert all(post.title == "X" for post in listing.posts)
        assert listing.query == {"title": "X"}

    @pytest.mark.asyncio
    async def test_filters_are_a_conjunction(self, db_session):
        await self._seed(db_session)

        listing = await self.service.read_posts(db_session, {"title": "X", "source": "web"})

        assert [(p.title, p.source) for p in listing.posts] == [("X", "web")]

    @pytest.mark.asyncio
    async def test_query_string_values_are_coerced(self, db_session):
        created = await self.service.create_post(
            db_session, PostCreate(title="Q", date=date(2020, 1, 2))
        )

        by_id = await self.service.read_posts(db_session, {"id": str(created.id)})
        by_date = await self.service.read_posts(db_session, {"date": "2020-01-02"})

        assert [p.id for p in by_id.posts] == [created.id]
        assert [p.id for p in by_date.posts] == [created.id]

    @pytest.mark.asyncio
    async def test_unknown_column_raises(self, db_session):
        with pytest.raises(StoreReadError):
            await self.service.read_posts(db_session, {"author": "me"})

    @pytest.mark.asyncio
    async def test_uncoercible_value_raises(self, db_session):
        with pytest.raises(StoreReadError):
            await self.service.read_posts(db_session, {"id": "abc"})

    @pytest.mark.asyncio
    async def test_fractional_id_filter_raises(self, db_session):
        created = await self.service.create_post(db_session, PostCreate(title="F"))

        with pytest.raises(StoreReadError):
            await self.service.read_posts(db_session, {"id": created.id + 0.5})

    @pytest.mark.asyncio
    async def test_structured_filter_value_raises(self, db_session):
        await self.service.create_post(db_session, PostCreate(title="S"))

        with pytest.raises(StoreReadError):
            await self.service.read_posts(db_session, {"title": {"a": 1}})
        with pytest.raises(StoreReadError):
            await self.service.read_posts(db_session, {"title": ["S"]})

    @pytest.mark.asyncio
    async def test_corrupt_meta_fails_loudly(self, db_session):
        created = await self.service.create_post(db_session, PostCreate(title="Bad"))
        await self.service.update_post(db_session, PostUpdate(id=created.id, meta="{not json"))

        with pytest.raises(DeserializationError) as exc_info:
            await self.service.read_posts(db_session, {"id": created.id})
        assert exc_info.value.post_id == created.id


class TestDeletePost:

    def setup_method(self):
        self.service = PostService()

    @pytest.mark.asyncio
    async def test_delete_removes_only_the_target(self, db_session):
        keep = await self.service.create_post(db_session, PostCreate(title="keep"))
        drop = await self.service.create_post(db_session, PostCreate(title="drop"))

        result = await self.service.delete_post(db_session, {"id": str(drop.id)})

        assert result.rows_affected == 1
        remaining = await self.service.read_posts(db_session, True)
        assert [p.id for p in remaining.posts] == [keep.id]

    @pytest.mark.asyncio
    async def test_unknown_id_is_a_noop(self, db_session):
        keep = await self.service.create_post(db_session, PostCreate(title="keep"))

        result = await self.service.delete_post(db_session, {"id": 4242})

        assert result.rows_affected == 0
        remaining = await self.service.read_posts(db_session, True)
        assert [p.id for p in remaining.posts] == [keep.id]

    @pytest.mark.asyncio
    async def test_missing_id_raises(self, db_session):
        await self.service.create_post(db_session, PostCreate(title="keep"))

        with pytest.raises(MissingIdentifier):
            await self.service.delete_post(db_session, {"title": "keep"})

        remaining = await self.service.read_posts(db_session, True)
        assert len(remaining.posts) == 1

    @pytest.mark.asyncio
    async def test_non_numeric_id_raises(self, db_session):
        with pytest.raises(MissingIdentifier):
            await self.service.delete_post(db_session, {"id": "abc"})

    @pytest.mark.asyncio
    async def test_fractional_id_raises_and_keeps_rows(self, db_session):
        first = await self.service.create_post(db_session, PostCreate(title="first"))
        await self.service.create_post(db_session, PostCreate(title="second"))

        with pytest.raises(MissingIdentifier):
            await self.service.delete_post(db_session, {"id": first.id + 0.9})

        remaining = await self.service.read_posts(db_session, True)
        assert len(remaining.posts) == 2

    @pytest.mark.asyncio
    async def test_whole_float_id_is_accepted(self, db_session):
        drop = await self.service.create_post(db_session, PostCreate(title="drop"))

        result = await self.service.delete_post(db_session, {"id": float(drop.id)})

        assert result.rows_affected == 1
