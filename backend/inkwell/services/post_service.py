"""
Inkwell Backend: Post Service (Post Store Gateway)
===================================================

What:  Create, partial-update, filtered-read and delete operations on the
       `posts` table, including the JSON (de)serialization of `meta`.
How:   Builds SQLAlchemy statements against the Post model and executes them
       on the request's AsyncSession. Every write commits before returning.
Who:   Called by the /post route handlers.

Create vs. Update asymmetry:
    create_post() joins a list `content` with NEWLINE and JSON-encodes
    `meta`. update_post() writes whatever it is given, untouched, so callers
    updating `meta` must send already-encoded JSON text.

Error Handling Strategy:
    Driver and SQL errors are wrapped into StoreWriteError / StoreReadError /
    StoreDeleteError with the original error text in the context. A stored
    `meta` that is not valid JSON raises DeserializationError on read.
"""

import json
import logging
from datetime import date
from typing import Any, Dict, Union

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.exceptions import (
    DeserializationError,
    MissingIdentifier,
    StoreDeleteError,
    StoreReadError,
    StoreWriteError,
    ValidationError,
)
from inkwell.models.post import Post
from inkwell.schemas.post import (
    PostCreate,
    PostCreatedResponse,
    PostListResponse,
    PostRecord,
    PostUpdate,
    RowsAffectedResponse,
)

logger = logging.getLogger(__name__)

NEWLINE = "\n"

# Columns a read filter may name
FILTERABLE_COLUMNS = {column.name: column for column in Post.__table__.columns}


def deserialize_post(post: Post) -> PostRecord:
    """
    Convert a stored row into a PostRecord with `meta` decoded.

    A NULL meta reads back as None. Anything else must be valid JSON text.

    Raises:
        DeserializationError: the stored meta is not valid JSON
    """
    meta = post.meta
    if meta is not None:
        try:
            meta = json.loads(meta)
        except (TypeError, ValueError) as e:
            raise DeserializationError(post_id=post.id, context={"error": str(e)}) from e

    return PostRecord(
        id=post.id,
        title=post.title,
        source=post.source,
        date=post.date,
        content=post.content,
        html=post.html,
        meta=meta,
    )


def _coerce_filter_value(name: str, value: Any) -> Any:
    """
    Convert a filter value to the Python type of its column.

    Query parameters always arrive as strings; JSON bodies may carry numbers
    for text columns. None is kept and becomes `IS NULL`. Objects, arrays,
    booleans and fractional numbers for integer columns are rejected rather
    than converted, so a filter never matches a row it did not name.
    """
    if value is None:
        return None

    python_type = FILTERABLE_COLUMNS[name].type.python_type
    if isinstance(value, bool):
        raise ValueError(f"boolean is not a valid value for '{name}'")
    if isinstance(value, (dict, list)):
        raise ValueError(f"{type(value).__name__} is not a valid value for '{name}'")
    if python_type is int and isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value!r} is not an integer value for '{name}'")
        return int(value)
    if isinstance(value, python_type):
        return value
    if python_type is date:
        return date.fromisoformat(str(value))
    return python_type(value)


class PostService:
    """
    Business logic layer for post operations.

    Stateless: every method receives the session it should use.
    """

    async def create_post(self, db: AsyncSession, data: PostCreate) -> PostCreatedResponse:
        """
        Insert a new post.

        Args:
            db:   Async database session
            data: Validated fields from the request body

        Returns:
            The assigned id plus the submitted values (content and meta
            exactly as sent, not as stored).

        Raises:
            StoreWriteError: the insert or commit failed
        """
        content = data.content
        if isinstance(content, list):
            content = NEWLINE.join(content)

        post = Post(
            title=data.title,
            source=data.source,
            date=data.date,
            content=content,
            html=data.html,
            meta=json.dumps(data.meta),
        )

        try:
            db.add(post)
            await db.flush()
            post_id = post.id
            await db.commit()
        except Exception as e:
            logger.error("Insert into posts failed: %s", str(e))
            raise StoreWriteError(
                message="Could not create the post",
                context={"error": str(e), "error_type": type(e).__name__},
            ) from e

        logger.info("Created post %s", post_id)

        return PostCreatedResponse(
            id=post_id,
            title=data.title,
            content=data.content,
            source=data.source,
            date=data.date,
            meta=data.meta,
            html=data.html,
        )

    async def update_post(self, db: AsyncSession, data: PostUpdate) -> RowsAffectedResponse:
        """
        Overwrite the supplied fields of the post matching `data.id`.

        Returns:
            rows_affected: 1 when the post exists, 0 otherwise

        Raises:
            MissingIdentifier: no id in the partial set
            ValidationError:   no field to change besides the id
            StoreWriteError:   the store rejected the update
        """
        fields = data.model_dump(exclude_unset=True)
        post_id = fields.pop("id", None)

        if post_id is None:
            raise MissingIdentifier(operation="update")
        if not fields:
            raise ValidationError(
                message="Update requires at least one field besides 'id'",
                field="post",
            )

        logger.info("Updating post %s (fields: %s)", post_id, ", ".join(sorted(fields)))

        try:
            result = await db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(**fields)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except Exception as e:
            logger.error("Update of post %s failed: %s", post_id, str(e))
            raise StoreWriteError(
                message="Could not update the post",
                context={"post_id": post_id, "error": str(e), "error_type": type(e).__name__},
            ) from e

        return RowsAffectedResponse(rows_affected=result.rowcount)

    async def read_posts(
        self,
        db: AsyncSession,
        query: Union[Dict[str, Any], bool] = True,
    ) -> PostListResponse:
        """
        Return every post matching an equality filter.

        Args:
            db:    Async database session
            query: Mapping of column name to value (all must match), or True
                   to match every row

        Raises:
            StoreReadError:       unknown column, bad value, or query failure
            DeserializationError: a matched row has corrupt meta
        """
        # populate_existing: rows updated through update_post() replace any
        # instance already held by this session
        statement = (
            select(Post)
            .order_by(Post.id)
            .execution_options(populate_existing=True)
        )

        if isinstance(query, dict):
            unknown = sorted(set(query) - set(FILTERABLE_COLUMNS))
            if unknown:
                raise StoreReadError(
                    message=f"Unknown column(s) in filter: {', '.join(unknown)}",
                    context={"columns": unknown},
                )
            for name, value in query.items():
                try:
                    coerced = _coerce_filter_value(name, value)
                except (TypeError, ValueError) as e:
                    raise StoreReadError(
                        message=f"Invalid value for column '{name}'",
                        context={"column": name, "value": value, "error": str(e)},
                    ) from e
                statement = statement.where(FILTERABLE_COLUMNS[name] == coerced)

        try:
            result = await db.execute(statement)
            posts = list(result.scalars().all())
        except Exception as e:
            logger.error("Reading posts failed: %s", str(e), exc_info=True)
            raise StoreReadError(
                message="Could not read posts",
                context={"error": str(e), "error_type": type(e).__name__},
            ) from e

        return PostListResponse(
            posts=[deserialize_post(post) for post in posts],
            query=query,
            newline=NEWLINE,
        )

    async def delete_post(self, db: AsyncSession, query: Dict[str, Any]) -> RowsAffectedResponse:
        """
        Delete the post whose id is given in `query`.

        Returns:
            rows_affected: 1 when the post existed, 0 otherwise

        Raises:
            MissingIdentifier: `query` has no usable id
            StoreDeleteError:  the store rejected the delete
        """
        raw_id = query.get("id")
        if raw_id is None or raw_id == "":
            raise MissingIdentifier(operation="delete")
        try:
            post_id = _coerce_filter_value("id", raw_id)
        except (TypeError, ValueError) as e:
            raise MissingIdentifier(operation="delete", context={"id": raw_id}) from e

        try:
            result = await db.execute(
                delete(Post)
                .where(Post.id == post_id)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except Exception as e:
            logger.error("Delete of post %s failed: %s", post_id, str(e))
            raise StoreDeleteError(
                message="Could not delete the post",
                context={"post_id": post_id, "error": str(e), "error_type": type(e).__name__},
            ) from e

        logger.info("Deleted post %s (rows affected: %d)", post_id, result.rowcount)
        return RowsAffectedResponse(rows_affected=result.rowcount)


post_service = PostService()
