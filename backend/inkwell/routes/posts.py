"""
Inkwell Backend: Post Route Handlers
=====================================

What:  POST/PUT/GET/DELETE /post, the HTTP face of the post store.
How:   Validates the request, works out the filter for reads and deletes,
       delegates to PostService and returns its response model.

Filter resolution (GET and DELETE):
    1. Query parameters, if there are any
    2. Otherwise the JSON request body, if it is a non-empty object
    3. Otherwise nothing: GET matches every row, DELETE has no id
"""

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.database import get_db_session
from inkwell.exceptions import ValidationError
from inkwell.schemas.post import (
    ErrorResponse,
    PostCreateRequest,
    PostCreatedResponse,
    PostListResponse,
    PostUpdateRequest,
    RowsAffectedResponse,
)
from inkwell.services.post_service import post_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Posts"])

ERROR_RESPONSES = {
    400: {"description": "Missing id or invalid input", "model": ErrorResponse},
    500: {"description": "Store failure", "model": ErrorResponse},
}


async def _json_body(request: Request) -> Dict[str, Any]:
    """Parse an optional JSON object body; an empty body yields {}."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        raise ValidationError(message="Request body is not valid JSON", field="body")
    if not isinstance(body, dict):
        raise ValidationError(message="Request body must be a JSON object", field="body")
    return body


async def resolve_filter(request: Request) -> Optional[Dict[str, Any]]:
    """Query parameters if present, else the body if non-empty, else None."""
    query = dict(request.query_params)
    if query:
        return query
    body = await _json_body(request)
    return body or None


@router.post(
    "/post",
    response_model=PostCreatedResponse,
    responses=ERROR_RESPONSES,
    summary="Create a post",
)
async def create_post(
    payload: PostCreateRequest,
    db: AsyncSession = Depends(get_db_session),
) -> PostCreatedResponse:
    """
    Insert a post.

    A list `content` is stored newline-joined and `meta` JSON-encoded; the
    response echoes the values as they were sent, plus the new id.
    """
    logger.info("Received post for creation: title=%r", payload.post.title)
    return await post_service.create_post(db, payload.post)


@router.put(
    "/post",
    response_model=RowsAffectedResponse,
    responses=ERROR_RESPONSES,
    summary="Partially update a post",
)
async def update_post(
    payload: PostUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
) -> RowsAffectedResponse:
    """Overwrite the given fields verbatim; unknown ids affect 0 rows."""
    return await post_service.update_post(db, payload.post)


@router.get(
    "/post",
    response_model=PostListResponse,
    responses=ERROR_RESPONSES,
    summary="Find posts by equality filter",
)
async def read_posts(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> PostListResponse:
    """
    Return posts matching every column=value pair of the filter.

    Example:
        GET /post?title=Hello       → posts titled "Hello"
        GET /post  {"source": "gh"} → posts whose source is "gh"
        GET /post                   → every post (query is reported as true)
    """
    query = await resolve_filter(request)
    if query is None:
        query = True

    logger.info("Searching for posts using query: %s", query)
    return await post_service.read_posts(db, query)


@router.delete(
    "/post",
    response_model=RowsAffectedResponse,
    responses=ERROR_RESPONSES,
    summary="Delete a post by id",
)
async def delete_post(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> RowsAffectedResponse:
    """Delete the post with the `id` from the query or the body."""
    query = await resolve_filter(request) or {}
    return await post_service.delete_post(db, query)
