"""
Inkwell Backend: GitHub Route Handler
=====================================

What:  GET /github, recursive markdown/text discovery in a GitHub repository.
How:   Every query parameter is a location parameter; `owner` and `repo` are
       required, `path` (default: repository root) and `ref` are optional.
       Delegates to TreeFetcher and returns the files with the params.

Example:
    GET /github?owner=octocat&repo=Hello-World&path=docs&ref=main
"""

import logging

from fastapi import APIRouter, Request

from inkwell.exceptions import ValidationError
from inkwell.schemas.post import ErrorResponse, TreeResponse
from inkwell.services.tree_service import tree_fetcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["GitHub"])

REQUIRED_PARAMS = ("owner", "repo")


@router.get(
    "/github",
    response_model=TreeResponse,
    responses={
        400: {"description": "owner or repo missing", "model": ErrorResponse},
        502: {"description": "GitHub request failed", "model": ErrorResponse},
    },
    summary="List markdown and text files below a repository location",
)
async def fetch_repository_texts(request: Request) -> TreeResponse:
    params = dict(request.query_params)

    missing = [name for name in REQUIRED_PARAMS if not params.get(name)]
    if missing:
        raise ValidationError(
            message=f"Missing required query parameter(s): {', '.join(missing)}",
            field=missing[0],
            context={"missing": missing},
        )

    logger.info("Fetching texts at the specified GitHub location: %s", params)
    data = await tree_fetcher.get_content_recursively(params)
    return TreeResponse(data=data, params=params)
