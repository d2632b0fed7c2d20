"""
Inkwell Backend: Pydantic Request/Response Schemas
===================================================

What:  Pydantic models defining the JSON contract of the /post, /github and
       /health endpoints, plus the shared error envelope.
How:   FastAPI validates request bodies against these models and serializes
       responses through them (dates become ISO strings).

Create vs. Update:
    PostCreate accepts `content` as a list of lines or as text and `meta` as
    any JSON value; PostService joins and serializes them. PostUpdate takes
    the same names but the values are written verbatim, so a `meta` sent
    through an update is stored exactly as given.
"""

from datetime import date as date_type
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PostCreate(BaseModel):
    """Fields accepted by POST /post."""

    title: Optional[str] = Field(default=None, max_length=150)
    content: Union[List[str], str, None] = Field(
        default=None,
        description="Lines joined with '\\n' before storage, or text stored as-is",
    )
    source: Optional[str] = Field(default=None, max_length=150)
    date: Optional[date_type] = None
    meta: Any = Field(default=None, description="Any JSON value; stored JSON-encoded")
    html: Optional[str] = None


class PostCreateRequest(BaseModel):
    post: PostCreate


class PostUpdate(BaseModel):
    """
    Partial field set accepted by PUT /post.

    Only fields present in the request are written (`exclude_unset`).
    Unknown field names are rejected.
    """

    model_config = {"extra": "forbid"}

    id: Optional[int] = None
    title: Optional[str] = Field(default=None, max_length=150)
    content: Any = None
    source: Optional[str] = Field(default=None, max_length=150)
    date: Optional[date_type] = None
    meta: Any = None
    html: Optional[str] = None


class PostUpdateRequest(BaseModel):
    post: PostUpdate


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PostCreatedResponse(BaseModel):
    """
    Echo of a created post: the assigned id plus the values as submitted
    (content still a list of lines if it was sent as one, meta not encoded).
    """

    id: int
    title: Optional[str] = None
    content: Union[List[str], str, None] = None
    source: Optional[str] = None
    date: Optional[date_type] = None
    meta: Any = None
    html: Optional[str] = None


class PostRecord(BaseModel):
    """A stored post with `meta` decoded back into structured data."""

    id: int
    title: Optional[str] = None
    source: Optional[str] = None
    date: Optional[date_type] = None
    content: Optional[str] = None
    html: Optional[str] = None
    meta: Any = None


class PostListResponse(BaseModel):
    posts: List[PostRecord]
    query: Union[Dict[str, Any], bool] = Field(
        description="The equality filter applied, or true when every row matched",
    )
    newline: str = Field(default="\n", description="Separator used to join content lines")


class RowsAffectedResponse(BaseModel):
    rows_affected: int


class TreeResponse(BaseModel):
    """
    Result of GET /github.

    `data` holds the remote listing items that are md/txt files, each with
    an added `extension` and the `params` used to list its directory.
    """

    data: List[Dict[str, Any]]
    params: Dict[str, Any]


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorDetail(BaseModel):
    type: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class ErrorResponse(BaseModel):
    """
    Error envelope shared by every endpoint.

    Example:
        {
            "err": {
                "type": "missing_identifier",
                "message": "An 'id' is required to delete a post",
                "details": {"operation": "delete"},
                "request_id": "a1b2c3d4"
            }
        }
    """

    err: ErrorDetail


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    github: str = Field(description="GitHub API status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
