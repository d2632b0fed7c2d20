"""
Inkwell Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the store, the remote content
       source and request validation.
How:   Each exception class carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{"err": {...}}` JSON payloads with the matching HTTP status.
Who:   Raised by services and routes; caught by global handlers.

Exception Hierarchy:
    InkwellError (base)
    ├── ValidationError          → 400 Bad Request
    ├── MissingIdentifier        → 400 Bad Request
    ├── StoreError               → 500 Internal Server Error
    │   ├── StoreWriteError
    │   ├── StoreReadError
    │   └── StoreDeleteError
    ├── DeserializationError     → 500 Internal Server Error
    └── RemoteFetchError         → 502 Bad Gateway
"""

from typing import Any, Dict, Optional


class InkwellError(Exception):
    """
    Base exception for all Inkwell application errors.

    Attributes:
        message:  Human-readable error description, returned to the client
        context:  Additional structured detail, returned as `details`
    """

    # Machine-readable code used as `err.type` in responses
    code = "inkwell_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(InkwellError):
    """
    Raised when client input fails business-rule validation.

    When:    Missing location parameters, empty update, unparseable body.
    HTTP:    400 Bad Request
    """

    code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class MissingIdentifier(InkwellError):
    """
    Raised when an update or delete carries no usable post id.

    HTTP:    400 Bad Request
    """

    code = "missing_identifier"

    def __init__(
        self,
        operation: str = "operation",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["operation"] = operation
        super().__init__(message=f"An 'id' is required to {operation} a post", context=ctx)
        self.operation = operation


class StoreError(InkwellError):
    """
    Base for failures raised by the persistence layer.

    HTTP:    500 Internal Server Error
    The original driver error is kept in `context["error"]`.
    """

    code = "store_error"

    def __init__(
        self,
        message: str = "The post store rejected the operation",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreWriteError(StoreError):
    """Insert or update failed."""

    code = "store_write_error"


class StoreReadError(StoreError):
    """Select failed, including filters naming unknown columns."""

    code = "store_read_error"


class StoreDeleteError(StoreError):
    """Delete failed."""

    code = "store_delete_error"


class DeserializationError(InkwellError):
    """
    Raised when a stored `meta` value is not valid JSON.

    When:    Reading posts whose meta was overwritten with non-JSON text
             through a partial update.
    HTTP:    500 Internal Server Error
    """

    code = "deserialization_error"

    def __init__(
        self,
        post_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["post_id"] = post_id
        super().__init__(
            message=f"Stored meta for post {post_id} is not valid JSON",
            context=ctx,
        )
        self.post_id = post_id


class RemoteFetchError(InkwellError):
    """
    Raised when the remote repository listing cannot be retrieved.

    When:    Network failure, timeout, rate limit, not-found, or a payload
             that is not a contents listing.
    HTTP:    502 Bad Gateway
    """

    code = "remote_fetch_error"

    def __init__(
        self,
        message: str = "Could not fetch content from the remote repository",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code
