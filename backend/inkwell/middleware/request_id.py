"""
Inkwell Backend: Request ID Middleware
=======================================

What:  Tags each request with a short correlation ID, exposed to the rest of
       the request through a ContextVar and echoed as `X-Request-ID`.
How:   A client-supplied ID is reused when it looks sane (at most 64 word
       characters or dashes); anything else is replaced by a fresh 8-char ID.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"

_VALID_ID = re.compile(r"^[\w-]{1,64}$")

# Coroutine-local: concurrent requests on the same loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def current_request_id() -> str:
    """ID of the request being handled, or "" outside a request."""
    return request_id_var.get()


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get(HEADER, "")
        rid = supplied if _VALID_ID.match(supplied) else new_request_id()

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[HEADER] = rid
        return response
