"""
Inkwell Backend: Access Log Middleware
=======================================

One line per request on the `inkwell.access` logger:

    GET /post?title=Hello 200 3.2ms [a1b2c3d4] from 127.0.0.1

Level follows the status class (5xx ERROR, 4xx WARNING, else INFO).
Successful health probes are not logged; failing ones are. Request bodies
are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from inkwell.middleware.request_id import current_request_id

logger = logging.getLogger("inkwell.access")

QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def describe_target(request: Request) -> str:
    """Path plus query string, since GET and DELETE /post filter through it."""
    if request.url.query:
        return f"{request.url.path}?{request.url.query}"
    return request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        status = response.status_code
        if request.url.path in QUIET_PATHS and status < 400:
            return response

        target = describe_target(request)
        client = request.client.host if request.client else "-"
        rid = current_request_id()

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            target,
            status,
            elapsed_ms,
            rid,
            client,
            extra={
                "request_id": rid,
                "method": request.method,
                "target": target,
                "status": status,
                "elapsed_ms": round(elapsed_ms, 2),
            },
        )
        return response
