"""
Inkwell Backend: Health Check Route
====================================

GET /health reports whether the store answers `SELECT 1` and whether the
GitHub API is reachable:

    healthy    both answer
    degraded   store answers, GitHub does not (only /github is affected)
    unhealthy  store does not answer
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from inkwell import __version__
from inkwell.database import engine
from inkwell.schemas.post import HealthResponse
from inkwell.services.github_service import github_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_started_at = time.monotonic()


async def _store_reachable() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Health check: database unreachable: %s", e)
        return False
    return True


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    store_ok = await _store_reachable()
    github_ok = await github_service.health_check()

    if not store_ok:
        overall = "unhealthy"
    elif not github_ok:
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        version=__version__,
        database="connected" if store_ok else "disconnected",
        github="available" if github_ok else "unavailable",
        uptime_seconds=round(time.monotonic() - _started_at, 2),
    )
