"""GET /api/v1/health — server health check."""

from __future__ import annotations

from fastapi import APIRouter, Request

from jamsync import __version__
from jamsync.api.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        active_sessions=len(request.app.state.session_store),
    )
